"""Custom exceptions for the strategy engine."""


class StrategyEngineException(Exception):
    """Base exception for all strategy engine errors."""

    def __init__(self, message: str, details: dict | None = None):
        """
        Initialize strategy engine exception.

        Args:
            message: Human-readable error message
            details: Optional dict with additional error context
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationException(StrategyEngineException):
    """Base exception for locally recoverable validation errors."""

    def __init__(self, message: str, errors: dict[str, str], details: dict | None = None):
        self.errors = dict(errors)
        full_details = {"errors": self.errors}
        if details:
            full_details.update(details)
        super().__init__(message, full_details)


class RuleValidationError(ValidationException):
    """Raised when a wizard stage fails validation. Errors are keyed by field name."""

    def __init__(self, stage, errors: dict[str, str]):
        self.stage = stage
        stage_name = getattr(stage, "value", stage)
        super().__init__(
            message=f"Rule validation failed at stage '{stage_name}'",
            errors=errors,
            details={"stage": stage_name},
        )


class ScheduleValidationError(ValidationException):
    """Raised when a schedule selection cannot be normalized."""

    def __init__(self, errors: dict[str, str]):
        super().__init__(message="Invalid schedule: " + "; ".join(errors.values()), errors=errors)


class ConditionError(ValidationException):
    """Raised when a criterion is incomplete (reject policy) or uses an illegal operator."""

    def __init__(self, field_id: str, reason: str):
        self.field_id = field_id
        super().__init__(message=f"Invalid condition on '{field_id}': {reason}", errors={field_id: reason})


class UnknownFieldError(ValidationException):
    """Raised when a criterion references a field absent from the catalog."""

    def __init__(self, field_id: str):
        self.field_id = field_id
        super().__init__(message=f"Unknown filter field '{field_id}'", errors={field_id: "Unknown filter field"})


class BackendError(StrategyEngineException):
    """Raised when the backend answers with a failure envelope or an HTTP error."""

    def __init__(self, message: str, status_code: int | None = None, details: dict | None = None):
        self.status_code = status_code
        full_details = dict(details or {})
        if status_code is not None:
            full_details["status_code"] = status_code
        super().__init__(message, full_details)


class ResourceNotFoundError(BackendError):
    """Raised when a requested backend resource does not exist."""

    pass


class MalformedResponseError(BackendError):
    """Raised when a backend payload does not match the expected shape."""

    pass


class BackendUnavailableError(BackendError):
    """Raised on transport failures (timeouts, refused connections)."""

    def __init__(self, message: str, original_error: Exception | None = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__
        super().__init__(message, details=details)


class SubmissionError(StrategyEngineException):
    """Raised when the backend rejects a rule create/update."""

    def __init__(self, rule_id: str | None, cause: BackendError):
        self.rule_id = rule_id
        self.cause = cause
        action = f"update rule {rule_id}" if rule_id else "create rule"
        super().__init__(
            message=f"Failed to {action}: {cause.message}",
            details={"rule_id": rule_id, **cause.details},
        )
