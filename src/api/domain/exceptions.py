"""Mapping of engine exceptions onto HTTP errors for the API layer."""

from fastapi import HTTPException

from src.strategy.domain.exceptions import (
    BackendError,
    ResourceNotFoundError,
    RuleValidationError,
    StrategyEngineException,
    SubmissionError,
    ValidationException,
)


def to_http_exception(error: StrategyEngineException) -> HTTPException:
    """
    Convert an engine exception to an HTTPException.

    Validation errors become 422 with field-keyed errors, missing resources 404,
    and anything the backend rejected or failed to answer 502.
    """
    detail: dict = {"message": error.message}

    if isinstance(error, ValidationException):
        detail["errors"] = error.errors
        if isinstance(error, RuleValidationError):
            detail["stage"] = error.stage.value
        return HTTPException(status_code=422, detail=detail)

    cause = error.cause if isinstance(error, SubmissionError) else error
    if isinstance(cause, ResourceNotFoundError):
        return HTTPException(status_code=404, detail=detail)
    if isinstance(cause, BackendError):
        if cause.status_code is not None:
            detail["backend_status"] = cause.status_code
        return HTTPException(status_code=502, detail=detail)

    return HTTPException(status_code=500, detail=detail)
