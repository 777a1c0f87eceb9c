"""Domain models for batch uploads (allocation, reallocation, case intake)."""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from src.strategy.domain.models import WireModel


class BatchStatus(str, Enum):
    """Processing status of an uploaded batch."""

    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"  # Terminal
    FAILED = "FAILED"  # Terminal
    PARTIAL = "PARTIAL"  # Terminal

    @property
    def is_terminal(self) -> bool:
        return self != BatchStatus.PROCESSING


class BatchKind(str, Enum):
    """Batch upload flow, each with its own backend resource."""

    ALLOCATION = "allocation"
    REALLOCATION = "reallocation"
    CASE_INTAKE = "case_intake"

    @property
    def base_url(self) -> str:
        return {
            BatchKind.ALLOCATION: "/allocations",
            BatchKind.REALLOCATION: "/reallocations",
            BatchKind.CASE_INTAKE: "/case/source",
        }[self]


class BatchUploadResult(WireModel):
    """Backend acknowledgement of an uploaded CSV."""

    batch_id: str = Field(alias="batchId")
    status: BatchStatus = BatchStatus.PROCESSING
    total_cases: int = Field(default=0, validation_alias=AliasChoices("totalCases", "totalRecords"))

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class BatchStatusSnapshot(WireModel):
    """One status response for a batch."""

    batch_id: str = Field(alias="batchId")
    status: BatchStatus
    total_cases: int = Field(default=0, validation_alias=AliasChoices("totalCases", "totalRecords"))
    successful: int = Field(default=0, validation_alias=AliasChoices("successful", "validCases"))
    failed: int = Field(default=0, validation_alias=AliasChoices("failed", "invalidCases"))
    errors: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
