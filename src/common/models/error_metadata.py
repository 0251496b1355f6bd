"""Structured error metadata models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorCategory(str, Enum):
    """Closed set of provider-agnostic SQL error categories."""

    BAD_SYNTAX = "bad_syntax"
    DUPLICATE_KEY = "duplicate_key"
    DATA_INTEGRITY_VIOLATION = "data_integrity_violation"
    PERMISSION_DENIED = "permission_denied"
    CONNECTION_FAILURE = "connection_failure"
    INVALID_RESULT_ACCESS = "invalid_result_access"
    UNCATEGORIZED = "uncategorized"


RETRYABLE_CATEGORIES = frozenset({ErrorCategory.CONNECTION_FAILURE})


class ClassifiedError(BaseModel):
    """Classified failure of a single database call.

    Produced once per failed call and handed to the caller, which decides
    whether to surface, retry or abort based on ``category``.
    """

    model_config = ConfigDict(frozen=True)

    category: ErrorCategory = Field(..., description="Provider-agnostic error category")
    vendor_code: Optional[int] = Field(
        None, description="Raw numeric code reported by the driver, if any"
    )
    native_message: str = Field("", description="Message as reported by the driver")
    failed_statement: Optional[str] = Field(None, description="Statement that failed")
    sql_state: Optional[str] = Field(None, description="Five-character SQL state, if reported")
    vendor: Optional[str] = Field(None, description="Vendor whose code table classified the error")

    @property
    def is_retryable(self) -> bool:
        """Return True when a caller may reasonably retry the operation."""
        return self.category in RETRYABLE_CATEGORIES

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for logs and telemetry."""
        payload = self.model_dump(mode="json", exclude_none=True)
        payload["is_retryable"] = self.is_retryable
        return payload
