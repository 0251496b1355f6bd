from __future__ import annotations

import logging

from common.config.env import get_env_bool
from common.models.error_metadata import ClassifiedError, ErrorCategory
from common.observability.metrics import dal_metrics
from dal.util.statement_kind import statement_kind

logger = logging.getLogger(__name__)


# Recovery hints for each error category
RECOVERY_HINTS: dict[ErrorCategory, str] = {
    ErrorCategory.BAD_SYNTAX: "Review SQL syntax; the statement may reference invalid identifiers",
    ErrorCategory.DUPLICATE_KEY: "A row with the same key already exists; do not retry",
    ErrorCategory.DATA_INTEGRITY_VIOLATION: (
        "Check referenced keys and value formats against table constraints"
    ),
    ErrorCategory.PERMISSION_DENIED: "Verify credentials and privilege grants",
    ErrorCategory.CONNECTION_FAILURE: "Check network configuration and database availability",
    ErrorCategory.INVALID_RESULT_ACCESS: "Read only columns present in the result set",
    ErrorCategory.UNCATEGORIZED: "Inspect error details for root cause",
}


def recovery_hint(category: ErrorCategory) -> str:
    """Return the operator-facing hint for a category."""
    return RECOVERY_HINTS.get(category, RECOVERY_HINTS[ErrorCategory.UNCATEGORIZED])


def emit_classified_error(classified: ClassifiedError, operation: str) -> None:
    """Emit structured telemetry for a classified error when enabled.

    Sets error.classification.* span attributes for observability dashboards,
    bumps the classified-error counter and logs a ``dal_error_classified``
    record. The statement text itself is never attached, only its kind.
    """
    if not get_env_bool("DAL_CLASSIFIED_ERROR_TELEMETRY", True):
        return

    category = classified.category.value
    vendor = classified.vendor or "unknown"
    hint = recovery_hint(classified.category)
    kind = statement_kind(classified.failed_statement)

    try:
        from opentelemetry import trace

        span = trace.get_current_span()
        if span and span.is_recording():
            span.set_attribute("error.classification.category", category)
            span.set_attribute("error.classification.vendor", vendor)
            span.set_attribute("error.classification.operation", operation)
            span.set_attribute("error.classification.is_retryable", classified.is_retryable)
            span.set_attribute("error.classification.recovery_hint", hint)
            if classified.vendor_code is not None:
                span.set_attribute("error.classification.vendor_code", classified.vendor_code)
            span.add_event(
                "dal.error.classified",
                {
                    "vendor": vendor,
                    "category": category,
                    "operation": operation,
                    "statement_kind": kind,
                    "is_retryable": classified.is_retryable,
                },
            )
    except Exception as exc:
        logger.debug("Span annotation failed for classified error: %s", exc)

    dal_metrics.add_counter(
        "dal.errors.classified",
        description="Database errors by vendor and category",
        attributes={"vendor": vendor, "category": category, "operation": operation},
    )

    logger.error(
        "dal_error_classified",
        extra={
            "event": "dal_error_classified",
            "vendor": vendor,
            "operation": operation,
            "error_category": category,
            "vendor_code": classified.vendor_code,
            "sql_state": classified.sql_state,
            "statement_kind": kind,
            "is_retryable": classified.is_retryable,
            "recovery_hint": hint,
        },
    )
