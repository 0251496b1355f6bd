"""Data Abstraction Layer (DAL) for vendor SQL error classification.

This package exposes the error-code registry, the translator that turns
driver failures into classified errors, and the statement executors that
surface those classified errors to callers.
"""

from dal.error_translation import translate, translate_exception
from dal.statement_executor import ClassifiedDatabaseError, StatementExecutor

__all__ = [
    "ClassifiedDatabaseError",
    "StatementExecutor",
    "translate",
    "translate_exception",
]
