"""Translate raw driver failures into classified errors.

Translation is pure: nothing here logs or retries, and an unknown code is
never an error. Telemetry for a classified error is emitted separately by
``dal.error_classification``.
"""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Iterator, Optional

from common.models.error_metadata import ClassifiedError, ErrorCategory
from dal.error_codes import ErrorCodeRegistry, get_registry

_NETWORK_ERRORS = (ConnectionError, socket.gaierror, socket.herror)

# Wrapping layers (SQLAlchemy and friends) keep the driver error on ``orig``.
_WRAPPED_ATTRS = ("orig",)


@dataclass(frozen=True)
class FailureReport:
    """What a driver failure tells us, independent of the driver."""

    vendor_code: Optional[int]
    message: str
    sql_state: Optional[str] = None
    network_failure: bool = False


def translate(
    vendor_code: Optional[int],
    message: str,
    statement: Optional[str] = None,
    *,
    sql_state: Optional[str] = None,
    registry: Optional[ErrorCodeRegistry] = None,
) -> ClassifiedError:
    """Classify a raw vendor code reported by the driver."""
    registry = registry or get_registry()
    return ClassifiedError(
        category=registry.lookup(vendor_code, sql_state),
        vendor_code=vendor_code,
        native_message=message or "",
        failed_statement=statement,
        sql_state=sql_state,
        vendor=registry.vendor,
    )


def translate_exception(
    exc: BaseException,
    statement: Optional[str] = None,
    *,
    registry: Optional[ErrorCodeRegistry] = None,
) -> ClassifiedError:
    """Classify a driver exception, unwrapping chained and wrapped causes."""
    report = extract_failure_report(exc)
    classified = translate(
        report.vendor_code,
        report.message,
        statement,
        sql_state=report.sql_state,
        registry=registry,
    )
    if report.network_failure and classified.category == ErrorCategory.UNCATEGORIZED:
        return classified.model_copy(update={"category": ErrorCategory.CONNECTION_FAILURE})
    return classified


def extract_failure_report(exc: BaseException) -> FailureReport:
    """Find the vendor code, SQL state and message behind ``exc``.

    The first exception in the chain carrying a vendor code wins. Network
    errors anywhere in the chain flag the report even when a driver wrapped
    them in its own exception type.
    """
    vendor_code: Optional[int] = None
    sql_state: Optional[str] = None
    message: Optional[str] = None
    network_failure = False

    for node in _iter_chain(exc):
        if isinstance(node, _NETWORK_ERRORS):
            network_failure = True
        if vendor_code is None:
            code = _vendor_code_of(node)
            if code is not None:
                vendor_code = code
                message = _message_of(node)
        if sql_state is None:
            sql_state = _sql_state_of(node)

    if message is None:
        message = _message_of(exc)
    return FailureReport(
        vendor_code=vendor_code,
        message=message,
        sql_state=sql_state,
        network_failure=network_failure,
    )


def _iter_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    pending = [exc]
    while pending:
        node = pending.pop(0)
        if node is None or id(node) in seen:
            continue
        seen.add(id(node))
        yield node
        for attr in _WRAPPED_ATTRS:
            wrapped = getattr(node, attr, None)
            if isinstance(wrapped, BaseException):
                pending.append(wrapped)
        pending.append(node.__cause__)
        if not node.__suppress_context__:
            pending.append(node.__context__)


def _as_code(value: object) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _vendor_code_of(node: BaseException) -> Optional[int]:
    # raised by the DAL itself, e.g. the result reader
    code = _as_code(getattr(node, "vendor_code", None))
    if code is not None:
        return code
    # hdbcli
    code = _as_code(getattr(node, "errorcode", None))
    if code is not None:
        return code
    # sqlite3 (3.11+)
    code = _as_code(getattr(node, "sqlite_errorcode", None))
    if code is not None:
        return code
    # errno and args[0] mean OS error numbers on OSError.
    if isinstance(node, OSError):
        return None
    # mysql-connector
    code = _as_code(getattr(node, "errno", None))
    if code is not None:
        return code
    # PyMySQL / mysqlclient: args == (code, message)
    args = getattr(node, "args", ())
    if len(args) >= 2 and isinstance(args[1], str):
        return _as_code(args[0])
    return None


def _sql_state_of(node: BaseException) -> Optional[str]:
    for attr in ("sqlstate", "pgcode"):
        value = getattr(node, attr, None)
        if isinstance(value, str) and value.strip():
            return value.strip().upper()
    return None


def _message_of(node: BaseException) -> str:
    text = getattr(node, "errortext", None)
    if isinstance(text, str) and text:
        return text
    args = getattr(node, "args", ())
    if len(args) >= 2 and _as_code(args[0]) is not None and isinstance(args[1], str):
        return args[1]
    return str(node)
