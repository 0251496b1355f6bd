"""Environment-driven construction of statement executors.

Environment Variables:
    ERROR_CODE_VENDOR: Vendor whose executor and code table are used (default: "hana")
    SQLITE_DB_PATH: SQLite database path (default: ":memory:")
    HANA_HOST / HANA_PORT / HANA_USER / HANA_PASSWORD: SAP HANA connection settings

Example:
    >>> from dal.factory import create_statement_executor
    >>> executor = create_statement_executor("sqlite")
"""

import logging
from typing import Optional

from common.config.env import get_env_str
from dal.error_codes.loader import DEFAULT_VENDOR, SUPPORTED_VENDORS
from dal.statement_executor import StatementExecutor
from dal.util.env import get_vendor_env, normalize_vendor

logger = logging.getLogger(__name__)

EXECUTOR_VENDORS = frozenset({"hana", "sqlite"})


def create_statement_executor(vendor: Optional[str] = None) -> StatementExecutor:
    """Create an executor for ``vendor`` (or ``ERROR_CODE_VENDOR``).

    Driver imports are deferred so optional drivers are only needed when used.

    Raises:
        ValueError: If no executor exists for the vendor.
    """
    if vendor is None:
        canonical = get_vendor_env("ERROR_CODE_VENDOR", DEFAULT_VENDOR, set(SUPPORTED_VENDORS))
    else:
        canonical = normalize_vendor(vendor)

    if canonical == "sqlite":
        from dal.sqlite.executor import SqliteStatementExecutor

        executor: StatementExecutor = SqliteStatementExecutor(get_env_str("SQLITE_DB_PATH"))
    elif canonical == "hana":
        from dal.hana.executor import HanaStatementExecutor

        executor = HanaStatementExecutor.from_env()
    else:
        allowed = ", ".join(sorted(EXECUTOR_VENDORS))
        raise ValueError(f"No statement executor for vendor '{canonical}'. Allowed: {allowed}")

    logger.info("Created %s statement executor", canonical)
    return executor
