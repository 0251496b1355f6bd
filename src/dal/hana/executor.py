import asyncio
from typing import Any, Dict, Optional

from hdbcli import dbapi

from common.config.env import get_env_int, get_env_str
from dal.error_codes import ErrorCodeRegistry
from dal.query_result import QueryResult
from dal.statement_executor import Params, StatementExecutor

DEFAULT_PORT = 30015


class HanaStatementExecutor(StatementExecutor):
    """StatementExecutor over a single hdbcli connection.

    hdbcli is synchronous; each call runs in a worker thread so the event
    loop stays free while HANA works.
    """

    vendor = "hana"
    driver_errors = (dbapi.Error,)

    def __init__(
        self,
        address: str,
        port: int = DEFAULT_PORT,
        user: Optional[str] = None,
        password: Optional[str] = None,
        *,
        connect_kwargs: Optional[Dict[str, Any]] = None,
        registry: Optional[ErrorCodeRegistry] = None,
    ) -> None:
        """Initialize the executor; the connection opens on first use."""
        super().__init__(registry)
        self._address = address
        self._port = port
        self._user = user
        self._password = password
        self._connect_kwargs = dict(connect_kwargs or {})
        self._conn: Optional[dbapi.Connection] = None

    @classmethod
    def from_env(cls, **overrides: Any) -> "HanaStatementExecutor":
        """Build an executor from HANA_HOST, HANA_PORT, HANA_USER and HANA_PASSWORD."""
        settings: Dict[str, Any] = {
            "address": get_env_str("HANA_HOST", "localhost"),
            "port": get_env_int("HANA_PORT", DEFAULT_PORT),
            "user": get_env_str("HANA_USER"),
            "password": get_env_str("HANA_PASSWORD"),
        }
        settings.update(overrides)
        return cls(**settings)

    @property
    def user(self) -> Optional[str]:
        return self._user

    async def _connect(self) -> None:
        self._conn = await asyncio.to_thread(
            dbapi.connect,
            address=self._address,
            port=self._port,
            user=self._user,
            password=self._password,
            **self._connect_kwargs,
        )

    async def _close(self) -> None:
        if self._conn is not None:
            conn, self._conn = self._conn, None
            await asyncio.to_thread(conn.close)

    async def _execute(self, sql: str, params: Params) -> int:
        return await asyncio.to_thread(_execute, self._conn, sql, params)

    async def _fetch(self, sql: str, params: Params) -> QueryResult:
        return await asyncio.to_thread(_fetch, self._conn, sql, params)


def _execute(conn: "dbapi.Connection", sql: str, params: Params) -> int:
    cursor = conn.cursor()
    try:
        if params:
            cursor.execute(sql, params)
        else:
            cursor.execute(sql)
        return cursor.rowcount
    finally:
        cursor.close()


def _fetch(conn: "dbapi.Connection", sql: str, params: Params) -> QueryResult:
    cursor = conn.cursor()
    try:
        if params:
            cursor.execute(sql, params)
        else:
            cursor.execute(sql)
        rows = cursor.fetchall()
        columns = [desc[0] for desc in cursor.description or ()]
        return QueryResult(
            columns=columns, rows=[tuple(row) for row in rows], rowcount=len(rows)
        )
    finally:
        cursor.close()
