import sqlite3
from typing import Optional

import aiosqlite

from dal.error_codes import ErrorCodeRegistry
from dal.query_result import QueryResult
from dal.statement_executor import Params, StatementExecutor


class SqliteStatementExecutor(StatementExecutor):
    """StatementExecutor over a single aiosqlite connection."""

    vendor = "sqlite"
    driver_errors = (sqlite3.Error,)

    def __init__(
        self,
        db_path: Optional[str] = None,
        *,
        read_only: bool = False,
        foreign_keys: bool = True,
        registry: Optional[ErrorCodeRegistry] = None,
    ) -> None:
        """Initialize the executor; the connection opens on first use."""
        super().__init__(registry)
        self._db_path = db_path or ":memory:"
        self._read_only = read_only
        self._foreign_keys = foreign_keys
        self._conn: Optional[aiosqlite.Connection] = None

    async def _connect(self) -> None:
        db_path, uri = _resolve_sqlite_path(self._db_path, self._read_only)
        conn = await aiosqlite.connect(db_path, uri=uri, isolation_level=None)
        if self._foreign_keys:
            try:
                await conn.execute("PRAGMA foreign_keys = ON")
            except sqlite3.Error:
                await conn.close()
                raise
        self._conn = conn

    async def _close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    async def _execute(self, sql: str, params: Params) -> int:
        async with self._conn.execute(sql, params or ()) as cursor:
            return cursor.rowcount

    async def _fetch(self, sql: str, params: Params) -> QueryResult:
        async with self._conn.execute(sql, params or ()) as cursor:
            rows = await cursor.fetchall()
            columns = [desc[0] for desc in cursor.description or ()]
        return QueryResult(
            columns=columns, rows=[tuple(row) for row in rows], rowcount=len(rows)
        )


def _resolve_sqlite_path(db_path: str, read_only: bool) -> tuple[str, bool]:
    if read_only and db_path not in (":memory:", ""):
        return f"file:{db_path}?mode=ro", True
    return db_path, False
