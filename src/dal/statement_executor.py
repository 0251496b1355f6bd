"""Thin statement execution wrapper that surfaces classified errors.

Executors connect lazily on first use, run one statement at a time and turn
every driver failure into a ``ClassifiedDatabaseError`` carrying the
``ClassifiedError`` built by the translator. Callers branch on
``exc.classified.category`` instead of on driver exception types.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple, Type, TypeVar, Union

from common.models.error_metadata import ClassifiedError, ErrorCategory
from dal.error_classification import emit_classified_error
from dal.error_codes import ErrorCodeRegistry, get_registry
from dal.error_translation import translate_exception
from dal.query_result import InvalidResultAccessError, QueryResult
from dal.tracing import trace_query_operation

logger = logging.getLogger(__name__)

T = TypeVar("T")

Params = Optional[Union[Sequence[Any], dict]]
ResultExtractor = Callable[[QueryResult], T]


class ClassifiedDatabaseError(Exception):
    """A database call failed; ``classified`` says how."""

    def __init__(self, classified: ClassifiedError) -> None:
        super().__init__(f"[{classified.category.value}] {classified.native_message}")
        self.classified = classified

    @property
    def category(self) -> ErrorCategory:
        return self.classified.category


class StatementExecutor(ABC):
    """Base class for vendor statement executors."""

    vendor: str = ""
    execution_model: str = "sync"
    # Driver exception types that are translated; anything else propagates untouched.
    driver_errors: Tuple[Type[BaseException], ...] = ()

    def __init__(self, registry: Optional[ErrorCodeRegistry] = None) -> None:
        self._registry = registry or get_registry(self.vendor)
        self._connected = False
        self._connect_lock = asyncio.Lock()

    @property
    def registry(self) -> ErrorCodeRegistry:
        return self._registry

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        """Open the underlying connection; failures are classified."""
        await self._run_classified("dal.statement.connect", None, self._ensure_connected())

    async def close(self) -> None:
        async with self._connect_lock:
            if not self._connected:
                return
            self._connected = False
            await self._close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def execute(self, sql: str, params: Params = None) -> int:
        """Execute a statement and return the affected row count."""

        async def _run() -> int:
            await self._ensure_connected()
            return await self._execute(sql, params)

        return await self._run_classified("dal.statement.execute", sql, _run())

    async def query(
        self,
        sql: str,
        extractor: Optional[ResultExtractor] = None,
        params: Params = None,
    ) -> Any:
        """Run a query and return the result, or what ``extractor`` makes of it.

        Invalid column references made by the extractor are classified the
        same way as driver failures.
        """

        async def _run() -> Any:
            await self._ensure_connected()
            result = await self._fetch(sql, params)
            return extractor(result) if extractor is not None else result

        return await self._run_classified("dal.statement.query", sql, _run())

    async def execute_quietly(self, sql: str, params: Params = None) -> Optional[ClassifiedError]:
        """Execute a statement, returning the classified error instead of raising."""
        try:
            await self.execute(sql, params)
        except ClassifiedDatabaseError as exc:
            return exc.classified
        return None

    async def _ensure_connected(self) -> None:
        if self._connected:
            return
        # Concurrent first calls share one connection.
        async with self._connect_lock:
            if self._connected:
                return
            await self._connect()
            self._connected = True
        logger.debug("Opened %s connection", self.vendor)

    async def _run_classified(self, operation: str, sql: Optional[str], work: Awaitable[T]) -> T:
        try:
            return await trace_query_operation(
                operation,
                vendor=self.vendor,
                execution_model=self.execution_model,
                sql=sql,
                operation=work,
            )
        except (InvalidResultAccessError, OSError, *self.driver_errors) as exc:
            classified = translate_exception(exc, sql, registry=self._registry)
            emit_classified_error(classified, operation)
            raise ClassifiedDatabaseError(classified) from exc

    @abstractmethod
    async def _connect(self) -> None: ...

    @abstractmethod
    async def _close(self) -> None: ...

    @abstractmethod
    async def _execute(self, sql: str, params: Params) -> int: ...

    @abstractmethod
    async def _fetch(self, sql: str, params: Params) -> QueryResult: ...
