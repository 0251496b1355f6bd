"""Tests for the classified-error statement executor base."""

import asyncio
import logging
from unittest.mock import patch

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from common.models.error_metadata import ErrorCategory
from dal.query_result import QueryResult
from dal.statement_executor import ClassifiedDatabaseError, StatementExecutor


class _DriverError(Exception):
    def __init__(self, errorcode: int, errortext: str) -> None:
        super().__init__(errorcode, errortext)
        self.errorcode = errorcode
        self.errortext = errortext


class _FakeExecutor(StatementExecutor):
    vendor = "hana"
    driver_errors = (_DriverError,)

    def __init__(self, failures=None, connect_error=None) -> None:
        super().__init__()
        self.failures = dict(failures or {})
        self.connect_error = connect_error
        self.connect_calls = 0
        self.closed = False
        self.statements = []

    async def _connect(self) -> None:
        self.connect_calls += 1
        await asyncio.sleep(0)
        if self.connect_error is not None:
            raise self.connect_error

    async def _close(self) -> None:
        self.closed = True

    async def _execute(self, sql, params) -> int:
        self.statements.append(sql)
        if sql in self.failures:
            raise self.failures[sql]
        return 1

    async def _fetch(self, sql, params) -> QueryResult:
        self.statements.append(sql)
        if sql in self.failures:
            raise self.failures[sql]
        return QueryResult(columns=["STR_"], rows=[("test",)])


@pytest.mark.asyncio
async def test_connects_lazily_once() -> None:
    executor = _FakeExecutor()
    assert executor.connected is False

    assert await executor.execute("INSERT INTO T VALUES (1)") == 1
    await executor.execute("INSERT INTO T VALUES (2)")

    assert executor.connect_calls == 1
    assert executor.connected is True


@pytest.mark.asyncio
async def test_concurrent_first_calls_open_one_connection() -> None:
    executor = _FakeExecutor()

    results = await asyncio.gather(
        executor.execute("INSERT INTO T VALUES (1)"),
        executor.execute("INSERT INTO T VALUES (2)"),
        executor.query("SELECT STR_ FROM T"),
    )

    assert results[:2] == [1, 1]
    assert executor.connect_calls == 1
    await executor.close()
    assert executor.closed is True


@pytest.mark.asyncio
async def test_driver_error_is_classified_and_chained() -> None:
    cause = _DriverError(301, "unique constraint violated")
    executor = _FakeExecutor(failures={"INSERT INTO T VALUES (1)": cause})

    with pytest.raises(ClassifiedDatabaseError) as excinfo:
        await executor.execute("INSERT INTO T VALUES (1)")

    exc = excinfo.value
    assert exc.category == ErrorCategory.DUPLICATE_KEY
    assert exc.classified.failed_statement == "INSERT INTO T VALUES (1)"
    assert exc.classified.vendor == "hana"
    assert exc.__cause__ is cause
    assert str(exc) == "[duplicate_key] unique constraint violated"


@pytest.mark.asyncio
async def test_connect_failure_is_classified_and_retried_on_next_call() -> None:
    executor = _FakeExecutor(connect_error=_DriverError(-10709, "Connection failed"))

    with pytest.raises(ClassifiedDatabaseError) as excinfo:
        await executor.execute("SELECT 1 FROM DUMMY")

    assert excinfo.value.category == ErrorCategory.CONNECTION_FAILURE
    assert excinfo.value.classified.is_retryable is True
    assert executor.connected is False

    executor.connect_error = None
    await executor.execute("SELECT 1 FROM DUMMY")
    assert executor.connect_calls == 2


@pytest.mark.asyncio
async def test_explicit_connect_classifies_network_errors() -> None:
    executor = _FakeExecutor(connect_error=ConnectionRefusedError(111, "Connection refused"))

    with pytest.raises(ClassifiedDatabaseError) as excinfo:
        await executor.connect()

    assert excinfo.value.category == ErrorCategory.CONNECTION_FAILURE
    assert excinfo.value.classified.failed_statement is None


@pytest.mark.asyncio
async def test_query_returns_result_or_extracted_value() -> None:
    executor = _FakeExecutor()

    result = await executor.query("SELECT STR_ FROM T")
    assert result.columns == ["STR_"]

    value = await executor.query("SELECT STR_ FROM T", lambda rs: rs.first("STR_"))
    assert value == "test"


@pytest.mark.asyncio
@pytest.mark.parametrize("column", ["STR__", 7])
async def test_extractor_invalid_column_is_classified(column) -> None:
    executor = _FakeExecutor()

    with pytest.raises(ClassifiedDatabaseError) as excinfo:
        await executor.query("SELECT STR_ FROM T", lambda rs: rs.first(column))

    assert excinfo.value.category == ErrorCategory.INVALID_RESULT_ACCESS


@pytest.mark.asyncio
async def test_non_driver_errors_propagate_untouched() -> None:
    executor = _FakeExecutor()

    def _broken(_rs):
        raise TypeError("extractor bug")

    with pytest.raises(TypeError, match="extractor bug"):
        await executor.query("SELECT STR_ FROM T", _broken)


@pytest.mark.asyncio
async def test_execute_quietly_returns_classified_error() -> None:
    executor = _FakeExecutor(
        failures={"drop table TEST_CHILD_ROW cascade": _DriverError(259, "invalid table name")}
    )

    classified = await executor.execute_quietly("drop table TEST_CHILD_ROW cascade")
    assert classified.category == ErrorCategory.BAD_SYNTAX
    assert await executor.execute_quietly("drop table OTHER") is None


@pytest.mark.asyncio
async def test_failures_emit_telemetry(caplog) -> None:
    executor = _FakeExecutor(
        failures={"DROP USER spring": _DriverError(258, "insufficient privilege")}
    )

    with caplog.at_level(logging.ERROR):
        with pytest.raises(ClassifiedDatabaseError):
            await executor.execute("DROP USER spring")

    record = next(r for r in caplog.records if r.message == "dal_error_classified")
    assert record.operation == "dal.statement.execute"
    assert record.error_category == "permission_denied"
    assert record.statement_kind == "DROP"


@pytest.mark.asyncio
async def test_async_context_manager_closes() -> None:
    async with _FakeExecutor() as executor:
        await executor.execute("SELECT 1")
    assert executor.closed is True
    assert executor.connected is False


@pytest.mark.asyncio
async def test_close_without_connection_is_noop() -> None:
    executor = _FakeExecutor()
    await executor.close()
    assert executor.closed is False


@pytest.mark.asyncio
async def test_statement_span_marks_error(monkeypatch: pytest.MonkeyPatch) -> None:
    """Failed statements leave an error-status span when tracing is enabled."""
    monkeypatch.setenv("DAL_TRACE_QUERIES", "true")
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    executor = _FakeExecutor(failures={"INSERT INTO T VALUES (1)": _DriverError(301, "dup")})

    with patch("opentelemetry.trace.get_tracer") as mock_get_tracer:
        mock_get_tracer.side_effect = lambda name: provider.get_tracer(name)
        with pytest.raises(ClassifiedDatabaseError):
            await executor.execute("INSERT INTO T VALUES (1)")

    spans = exporter.get_finished_spans()
    assert len(spans) == 1
    span = spans[0]
    assert span.name == "dal.statement.execute"
    assert span.attributes["db.system"] == "hana"
    assert span.attributes["db.operation"] == "INSERT"
    assert span.attributes["db.status"] == "error"
