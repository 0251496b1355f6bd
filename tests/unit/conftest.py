"""Unit test environment helpers."""

import pytest

from dal.error_codes import reset_registry_cache


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Run every unit test against the packaged tables and default vendor."""
    for var in ("ERROR_CODE_VENDOR", "ERROR_CODE_TABLE_DIR", "ERROR_CODE_OVERRIDES"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_METRICS_ENDPOINT", raising=False)
    for var in ("OTEL_METRICS_EXPORTER", "OTEL_DISABLE_EXPORTER"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.delenv("DAL_OBSERVABILITY_METRICS_ENABLED", raising=False)
    monkeypatch.delenv("DAL_TRACE_QUERIES", raising=False)
    monkeypatch.delenv("DAL_CLASSIFIED_ERROR_TELEMETRY", raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_registry_state():
    """Drop cached registries so env changes in one test never leak into another."""
    reset_registry_cache()
    yield
    reset_registry_cache()
