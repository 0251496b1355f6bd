import pytest


def pytest_collection_modifyitems(items):
    """Mark collected tests in this directory as integration tests."""
    for item in items:
        if "tests/integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(autouse=True)
def _fresh_registries():
    """Registries pick up ERROR_CODE_* settings of the integration environment."""
    from dal.error_codes import reset_registry_cache

    reset_registry_cache()
    yield
    reset_registry_cache()
