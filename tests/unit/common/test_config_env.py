"""Tests for typed environment variable parsing helpers."""

import os
from unittest.mock import patch

import pytest

from common.config.env import get_env_bool, get_env_int, get_env_list, get_env_str


def test_get_env_str():
    """Test string parsing."""
    with patch.dict(os.environ, {"ERROR_CODE_VENDOR": "hana"}):
        assert get_env_str("ERROR_CODE_VENDOR") == "hana"
        assert get_env_str("HANA_HOST", default="localhost") == "localhost"
        assert get_env_str("ERROR_CODE_VENDOR", required=True) == "hana"

    with pytest.raises(KeyError):
        get_env_str("MISSING_ERROR_CODE_SETTING", required=True)


def test_get_env_int():
    """Test integer parsing."""
    with patch.dict(os.environ, {"HANA_PORT": "30015"}):
        assert get_env_int("HANA_PORT") == 30015
        assert get_env_int("MISSING_PORT", default=39015) == 39015

    with patch.dict(os.environ, {"HANA_PORT": "not_a_port"}):
        with pytest.raises(ValueError, match="must be an integer"):
            get_env_int("HANA_PORT")


def test_get_env_bool():
    """Test boolean parsing."""
    truthy = ["true", "1", "yes", "on", "TRUE", "Yes"]
    falsey = ["false", "0", "no", "off", "", "FALSE", "No"]

    for val in truthy:
        with patch.dict(os.environ, {"DAL_TRACE_QUERIES": val}):
            assert get_env_bool("DAL_TRACE_QUERIES") is True

    for val in falsey:
        with patch.dict(os.environ, {"DAL_TRACE_QUERIES": val}):
            assert get_env_bool("DAL_TRACE_QUERIES") is False

    assert get_env_bool("MISSING_FLAG", default=True) is True

    with patch.dict(os.environ, {"DAL_TRACE_QUERIES": "maybe"}):
        with pytest.raises(ValueError):
            get_env_bool("DAL_TRACE_QUERIES")


def test_get_env_list():
    """Test list parsing."""
    with patch.dict(os.environ, {"ERROR_CODE_OVERRIDES": "274=bad_syntax, 303=uncategorized "}):
        assert get_env_list("ERROR_CODE_OVERRIDES") == ["274=bad_syntax", "303=uncategorized"]

    with patch.dict(os.environ, {"ERROR_CODE_OVERRIDES": "1;2;3"}):
        assert get_env_list("ERROR_CODE_OVERRIDES", separator=";") == ["1", "2", "3"]

    assert get_env_list("MISSING_LIST", default=["x"]) == ["x"]

    with patch.dict(os.environ, {"ERROR_CODE_OVERRIDES": ", , , "}):
        assert get_env_list("ERROR_CODE_OVERRIDES") == []
