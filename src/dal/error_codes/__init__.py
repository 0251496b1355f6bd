"""Vendor error-code tables and the registry built from them."""

from dal.error_codes.loader import (
    VendorCodeTable,
    build_registry,
    get_registry,
    load_vendor_table,
    parse_overrides,
    reset_registry_cache,
)
from dal.error_codes.registry import RESULT_ACCESS_CODE, ErrorCodeEntry, ErrorCodeRegistry

__all__ = [
    "RESULT_ACCESS_CODE",
    "ErrorCodeEntry",
    "ErrorCodeRegistry",
    "VendorCodeTable",
    "build_registry",
    "get_registry",
    "load_vendor_table",
    "parse_overrides",
    "reset_registry_cache",
]
