"""Vendor normalization and environment variable helpers.

This module provides utilities for reading and normalizing the vendor
names used to select an error-code table.

Canonical Vendor IDs (internal, lowercase):
- "hana" - SAP HANA
- "sqlite" - SQLite
- "mysql" - MySQL / MariaDB

User-Facing Aliases (case-insensitive):
- SAP HANA: "hana", "hdb", "sap_hana", "sap hana", "saphana"
- SQLite: "sqlite", "sqlite3"
- MySQL: "mysql", "mariadb"

Example:
    >>> normalize_vendor("HDB")
    'hana'
    >>> normalize_vendor("SAP HANA")
    'hana'
    >>> get_vendor_env("ERROR_CODE_VENDOR", "hana", {"hana", "sqlite", "mysql"})
    'hana'
"""

from typing import Set

# Alias mappings: user-friendly names -> canonical vendor ID
VENDOR_ALIASES: dict[str, str] = {
    # SAP HANA aliases
    "hana": "hana",
    "hdb": "hana",
    "sap_hana": "hana",
    "sap hana": "hana",
    "saphana": "hana",
    # SQLite aliases
    "sqlite": "sqlite",
    "sqlite3": "sqlite",
    # MySQL aliases
    "mysql": "mysql",
    "mariadb": "mysql",
}


def normalize_vendor(value: str) -> str:
    """Normalize a vendor value to its canonical form.

    Strips surrounding whitespace, lowercases, and maps known aliases to
    canonical vendor IDs. Unknown values pass through unchanged; validation
    happens separately.

    Args:
        value: Raw vendor value (e.g., "SAP HANA", "hdb", "SQLite3").

    Returns:
        Canonical vendor ID or the lowercased/stripped input if no alias
        mapping exists.

    Example:
        >>> normalize_vendor("  hdb  ")
        'hana'
        >>> normalize_vendor("custom-vendor")
        'custom-vendor'
    """
    cleaned = value.strip().lower()
    return VENDOR_ALIASES.get(cleaned, cleaned)


def get_vendor_env(var_name: str, default: str, allowed: Set[str]) -> str:
    """Read and validate a vendor environment variable.

    Args:
        var_name: Name of the environment variable (e.g., "ERROR_CODE_VENDOR").
        default: Default canonical vendor ID if the variable is not set.
        allowed: Set of valid canonical vendor IDs.

    Returns:
        The normalized, validated canonical vendor ID.

    Raises:
        ValueError: If the normalized value is not in the allowed set.
    """
    from common.config.env import get_env_str

    raw_value = get_env_str(var_name)

    if raw_value is None:
        return default

    normalized = normalize_vendor(raw_value)

    if normalized not in allowed:
        allowed_list = ", ".join(sorted(allowed))
        raise ValueError(
            f"Invalid vendor for {var_name}: '{raw_value}'. " f"Allowed values: {allowed_list}"
        )

    return normalized
