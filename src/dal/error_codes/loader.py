"""Load versioned vendor error-code tables into registries."""

from __future__ import annotations

import functools
import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from common.config.env import get_env_list, get_env_str
from common.models.error_metadata import ErrorCategory
from dal.error_codes.registry import ErrorCodeEntry, ErrorCodeRegistry
from dal.util.env import get_vendor_env, normalize_vendor

logger = logging.getLogger(__name__)

DEFAULT_VENDOR = "hana"
SUPPORTED_VENDORS = frozenset({"hana", "sqlite", "mysql"})

_TABLES_PACKAGE = "dal.error_codes"


class CodeTableEntry(BaseModel):
    """One documented vendor code within a category block."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    code: int
    description: str = ""


class VendorCodeTable(BaseModel):
    """Versioned vendor code table as shipped in ``tables/<vendor>.json``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    vendor: str
    version: str = ""
    description: str = ""
    primary_code_mask: Optional[int] = Field(None, ge=1)
    categories: Dict[ErrorCategory, List[CodeTableEntry]] = Field(default_factory=dict)
    sqlstate_prefixes: Dict[str, ErrorCategory] = Field(default_factory=dict)

    @field_validator("vendor")
    @classmethod
    def _normalize_vendor(cls, value: str) -> str:
        return normalize_vendor(value)

    @field_validator("sqlstate_prefixes")
    @classmethod
    def _check_prefixes(cls, value: Dict[str, ErrorCategory]) -> Dict[str, ErrorCategory]:
        for prefix in value:
            if not 1 <= len(prefix) <= 5 or not prefix.isalnum():
                raise ValueError(f"Invalid SQL state prefix: '{prefix}'")
        return value

    def iter_entries(self) -> List[ErrorCodeEntry]:
        """Flatten the category blocks into registry entries."""
        return [
            ErrorCodeEntry(item.code, category, item.description)
            for category, items in self.categories.items()
            for item in items
        ]


def parse_overrides(items: Optional[List[str]]) -> Dict[int, ErrorCategory]:
    """Parse ``code=category`` override items.

    Example:
        >>> parse_overrides(["274=data_integrity_violation"])
        {274: <ErrorCategory.DATA_INTEGRITY_VIOLATION: 'data_integrity_violation'>}
    """
    overrides: Dict[int, ErrorCategory] = {}
    for item in items or []:
        code, sep, category = item.partition("=")
        if not sep:
            raise ValueError(f"Invalid error code override '{item}'; expected code=category.")
        try:
            overrides[int(code.strip())] = ErrorCategory(category.strip().lower())
        except ValueError:
            allowed = ", ".join(c.value for c in ErrorCategory)
            raise ValueError(
                f"Invalid error code override '{item}'. Categories: {allowed}"
            ) from None
    return overrides


def _read_table_payload(vendor: str, table_dir: Optional[str]) -> Any:
    filename = f"{vendor}.json"
    if table_dir:
        candidate = Path(table_dir) / filename
        if candidate.is_file():
            logger.info("Loading error code table from %s", candidate)
            return json.loads(candidate.read_text(encoding="utf-8"))

    resource = resources.files(_TABLES_PACKAGE).joinpath("tables").joinpath(filename)
    if not resource.is_file():
        raise ValueError(f"No error code table for vendor '{vendor}'.")
    return json.loads(resource.read_text(encoding="utf-8"))


def load_vendor_table(vendor: str, table_dir: Optional[str] = None) -> VendorCodeTable:
    """Load and validate the code table for ``vendor``.

    ``table_dir`` (or ``ERROR_CODE_TABLE_DIR``) is searched before the
    packaged tables.
    """
    canonical = normalize_vendor(vendor)
    if table_dir is None:
        table_dir = get_env_str("ERROR_CODE_TABLE_DIR")

    payload = _read_table_payload(canonical, table_dir)
    try:
        table = VendorCodeTable.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Malformed error code table for '{canonical}': {exc}") from exc

    if table.vendor != canonical:
        raise ValueError(
            f"Error code table for '{canonical}' declares vendor '{table.vendor}'."
        )
    return table


def build_registry(
    table: VendorCodeTable, overrides: Optional[Dict[int, ErrorCategory]] = None
) -> ErrorCodeRegistry:
    """Build a registry from a table, applying per-code overrides."""
    entries = {entry.vendor_code: entry for entry in _checked_entries(table)}
    for code, category in (overrides or {}).items():
        previous = entries.get(code)
        description = previous.description if previous else ""
        entries[code] = ErrorCodeEntry(code, category, description)
        logger.info(
            "Error code override applied",
            extra={
                "vendor": table.vendor,
                "vendor_code": code,
                "category": category.value,
                "previous_category": previous.category.value if previous else None,
            },
        )

    return ErrorCodeRegistry(
        table.vendor,
        entries.values(),
        version=table.version,
        sqlstate_prefixes=table.sqlstate_prefixes,
        primary_code_mask=table.primary_code_mask,
    )


def _checked_entries(table: VendorCodeTable) -> List[ErrorCodeEntry]:
    # Run the raw table through the registry once so conflicts surface before
    # overrides can mask them.
    entries = table.iter_entries()
    ErrorCodeRegistry(table.vendor, entries)
    return entries


@functools.lru_cache(maxsize=None)
def _cached_registry(vendor: str) -> ErrorCodeRegistry:
    table = load_vendor_table(vendor)
    overrides = parse_overrides(get_env_list("ERROR_CODE_OVERRIDES"))
    registry = build_registry(table, overrides)
    logger.info(
        "Error code registry loaded",
        extra={"vendor": registry.vendor, "version": registry.version, "entries": len(registry)},
    )
    return registry


def get_registry(vendor: Optional[str] = None) -> ErrorCodeRegistry:
    """Return the process-wide registry for ``vendor``.

    Defaults to ``ERROR_CODE_VENDOR`` (``hana`` when unset). Built on first
    use and shared afterwards.
    """
    if vendor is None:
        canonical = get_vendor_env("ERROR_CODE_VENDOR", DEFAULT_VENDOR, set(SUPPORTED_VENDORS))
    else:
        canonical = normalize_vendor(vendor)
    return _cached_registry(canonical)


def reset_registry_cache() -> None:
    """Drop cached registries so the next lookup reloads configuration."""
    _cached_registry.cache_clear()
