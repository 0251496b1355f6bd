"""Immutable vendor error-code registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from common.models.error_metadata import ErrorCategory

logger = logging.getLogger(__name__)

# Code reported by the result reader for a missing column name or ordinal.
# Matches the code HANA clients use for invalid result-set columns.
RESULT_ACCESS_CODE = -11210


@dataclass(frozen=True)
class ErrorCodeEntry:
    """A single vendor code assignment."""

    vendor_code: int
    category: ErrorCategory
    description: str = ""


class ErrorCodeRegistry:
    """Read-only mapping from vendor error codes to error categories.

    Lookups resolve the exact code first, then the primary code under
    ``primary_code_mask``, then the longest matching SQL-state prefix.
    Anything left over is ``UNCATEGORIZED``.
    """

    def __init__(
        self,
        vendor: str,
        entries: Iterable[ErrorCodeEntry],
        *,
        version: str = "",
        sqlstate_prefixes: Optional[Mapping[str, ErrorCategory]] = None,
        primary_code_mask: Optional[int] = None,
    ) -> None:
        """Build the registry, rejecting codes claimed by two categories."""
        self._vendor = vendor
        self._version = version
        self._primary_code_mask = primary_code_mask

        by_code: dict[int, ErrorCodeEntry] = {
            RESULT_ACCESS_CODE: ErrorCodeEntry(
                RESULT_ACCESS_CODE,
                ErrorCategory.INVALID_RESULT_ACCESS,
                "result column not found by name or ordinal",
            )
        }
        for entry in entries:
            existing = by_code.get(entry.vendor_code)
            if existing is None:
                by_code[entry.vendor_code] = entry
                continue
            if existing.category != entry.category:
                raise ValueError(
                    f"Conflicting categories for {vendor} error code {entry.vendor_code}: "
                    f"{existing.category.value} vs {entry.category.value}"
                )
            logger.warning(
                "Duplicate error code entry collapsed",
                extra={"vendor": vendor, "vendor_code": entry.vendor_code},
            )

        prefixes = {
            prefix.upper(): ErrorCategory(category)
            for prefix, category in (sqlstate_prefixes or {}).items()
        }
        self._entries = MappingProxyType(by_code)
        # Longest prefix first so "22007" beats "22".
        self._sqlstate_prefixes = tuple(
            sorted(prefixes.items(), key=lambda item: len(item[0]), reverse=True)
        )

    @property
    def vendor(self) -> str:
        """Canonical vendor ID the table belongs to."""
        return self._vendor

    @property
    def version(self) -> str:
        """Version label of the loaded code table."""
        return self._version

    @property
    def entries(self) -> Mapping[int, ErrorCodeEntry]:
        """Read-only view of all entries keyed by vendor code."""
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, vendor_code: object) -> bool:
        return vendor_code in self._entries

    def get_entry(self, vendor_code: Optional[int]) -> Optional[ErrorCodeEntry]:
        """Return the entry resolving ``vendor_code``, including masked fallback."""
        if vendor_code is None:
            return None
        entry = self._entries.get(vendor_code)
        if entry is None and self._primary_code_mask is not None and isinstance(vendor_code, int):
            entry = self._entries.get(vendor_code & self._primary_code_mask)
        return entry

    def lookup(self, vendor_code: Optional[int], sql_state: Optional[str] = None) -> ErrorCategory:
        """Classify a vendor code; never raises."""
        entry = self.get_entry(vendor_code)
        if entry is not None:
            return entry.category
        if sql_state:
            normalized = sql_state.strip().upper()
            for prefix, category in self._sqlstate_prefixes:
                if normalized.startswith(prefix):
                    return category
        return ErrorCategory.UNCATEGORIZED

    def codes_for(self, category: ErrorCategory) -> frozenset[int]:
        """Return every vendor code explicitly assigned to ``category``."""
        return frozenset(
            code for code, entry in self._entries.items() if entry.category == category
        )

    def __repr__(self) -> str:
        return (
            f"ErrorCodeRegistry(vendor={self._vendor!r}, version={self._version!r}, "
            f"entries={len(self._entries)})"
        )
