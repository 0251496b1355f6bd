from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from dal.error_codes.registry import RESULT_ACCESS_CODE

ColumnRef = Union[str, int]


class InvalidResultAccessError(LookupError):
    """A result column or row was requested that the result set does not have."""

    vendor_code = RESULT_ACCESS_CODE

    def __init__(self, message: str, reference: ColumnRef) -> None:
        super().__init__(message)
        self.reference = reference


@dataclass
class QueryResult:
    """Container for fetched rows addressed by column name or ordinal.

    Names match case-insensitively; ordinals are zero-based. Both kinds of
    invalid reference raise ``InvalidResultAccessError``. ``rowcount`` is the
    number of rows the executor fetched.
    """

    columns: List[str]
    rows: List[Sequence[Any]] = field(default_factory=list)
    rowcount: Optional[int] = None

    def __len__(self) -> int:
        return len(self.rows)

    def column_index(self, column: ColumnRef) -> int:
        """Resolve a column name or ordinal to a position."""
        if isinstance(column, bool):
            raise InvalidResultAccessError(f"Invalid column reference: {column!r}", column)
        if isinstance(column, int):
            if 0 <= column < len(self.columns):
                return column
            raise InvalidResultAccessError(
                f"Invalid column index {column}; result has {len(self.columns)} column(s)",
                column,
            )
        wanted = column.upper()
        for index, name in enumerate(self.columns):
            if name.upper() == wanted:
                return index
        raise InvalidResultAccessError(
            f"Invalid column name '{column}'; available: {', '.join(self.columns)}", column
        )

    def get(self, row: int, column: ColumnRef) -> Any:
        """Return a single value."""
        index = self.column_index(column)
        if not 0 <= row < len(self.rows):
            raise InvalidResultAccessError(
                f"Invalid row {row}; result has {len(self.rows)} row(s)", row
            )
        return self.rows[row][index]

    def first(self, column: ColumnRef) -> Any:
        """Return ``column`` of the first row."""
        return self.get(0, column)

    def column_values(self, column: ColumnRef) -> List[Any]:
        index = self.column_index(column)
        return [row[index] for row in self.rows]

    def as_dicts(self) -> List[Dict[str, Any]]:
        return [dict(zip(self.columns, row)) for row in self.rows]
