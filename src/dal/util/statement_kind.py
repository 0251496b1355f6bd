"""Derive a bounded statement kind from SQL text for telemetry."""

from typing import Optional

import sqlglot
from sqlglot.errors import SqlglotError

UNKNOWN_KIND = "UNKNOWN"

# Bounded so the value is safe as a low-cardinality attribute.
KNOWN_KINDS = frozenset(
    {
        "ALTER",
        "CALL",
        "CREATE",
        "DELETE",
        "DROP",
        "GRANT",
        "INSERT",
        "MERGE",
        "RENAME",
        "REVOKE",
        "SELECT",
        "TRUNCATE",
        "UPDATE",
        "UPSERT",
        "WITH",
    }
)


def statement_kind(sql: Optional[str]) -> str:
    """Return the leading keyword of ``sql`` (``CREATE``, ``INSERT``, ...).

    Dialect-specific modifiers such as HANA's ``CREATE COLUMN TABLE`` only
    follow the leading keyword, so the generic tokenizer is enough.
    Unparseable or unrecognised statements yield ``UNKNOWN``.
    """
    if not sql or not sql.strip():
        return UNKNOWN_KIND
    try:
        tokens = sqlglot.tokenize(sql)
    except SqlglotError:
        return UNKNOWN_KIND

    for token in tokens:
        text = token.text.upper()
        if text.isalpha():
            return text if text in KNOWN_KINDS else UNKNOWN_KIND
    return UNKNOWN_KIND
