"""
Conversion between Casbin rule tuples and rule rows.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

STORED_FIELDS = ("v0", "v1", "v2", "v3", "v4", "v5", "v6", "v7")
MATCH_FIELDS = STORED_FIELDS[:6]


def _value(row: Any, name: str) -> str:
    return getattr(row, name, None) or ""


def rule_to_row(ptype: str, rule: Sequence[str]) -> Dict[str, str]:
    """Insert values for a rule, padded with empty strings to all stored fields."""
    row = {"ptype": ptype}
    for pos, name in enumerate(STORED_FIELDS):
        row[name] = rule[pos] if pos < len(rule) else ""
    return row


def match_values(ptype: str, rule: Sequence[str]) -> Dict[str, str]:
    """Exact-match values for a rule over ptype and v0..v5.

    A short rule matches only rows whose remaining fields are empty.
    """
    values = {"ptype": ptype}
    for pos, name in enumerate(MATCH_FIELDS):
        values[name] = rule[pos] if pos < len(rule) else ""
    return values


def row_to_line(row: Any) -> Optional[str]:
    """Render a row as a Casbin policy line, or None when it has no values.

    The line stops at the last non-empty field of v0..v5; empty fields
    before it are kept in place.
    """
    values = [_value(row, name) for name in MATCH_FIELDS]
    while values and not values[-1]:
        values.pop()
    if not values:
        return None
    return ", ".join([_value(row, "ptype")] + values)


def row_to_values(row: Any) -> List[str]:
    """Non-empty v0..v5 values of a row, in field order."""
    return [v for v in (_value(row, name) for name in MATCH_FIELDS) if v]
