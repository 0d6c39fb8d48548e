"""
Filters accepted by the adapter.

Two separate shapes are used. `Filter` restricts a filtered load with
per-column inclusion lists. `FieldFilter` is the positional form Casbin
passes to filtered removal and filtered update: a starting field index
plus a run of values bound to consecutive fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from pydantic import BaseModel

# Number of positional fields that take part in rule matching (v0..v5).
MATCH_FIELD_COUNT = 6


class Filter(BaseModel):
    ptype: List[str] = []
    v0: List[str] = []
    v1: List[str] = []
    v2: List[str] = []
    v3: List[str] = []
    v4: List[str] = []
    v5: List[str] = []

    def columns(self) -> Dict[str, List[str]]:
        """Column name -> allowed values, for every non-empty list."""
        out: Dict[str, List[str]] = {}
        for name in ("ptype", "v0", "v1", "v2", "v3", "v4", "v5"):
            values = getattr(self, name)
            if values:
                out[name] = list(values)
        return out


@dataclass
class FieldFilter:
    ptype: str
    field_index: int
    field_values: Tuple[str, ...] = field(default_factory=tuple)

    def bindings(self) -> List[Tuple[str, str]]:
        """(column, value) pairs for the fields covered by `field_values`."""
        end = self.field_index + len(self.field_values)
        out: List[Tuple[str, str]] = []
        for pos in range(MATCH_FIELD_COUNT):
            if self.field_index <= pos < end:
                out.append((f"v{pos}", self.field_values[pos - self.field_index]))
        return out
