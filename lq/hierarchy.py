"""
NAICS code hierarchy helpers.

Industry codes are variable-length digit strings where the code length is
the hierarchy level ("72" sector, "722" sub-sector, "7225" industry group)
and a code's parent at level k is its first k characters. The hierarchy is
held as a leveled lookup (level -> codes) so filters ask for a level instead
of re-deriving string lengths at each call site.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

import pandas as pd


def level_of(code: str) -> int:
    """Hierarchy level of a code (its length)."""
    return len(str(code))


def prefix(code: str, level: int) -> Optional[str]:
    """Ancestor of `code` at `level`, or None when the code is coarser than `level`."""
    code = str(code)
    if level < 1 or len(code) < level:
        return None
    return code[:level]


def level_mask(codes: pd.Series, level: int) -> pd.Series:
    """Boolean mask of codes sitting exactly at `level`."""
    return codes.astype(str).str.len() == level


@dataclass(frozen=True)
class NaicsHierarchy:
    levels: dict[int, frozenset[str]] = field(default_factory=dict)

    @classmethod
    def from_codes(cls, codes: Iterable[str]) -> "NaicsHierarchy":
        buckets: dict[int, set[str]] = {}
        for code in codes:
            if code is None or (isinstance(code, float) and pd.isna(code)):
                continue
            text = str(code).strip()
            if not text:
                continue
            buckets.setdefault(len(text), set()).add(text)
        return cls(levels={lvl: frozenset(vals) for lvl, vals in sorted(buckets.items())})

    def codes_at(self, level: int) -> frozenset[str]:
        return self.levels.get(level, frozenset())

    def parent(self, code: str, level: int) -> Optional[str]:
        """Ancestor of `code` at `level` if that ancestor is a known code."""
        candidate = prefix(code, level)
        if candidate is None or candidate not in self.codes_at(level):
            return None
        return candidate

    def children(self, code: str, level: Optional[int] = None) -> frozenset[str]:
        """Known descendants of `code` at `level` (default: one digit finer)."""
        code = str(code)
        target = level if level is not None else len(code) + 1
        if target <= len(code):
            return frozenset()
        return frozenset(c for c in self.codes_at(target) if c.startswith(code))

    def __contains__(self, code: object) -> bool:
        text = str(code)
        return text in self.codes_at(len(text))
