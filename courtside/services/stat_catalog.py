# courtside/services/stat_catalog.py
"""
NBA stat categories as Yahoo numbers them.

A category id maps to an abbreviation, a full name, a value format and a sort
direction ("desc" = higher is better, "asc" = lower is better, e.g. turnovers).

Yahoo also reports *compound* ids that pack two underlying stats into one
"made/attempted" string. They are encoded as ``9AAABBB``: 9004003 is FGM (4)
over FGA (3). Compound values are display-only and never compared.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

CategoryId = Union[int, str]

PERCENTAGE = "percentage"
DECIMAL = "decimal"
INTEGER = "integer"
COMPOUND = "compound"

HIGHER_IS_BETTER = "desc"
LOWER_IS_BETTER = "asc"

MISSING_DISPLAY = "-"


@dataclass(frozen=True)
class StatDefinition:
    id: int
    abbr: str
    name: str
    format: str = INTEGER
    sort_direction: str = HIGHER_IS_BETTER


class _Unavailable:
    """Sentinel for a stat side that has no usable value."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNAVAILABLE"

    def __bool__(self) -> bool:
        return False


UNAVAILABLE = _Unavailable()


@dataclass(frozen=True)
class CompoundValue:
    first: Any
    second: Any


def _define(id: int, abbr: str, name: str, fmt: str = INTEGER, direction: str = HIGHER_IS_BETTER) -> StatDefinition:
    return StatDefinition(id=id, abbr=abbr, name=name, format=fmt, sort_direction=direction)


NBA_STATS: Dict[int, StatDefinition] = {
    d.id: d
    for d in (
        _define(0, "GP", "Games Played"),
        _define(1, "GS", "Games Started"),
        _define(2, "MIN", "Minutes Played"),
        _define(3, "FGA", "Field Goals Attempted"),
        _define(4, "FGM", "Field Goals Made"),
        _define(5, "FG%", "Field Goal Percentage", PERCENTAGE),
        _define(6, "FTA", "Free Throws Attempted"),
        _define(7, "FTM", "Free Throws Made"),
        _define(8, "FT%", "Free Throw Percentage", PERCENTAGE),
        _define(9, "3PTA", "3-Pointers Attempted"),
        _define(10, "3PTM", "3-Pointers Made"),
        _define(11, "3PT%", "3-Point Percentage", PERCENTAGE),
        _define(12, "PTS", "Points Scored"),
        _define(13, "OREB", "Offensive Rebounds"),
        _define(14, "DREB", "Defensive Rebounds"),
        _define(15, "REB", "Total Rebounds"),
        _define(16, "AST", "Assists"),
        _define(17, "ST", "Steals"),
        _define(18, "BLK", "Blocked Shots"),
        _define(19, "TO", "Turnovers", INTEGER, LOWER_IS_BETTER),
        _define(20, "A/TO", "Assist/Turnover Ratio", DECIMAL),
        _define(21, "PF", "Personal Fouls", INTEGER, LOWER_IS_BETTER),
        _define(22, "DQ", "Disqualifications", INTEGER, LOWER_IS_BETTER),
        _define(23, "TECH", "Technical Fouls", INTEGER, LOWER_IS_BETTER),
        _define(24, "EJCT", "Ejections", INTEGER, LOWER_IS_BETTER),
        _define(25, "FF", "Flagrant Fouls", INTEGER, LOWER_IS_BETTER),
        _define(27, "DD", "Double-Doubles"),
        _define(28, "TD", "Triple-Doubles"),
    )
}

# compound id -> (first component, second component)
COMPOUND_STATS: Dict[int, Tuple[int, int]] = {
    9004003: (4, 3),  # FGM/FGA
    9007006: (7, 6),  # FTM/FTA
}

_COMPOUND_RE = re.compile(r"^9(\d{3})(\d{3})$")


def _as_int(category_id: Any) -> Optional[int]:
    try:
        return int(str(category_id).strip())
    except (TypeError, ValueError):
        return None


def compound_parts(category_id: CategoryId) -> Optional[Tuple[int, int]]:
    """Underlying (first, second) ids for a compound id, else None."""
    n = _as_int(category_id)
    if n is None:
        return None
    if n in COMPOUND_STATS:
        return COMPOUND_STATS[n]
    m = _COMPOUND_RE.match(str(n))
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def is_compound(category_id: CategoryId) -> bool:
    return compound_parts(category_id) is not None


def resolve(category_id: CategoryId) -> StatDefinition:
    n = _as_int(category_id)
    parts = compound_parts(category_id)
    if parts is not None:
        first, second = (resolve(p) for p in parts)
        return StatDefinition(
            id=n,
            abbr=f"{first.abbr}/{second.abbr}",
            name=f"{first.name} / {second.name}",
            format=COMPOUND,
        )
    if n is not None and n in NBA_STATS:
        return NBA_STATS[n]
    return StatDefinition(id=n if n is not None else -1, abbr=f"stat_{category_id}", name=f"Stat {category_id}")


# ---------------- Values ----------------

def parse_stat_value(value: Any) -> Optional[float]:
    """Numeric reading of a raw stat value; None for blanks, dashes and junk."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    s = str(value).strip()
    if s in ("", MISSING_DISPLAY):
        return None
    try:
        num = float(s)
    except ValueError:
        return None
    return None if math.isnan(num) else num


def format_value(value: Any, fmt: Optional[str] = None) -> str:
    """
    Render a stat the way Yahoo displays it.
    Percentages below 1 get three decimals (0.482), at or above 1 get one (48.2).
    """
    if value is None or value is UNAVAILABLE or value == "" or value == MISSING_DISPLAY:
        return MISSING_DISPLAY
    if fmt == COMPOUND:
        return str(value)
    num = parse_stat_value(value)
    if num is None:
        return str(value)
    if fmt == PERCENTAGE:
        return f"{num:.3f}" if num < 1 else f"{num:.1f}"
    if fmt == DECIMAL:
        return f"{num:.2f}"
    return str(int(num)) if num.is_integer() else f"{num:.1f}"


def format_stat(category_id: CategoryId, value: Any) -> str:
    return format_value(value, resolve(category_id).format)


def _parse_side(raw: str) -> Any:
    s = raw.strip()
    if s in ("", MISSING_DISPLAY):
        return UNAVAILABLE
    try:
        return int(s)
    except ValueError:
        pass
    try:
        num = float(s)
    except ValueError:
        return s
    return s if math.isnan(num) else num


def split_compound(category_id: CategoryId, raw_value: Any) -> CompoundValue:
    """
    "12/34" -> CompoundValue(12, 34). Anything without exactly one "/" gives
    UNAVAILABLE on both sides.
    """
    if not isinstance(raw_value, str):
        return CompoundValue(UNAVAILABLE, UNAVAILABLE)
    pieces = raw_value.split("/")
    if len(pieces) != 2:
        return CompoundValue(UNAVAILABLE, UNAVAILABLE)
    return CompoundValue(_parse_side(pieces[0]), _parse_side(pieces[1]))


def stat_value(stats: Mapping[str, Any], category_id: CategoryId) -> Any:
    """
    Look up one category in a stat bag. A component id missing from the bag is
    read out of any compound value that carries it.
    """
    key = str(category_id)
    if stats.get(key) is not None:
        return stats[key]
    target = _as_int(category_id)
    for cid, raw in stats.items():
        parts = compound_parts(cid)
        if not parts or target not in parts:
            continue
        split = split_compound(cid, raw)
        side = split.first if parts[0] == target else split.second
        if side is not UNAVAILABLE:
            return side
    return UNAVAILABLE


# ---------------- Display ----------------

def _display_key(category_id: CategoryId) -> Tuple[float, int, Any]:
    parts = compound_parts(category_id)
    if parts is not None:
        # right after the higher of its two components
        return (max(parts), 1, _as_int(category_id))
    n = _as_int(category_id)
    if n is None:
        return (math.inf, 2, str(category_id))
    return (n, 0, n)


def display_order(category_ids: Iterable[CategoryId]) -> List[str]:
    return [str(c) for c in sorted(category_ids, key=_display_key)]


@dataclass(frozen=True)
class StatColumn:
    key: str
    label: str
    category_id: str
    format: str
    sort_direction: str


def build_stat_columns(categories: Sequence[Any]) -> List[StatColumn]:
    """
    Columns for a league's enabled categories, in the league's own order.
    Each category needs ``id``, ``enabled`` and optionally ``abbr``,
    ``display_name``, ``name`` and ``sort_direction``.
    """
    columns: List[StatColumn] = []
    for cat in categories:
        if not getattr(cat, "enabled", True):
            continue
        definition = resolve(cat.id)
        label = getattr(cat, "abbr", None) or getattr(cat, "display_name", None) or getattr(cat, "name", None)
        columns.append(
            StatColumn(
                key=str(cat.id),
                label=label or definition.abbr,
                category_id=str(cat.id),
                format=definition.format,
                sort_direction=getattr(cat, "sort_direction", None) or definition.sort_direction,
            )
        )
    return columns


# ---------------- Derived sorts ----------------

@dataclass(frozen=True)
class CompoundSort:
    key: str
    label: str
    category_ids: Tuple[int, int]


COMPOUND_SORTS: Dict[str, CompoundSort] = {
    s.key: s
    for s in (
        CompoundSort("stocks", "ST + BLK (Stocks)", (17, 18)),
        CompoundSort("fgFtPct", "FG% + FT%", (5, 8)),
        CompoundSort("ftPct3ptm", "FT% + 3PTM", (8, 10)),
    )
}


def compound_sort_value(stats: Optional[Mapping[str, Any]], sort_key: str) -> Optional[float]:
    definition = COMPOUND_SORTS.get(sort_key)
    if definition is None or not stats:
        return None
    total = 0.0
    for cid in definition.category_ids:
        num = parse_stat_value(stat_value(stats, cid))
        if num is None:
            return None
        total += num
    return total


def sort_by_compound(items: Sequence[Any], sort_key: str, descending: bool = True) -> List[Any]:
    """Sort records carrying a ``stats`` bag by a derived sum; items without one go last."""
    if sort_key not in COMPOUND_SORTS:
        raise ValueError(f"Unknown compound sort {sort_key!r}")
    scored = [(compound_sort_value(getattr(i, "stats", None), sort_key), i) for i in items]
    ranked = sorted((p for p in scored if p[0] is not None), key=lambda p: p[0], reverse=descending)
    return [i for _, i in ranked] + [i for v, i in scored if v is None]
