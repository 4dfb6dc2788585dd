# courtside/services/yahoo/parsers.py
"""
Helpers shared by every Yahoo normalizer.

Yahoo serializes collections as objects keyed "0", "1", ... with a trailing
"count", and splits single entities into lists of one-key dicts. ``indexed``
and ``merge`` undo both shapes; every normalizer goes through them.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

from courtside.services import stat_catalog

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------- Shape adapters ----------------

def indexed(node: Any) -> List[Any]:
    """Numeric-keyed collection -> ordered list. ``count`` and other keys are skipped."""
    if node is None:
        return []
    if isinstance(node, list):
        return [n for n in node if n is not None]
    if isinstance(node, dict):
        numeric = [(int(k), v) for k, v in node.items() if str(k).isdigit()]
        return [v for _, v in sorted(numeric, key=lambda kv: kv[0]) if v is not None]
    return []


def merge(node: Any) -> Dict[str, Any]:
    """
    Flatten Yahoo's entity fragments into one dict:
    ``[[{"team_key": ..}, {"name": ..}], {"team_stats": ..}]`` -> ``{"team_key", "name", "team_stats"}``.
    Nested lists are walked; values are left as-is. The first occurrence of a key wins.
    """
    out: Dict[str, Any] = {}

    def _walk(n: Any) -> None:
        if isinstance(n, dict):
            for k, v in n.items():
                out.setdefault(k, v)
        elif isinstance(n, list):
            for item in n:
                _walk(item)

    _walk(node)
    return out


def unwrap(node: Any, key: str) -> Any:
    """``{"player": [...]}`` -> ``[...]``; anything else passes through."""
    if isinstance(node, dict) and key in node:
        return node[key]
    return node


def entities(collection: Any, key: str) -> List[Dict[str, Any]]:
    """Indexed collection of ``{key: fragments}`` wrappers -> merged entity dicts."""
    return [merge(unwrap(item, key)) for item in indexed(collection)]


def dig(node: Any, *path: Any) -> Any:
    """Safe nested lookup through dicts (by key) and lists (by int index)."""
    cur = node
    for step in path:
        if isinstance(cur, dict) and step in cur:
            cur = cur[step]
        elif isinstance(cur, dict) and isinstance(step, int) and str(step) in cur:
            cur = cur[str(step)]
        elif isinstance(cur, list) and isinstance(step, int) and -len(cur) <= step < len(cur):
            cur = cur[step]
        else:
            return None
    return cur


def find_key(node: Any, key: str) -> Any:
    """Depth-first search for the first value stored under ``key``."""
    if isinstance(node, dict):
        if key in node:
            return node[key]
        children: Iterable[Any] = node.values()
    elif isinstance(node, list):
        children = node
    else:
        return None
    for child in children:
        found = find_key(child, key)
        if found is not None:
            return found
    return None


def content(payload: Any, resource: str) -> Any:
    """``fantasy_content.<resource>`` of a response, or None."""
    return dig(payload, "fantasy_content", resource)


# ---------------- Scalars ----------------

def maybe_int(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    try:
        s = str(v).strip()
        return int(float(s)) if s else None
    except ValueError:
        return None


def maybe_float(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        s = str(v).strip()
        return float(s) if s and s != "-" else None
    except ValueError:
        return None


def text(*vals: Any) -> Optional[str]:
    for v in vals:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def flag(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in ("1", "true", "yes")


def total(node: Any) -> Optional[float]:
    """``{"coverage_type": "week", "total": "812.5"}`` -> 812.5"""
    return maybe_float(merge(node).get("total")) if node is not None else None


# ---------------- Stat bags ----------------

def _stat_value(category_id: str, raw: Any) -> Any:
    if stat_catalog.is_compound(category_id):
        split = stat_catalog.split_compound(category_id, raw)
        if split.first is stat_catalog.UNAVAILABLE or split.second is stat_catalog.UNAVAILABLE:
            return None
        return raw.strip() if isinstance(raw, str) else None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return raw
    if not isinstance(raw, str):
        return None
    s = raw.strip()
    if s.lstrip("-").isdigit():
        return int(s)
    return stat_catalog.parse_stat_value(s)


def raw_stats(stats_node: Any) -> Dict[str, Any]:
    """``{"stats": [{"stat": {"stat_id": "5", "value": ".482"}}]}`` -> ``{"5": ".482"}``"""
    out: Dict[str, Any] = {}
    for entry in indexed(dig(stats_node, "stats")):
        stat = unwrap(entry, "stat")
        if not isinstance(stat, dict) or stat.get("stat_id") is None:
            continue
        out[str(stat["stat_id"])] = stat.get("value")
    return out


def stat_bag(stats_node: Any, categories: Optional[Sequence[Any]] = None) -> Dict[str, Any]:
    """
    Category id -> number (or "made/attempted" for compound ids).

    With ``categories`` (a league's settings), only enabled categories are
    emitted, in the league's order. Without them, every stat present is kept in
    display order. Blank and unparseable values are left out.
    """
    raw = raw_stats(stats_node)
    if categories is not None:
        wanted = [str(c.id) for c in categories if getattr(c, "enabled", True)]
    else:
        wanted = stat_catalog.display_order(raw)
    bag: Dict[str, Any] = {}
    for cid in wanted:
        if cid not in raw:
            continue
        value = _stat_value(cid, raw[cid])
        if value is not None:
            bag[cid] = value
    return bag


# ---------------- Failure policy ----------------

@functools.lru_cache(maxsize=512)
def warn_shape(resource: str, detail: str) -> None:
    """Log a malformed upstream shape once per (resource, detail)."""
    logger.warning("unexpected Yahoo %s payload: %s", resource, detail)


def normalizer(resource: str, default: Callable[[], T]) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Normalizers degrade to ``default()`` instead of raising on a malformed payload."""

    def decorator(fn: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(fn)
        def wrapper(*args, **kwargs) -> T:
            try:
                return fn(*args, **kwargs)
            except Exception as exc:  # malformed upstream shape
                warn_shape(resource, f"{type(exc).__name__}: {exc}")
                return default()

        return wrapper

    return decorator
