# courtside/services/yahoo/players.py
from __future__ import annotations

from typing import Any, List, Optional, Sequence

from courtside.schemas.player import Player, StatLine
from courtside.services.yahoo.parsers import (
    content,
    dig,
    entities,
    find_key,
    indexed,
    maybe_float,
    maybe_int,
    merge,
    normalizer,
    stat_bag,
    text,
    unwrap,
    warn_shape,
)


def _positions(node: Any) -> List[str]:
    if isinstance(node, str) or (isinstance(node, dict) and "position" in node):
        items = [node]
    else:
        items = indexed(node)
    out: List[str] = []
    for item in items:
        pos = item.get("position") if isinstance(item, dict) else item
        if isinstance(pos, str) and pos.strip() and pos.strip() not in out:
            out.append(pos.strip())
    return out


def _percent_owned(node: Any) -> Optional[float]:
    if node is None:
        return None
    if isinstance(node, (int, float, str)):
        return maybe_float(node)
    return maybe_float(merge(node).get("value"))


def _image_url(p: dict) -> Optional[str]:
    headshot = p.get("headshot")
    return text(
        p.get("image_url"),
        headshot.get("url") if isinstance(headshot, dict) else None,
    )


def player_from_fragments(p: dict, categories: Optional[Sequence[Any]] = None) -> Optional[Player]:
    key = text(p.get("player_key"))
    if not key:
        warn_shape("player", "player without player_key")
        return None
    name = p.get("name")
    full_name = text(name.get("full") if isinstance(name, dict) else name, key)
    ownership = merge(p.get("ownership"))
    status = text(p.get("status"))
    stats_node = p.get("player_stats")
    return Player(
        key=key,
        id=text(p.get("player_id")),
        name=full_name,
        team_abbr=(text(p.get("editorial_team_abbr")) or "").upper() or None,
        team_name=text(p.get("editorial_team_full_name")),
        display_position=text(p.get("display_position")),
        eligible_positions=_positions(p.get("eligible_positions")),
        selected_position=text(merge(p.get("selected_position")).get("position")),
        status=status,
        status_full=text(p.get("status_full")),
        injury_note=text(p.get("injury_note")),
        percent_owned=_percent_owned(p.get("percent_owned")),
        on_waivers=ownership.get("ownership_type") == "waivers" or status == "W",
        image_url=_image_url(p),
        stats=stat_bag(stats_node, categories) if stats_node is not None else None,
    )


@normalizer("player", default=lambda: None)
def normalize_player(node: Any, categories: Optional[Sequence[Any]] = None) -> Optional[Player]:
    """One player, from ``{"player": [...]}``, the fragment list, or a whole response."""
    if isinstance(node, dict) and "fantasy_content" in node:
        node = content(node, "player")
    return player_from_fragments(merge(unwrap(node, "player")), categories)


@normalizer("players", default=list)
def normalize_players(payload: Any, categories: Optional[Sequence[Any]] = None) -> List[Player]:
    """
    Any response carrying a ``players`` collection: league player searches,
    free agents, team rosters. A roster with no entries gives an empty list.
    """
    collection = find_key(payload, "players")
    out: List[Player] = []
    for frag in entities(collection, "player"):
        player = player_from_fragments(frag, categories)
        if player is not None:
            out.append(player)
    return out


@normalizer("roster", default=list)
def normalize_roster(payload: Any, categories: Optional[Sequence[Any]] = None) -> List[Player]:
    roster = find_key(content(payload, "team"), "roster")
    if roster is None:
        warn_shape("roster", "response without roster node")
        return []
    return normalize_players(roster, categories)


@normalizer("player_stats", default=lambda: None)
def normalize_player_stats(
    payload: Any,
    period: str = "season",
    week: Optional[int] = None,
    date: Optional[str] = None,
    categories: Optional[Sequence[Any]] = None,
) -> Optional[StatLine]:
    p = merge(content(payload, "player"))
    key = text(p.get("player_key"))
    if not key:
        return None
    stats_node = p.get("player_stats")
    coverage = {**merge(dig(stats_node, "0")), **(stats_node if isinstance(stats_node, dict) else {})}
    return StatLine(
        key=key,
        period=period,
        week=week if week is not None else maybe_int(coverage.get("week")),
        date=date or text(coverage.get("date")),
        stats=stat_bag(stats_node, categories),
    )
