# courtside/services/yahoo/teams.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from courtside.schemas.player import StatLine
from courtside.schemas.team import Manager, Team
from courtside.services.yahoo.parsers import (
    content,
    dig,
    entities,
    find_key,
    flag,
    indexed,
    maybe_int,
    merge,
    normalizer,
    stat_bag,
    text,
    unwrap,
    warn_shape,
)


def _managers(node: Any) -> List[Manager]:
    out: List[Manager] = []
    for entry in indexed(node):
        m = unwrap(entry, "manager")
        if not isinstance(m, dict):
            continue
        out.append(
            Manager(
                nickname=text(m.get("nickname")),
                image_url=text(m.get("image_url")),
                guid=text(m.get("guid")),
            )
        )
    return out


def team_logo(node: Any) -> Optional[str]:
    for entry in indexed(node):
        url = dig(unwrap(entry, "team_logo"), "url")
        if isinstance(url, str) and url:
            return url
    return None


def team_from_fragments(t: Dict[str, Any]) -> Optional[Team]:
    key = text(t.get("team_key"))
    if not key:
        warn_shape("team", "team without team_key")
        return None
    standings = merge(t.get("team_standings"))
    outcomes = merge(standings.get("outcome_totals"))
    return Team(
        key=key,
        id=text(t.get("team_id"), key.rsplit(".", 1)[-1]),
        name=text(t.get("name"), key),
        league_key=key.split(".t.", 1)[0] if ".t." in key else None,
        logo_url=team_logo(t.get("team_logos")),
        url=text(t.get("url")),
        is_owned=flag(t.get("is_owned_by_current_login")),
        wins=maybe_int(outcomes.get("wins")) or 0,
        losses=maybe_int(outcomes.get("losses")) or 0,
        ties=maybe_int(outcomes.get("ties")) or 0,
        rank=maybe_int(standings.get("rank")),
        faab_balance=maybe_int(t.get("faab_balance")),
        waiver_priority=maybe_int(t.get("waiver_priority")),
        number_of_moves=maybe_int(t.get("number_of_moves")) or 0,
        number_of_trades=maybe_int(t.get("number_of_trades")) or 0,
        managers=_managers(t.get("managers")),
    )


@normalizer("team", default=lambda: None)
def normalize_team(node: Any) -> Optional[Team]:
    if isinstance(node, dict) and "fantasy_content" in node:
        node = content(node, "team")
    return team_from_fragments(merge(unwrap(node, "team")))


@normalizer("teams", default=list)
def normalize_teams(payload: Any) -> List[Team]:
    """``/league/{key}/teams`` (also works on ``/users;use_login=1/games/teams``)."""
    collection = find_key(payload, "teams")
    out: List[Team] = []
    for frag in entities(collection, "team"):
        team = team_from_fragments(frag)
        if team is not None:
            out.append(team)
    return out


@normalizer("team_stats", default=lambda: None)
def normalize_team_stats(
    payload: Any,
    period: str = "season",
    week: Optional[int] = None,
    categories: Optional[Sequence[Any]] = None,
) -> Optional[StatLine]:
    t = merge(content(payload, "team"))
    key = text(t.get("team_key"))
    if not key:
        return None
    return StatLine(key=key, period=period, week=week, stats=stat_bag(t.get("team_stats"), categories))
