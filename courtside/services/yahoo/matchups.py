# courtside/services/yahoo/matchups.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from courtside.schemas.matchup import (
    COMPLETED,
    IN_PROGRESS,
    LOSS,
    TIE,
    UPCOMING,
    WIN,
    Matchup,
    MatchupTeam,
    Scoreboard,
)
from courtside.services import stat_catalog
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
    total,
    unwrap,
)
from courtside.services.yahoo.teams import team_logo

_STATUS = {"postevent": COMPLETED, "midevent": IN_PROGRESS}


def matchup_status(raw: Any) -> str:
    return _STATUS.get(str(raw or "").strip().lower(), UPCOMING)


def _direction(category: Any) -> str:
    return getattr(category, "sort_direction", None) or stat_catalog.resolve(category.id).sort_direction


def verdict_map(
    first: Dict[str, Any],
    second: Dict[str, Any],
    categories: Optional[Sequence[Any]] = None,
) -> Dict[str, str]:
    """
    Per-category outcome from ``first``'s side. Lower-is-better categories
    (turnovers) flip the comparison; equal values are an explicit tie.
    Compound and display-only categories are not compared, and neither is a
    category missing on either side.
    """
    if categories is None:
        categories = [_CatalogCategory(c) for c in stat_catalog.display_order(set(first) & set(second))]
    out: Dict[str, str] = {}
    for cat in categories:
        cid = str(cat.id)
        if not getattr(cat, "enabled", True) or getattr(cat, "display_only", False) or stat_catalog.is_compound(cid):
            continue
        a = stat_catalog.parse_stat_value(first.get(cid))
        b = stat_catalog.parse_stat_value(second.get(cid))
        if a is None or b is None:
            continue
        if a == b:
            out[cid] = TIE
        elif (a > b) == (_direction(cat) == stat_catalog.HIGHER_IS_BETTER):
            out[cid] = WIN
        else:
            out[cid] = LOSS
    return out


class _CatalogCategory:
    __slots__ = ("id", "sort_direction")

    def __init__(self, cid: str):
        self.id = cid
        self.sort_direction = stat_catalog.resolve(cid).sort_direction


def _matchup_team(t: Dict[str, Any], categories: Optional[Sequence[Any]]) -> Optional[MatchupTeam]:
    key = text(t.get("team_key"))
    if not key:
        return None
    remaining = merge(t.get("team_remaining_games"))
    return MatchupTeam(
        key=key,
        name=text(t.get("name")),
        logo_url=team_logo(t.get("team_logos")),
        points=total(t.get("team_points")),
        projected_points=total(t.get("team_projected_points")),
        stats=stat_bag(t.get("team_stats"), categories),
        roster_adds=maybe_int(merge(t.get("roster_adds")).get("value")),
        remaining_games=maybe_int(dig(remaining, "total", "remaining_games")),
    )


def matchup_from_node(
    node: Dict[str, Any],
    categories: Optional[Sequence[Any]] = None,
    perspective: Optional[str] = None,
) -> Matchup:
    m = merge(unwrap(node, "matchup"))
    teams = [
        team
        for team in (_matchup_team(t, categories) for t in entities(find_key(m, "teams"), "team"))
        if team is not None
    ]
    if perspective and len(teams) == 2 and teams[1].key == perspective:
        teams.reverse()

    bye = len(teams) < 2
    is_tied = flag(m.get("is_tied"))
    winner = None if bye or is_tied else text(m.get("winner_team_key"))
    verdicts = {} if bye else verdict_map(teams[0].stats, teams[1].stats, categories)
    return Matchup(
        week=maybe_int(m.get("week")),
        week_start=text(m.get("week_start")),
        week_end=text(m.get("week_end")),
        status=matchup_status(m.get("status")),
        is_playoffs=flag(m.get("is_playoffs")),
        teams=teams,
        winner_team_key=winner,
        is_tied=is_tied and not bye,
        verdicts=verdicts,
    )


@normalizer("matchup", default=lambda: None)
def normalize_matchup(
    node: Any,
    categories: Optional[Sequence[Any]] = None,
    perspective: Optional[str] = None,
) -> Optional[Matchup]:
    return matchup_from_node(node, categories, perspective)


def _matchups(collection: Any, categories, perspective) -> List[Matchup]:
    out: List[Matchup] = []
    for entry in indexed(collection):
        matchup = normalize_matchup(entry, categories, perspective)
        if matchup is not None:
            out.append(matchup)
    return out


@normalizer("scoreboard", default=lambda: None)
def normalize_scoreboard(payload: Any, categories: Optional[Sequence[Any]] = None) -> Optional[Scoreboard]:
    league = merge(content(payload, "league"))
    key = text(league.get("league_key"))
    if not key:
        return None
    board = merge(league.get("scoreboard"))
    matchups = _matchups(find_key(board, "matchups"), categories, None)
    week = maybe_int(board.get("week"))
    if week is None and matchups:
        week = matchups[0].week
    return Scoreboard(league_key=key, week=week, matchups=matchups)


@normalizer("team_matchups", default=list)
def normalize_team_matchups(
    payload: Any,
    team_key: Optional[str] = None,
    categories: Optional[Sequence[Any]] = None,
) -> List[Matchup]:
    """``/team/{key}/matchups``: every matchup seen from ``team_key``'s side."""
    team = content(payload, "team")
    perspective = team_key or text(merge(team).get("team_key"))
    return _matchups(find_key(team, "matchups"), categories, perspective)
