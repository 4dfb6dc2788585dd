# courtside/services/yahoo/standings.py
from __future__ import annotations

import math
from typing import Any, List, Optional, Sequence

from courtside.schemas.standings import OutcomeTotals, StandingsEntry
from courtside.services.yahoo.parsers import (
    content,
    entities,
    find_key,
    maybe_float,
    maybe_int,
    merge,
    normalizer,
    stat_bag,
    text,
    warn_shape,
)


def _outcomes(node: Any) -> OutcomeTotals:
    o = merge(node)
    wins = maybe_int(o.get("wins")) or 0
    losses = maybe_int(o.get("losses")) or 0
    ties = maybe_int(o.get("ties")) or 0
    pct = maybe_float(o.get("percentage"))
    if pct is None:
        games = wins + losses + ties
        pct = round((wins + 0.5 * ties) / games, 3) if games else None
    return OutcomeTotals(wins=wins, losses=losses, ties=ties, percentage=pct)


def _rank_key(entry: StandingsEntry):
    return (entry.rank if entry.rank is not None else math.inf, entry.team_key)


@normalizer("standings", default=list)
def normalize_standings(payload: Any, categories: Optional[Sequence[Any]] = None) -> List[StandingsEntry]:
    """
    ``/league/{key}/standings`` -> entries ordered by reported rank (unranked last).
    The stat bag is the team's season line.
    """
    standings = find_key(content(payload, "league"), "standings")
    teams = find_key(standings, "teams")
    out: List[StandingsEntry] = []
    for t in entities(teams, "team"):
        key = text(t.get("team_key"))
        if not key:
            warn_shape("standings", "team without team_key")
            continue
        ts = merge(t.get("team_standings"))
        out.append(
            StandingsEntry(
                team_key=key,
                name=text(t.get("name")),
                rank=maybe_int(ts.get("rank")),
                outcome_totals=_outcomes(ts.get("outcome_totals")),
                games_back=text(ts.get("games_back")) or "-",
                playoff_seed=maybe_int(ts.get("playoff_seed")),
                stats=stat_bag(t.get("team_stats"), categories),
            )
        )
    return sorted(out, key=_rank_key)
