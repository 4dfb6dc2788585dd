# courtside/services/nba/schedule.py
"""
Joins fantasy players against the NBA schedule by team: games per team,
games per team per fantasy week, and streaming candidates.
"""
from __future__ import annotations

import datetime as dt
from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from courtside.schemas.player import Player
from courtside.schemas.schedule import NbaGame, PlayerGames
from courtside.services.nba.team_mapping import abbr_for, team_id_for

# (week number, first day, last day), inclusive
WeekRange = Tuple[int, dt.date, dt.date]


class ScheduleProvider(Protocol):
    def get_games(self, start_date, end_date, team_ids: Optional[Sequence[int]] = None) -> List[NbaGame]: ...


def games_by_team(games: Iterable[NbaGame]) -> Dict[int, int]:
    """balldontlie team id -> games in the list (home and away both count)."""
    counts: Counter = Counter()
    for game in games:
        counts[game.home_team.id] += 1
        counts[game.visitor_team.id] += 1
    return dict(counts)


def game_dates_by_team(games: Iterable[NbaGame]) -> Dict[int, List[str]]:
    dates: Dict[int, List[str]] = defaultdict(list)
    for game in sorted(games, key=lambda g: g.date):
        day = game.date[:10]
        dates[game.home_team.id].append(day)
        dates[game.visitor_team.id].append(day)
    return dict(dates)


def games_per_week(games: Iterable[NbaGame], weeks: Sequence[WeekRange]) -> Dict[int, Dict[str, int]]:
    """week -> Yahoo team abbreviation -> games that week."""
    out: Dict[int, Dict[str, int]] = {week: {} for week, _, _ in weeks}
    for game in games:
        day = dt.date.fromisoformat(game.date[:10])
        for week, first, last in weeks:
            if first <= day <= last:
                for team_id in (game.home_team.id, game.visitor_team.id):
                    abbr = abbr_for(team_id)
                    if abbr:
                        out[week][abbr] = out[week].get(abbr, 0) + 1
                break
    return out


def games_for_player(player: Player, counts: Dict[int, int]) -> int:
    team_id = team_id_for(player.team_abbr)
    return counts.get(team_id, 0) if team_id is not None else 0


class ScheduleCorrelator:
    def __init__(self, provider: ScheduleProvider):
        self.provider = provider

    def _games(self, start: dt.date, end: dt.date, players: Sequence[Player]) -> List[NbaGame]:
        team_ids = sorted({tid for tid in (team_id_for(p.team_abbr) for p in players) if tid is not None})
        if not team_ids:
            return []
        return self.provider.get_games(start, end, team_ids)

    def games_for_players(self, players: Sequence[Player], start: dt.date, end: dt.date) -> List[PlayerGames]:
        games = self._games(start, end, players)
        dates = game_dates_by_team(games)
        out = []
        for p in players:
            team_id = team_id_for(p.team_abbr)
            days = dates.get(team_id, []) if team_id is not None else []
            out.append(PlayerGames(player_key=p.key, name=p.name, team_abbr=p.team_abbr, games=len(days), game_dates=days))
        return out

    def weekly_counts(self, weeks: Sequence[WeekRange]) -> Dict[int, Dict[str, int]]:
        if not weeks:
            return {}
        start = min(first for _, first, _ in weeks)
        end = max(last for _, _, last in weeks)
        return games_per_week(self.provider.get_games(start, end), weeks)

    def streaming_candidates(
        self,
        players: Sequence[Player],
        start: dt.date,
        end: dt.date,
        limit: int = 12,
    ) -> List[PlayerGames]:
        """Players with the most games in the window; ties keep the incoming order."""
        ranked = sorted(self.games_for_players(players, start, end), key=lambda pg: -pg.games)
        return ranked[:limit]
