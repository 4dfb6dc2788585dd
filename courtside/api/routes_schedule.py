# courtside/api/routes_schedule.py
import datetime as dt
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from courtside.deps import get_current_user, get_fantasy_service, get_schedule
from courtside.schemas.player import PlayerFilters
from courtside.schemas.schedule import PlayerGames
from courtside.services.fantasy import FantasyDataService
from courtside.services.nba.schedule import ScheduleCorrelator, games_by_team
from courtside.services.nba.team_mapping import abbr_for

router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.get("/games-per-team", response_model=Dict[str, int], dependencies=[Depends(get_current_user)])
def games_per_team(
    start: dt.date,
    end: dt.date,
    schedule: ScheduleCorrelator = Depends(get_schedule),
):
    """Yahoo team abbreviation -> games between ``start`` and ``end`` (inclusive)."""
    counts = games_by_team(schedule.provider.get_games(start, end))
    out: Dict[str, int] = {}
    for team_id, n in counts.items():
        abbr = abbr_for(team_id)
        if abbr:
            out[abbr] = n
    return out


@router.get("/team/{team_key}", response_model=List[PlayerGames])
def roster_games(
    team_key: str,
    start: dt.date,
    end: dt.date,
    svc: FantasyDataService = Depends(get_fantasy_service),
    schedule: ScheduleCorrelator = Depends(get_schedule),
):
    return schedule.games_for_players(svc.get_roster(team_key).items, start, end)


@router.get("/league/{league_key}/streaming", response_model=List[PlayerGames])
def streaming(
    league_key: str,
    start: dt.date,
    end: dt.date,
    position: Optional[str] = None,
    limit: int = Query(default=12, ge=1, le=50),
    svc: FantasyDataService = Depends(get_fantasy_service),
    schedule: ScheduleCorrelator = Depends(get_schedule),
):
    """Free agents whose NBA teams play the most games in the window."""
    pool = svc.get_free_agents(league_key, PlayerFilters(status="FA", position=position, sort="AR", fetch_all=True))
    return schedule.streaming_candidates(pool.items, start, end, limit)
