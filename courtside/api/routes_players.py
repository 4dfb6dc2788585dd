# courtside/api/routes_players.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from courtside.deps import get_fantasy_service
from courtside.schemas.player import Player, StatLine
from courtside.services.fantasy import FantasyDataService

router = APIRouter(prefix="/players", tags=["players"])


@router.get("/{player_key}", response_model=Player)
def player(player_key: str, svc: FantasyDataService = Depends(get_fantasy_service)):
    return svc.get_player(player_key)


@router.get("/{player_key}/stats", response_model=StatLine)
def player_stats(
    player_key: str,
    period: str = Query(default="season", description="season, lastweek, lastmonth, week or date"),
    week: Optional[int] = Query(default=None, ge=1),
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    svc: FantasyDataService = Depends(get_fantasy_service),
):
    return svc.get_player_stats(player_key, period, week, date)
