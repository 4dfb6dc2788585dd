# courtside/api/routes_team.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from courtside.api.routes_me import degraded
from courtside.deps import get_fantasy_service
from courtside.schemas.common import RecordList
from courtside.schemas.matchup import Matchup
from courtside.schemas.mutation import MutationResult, RosterUpdate
from courtside.schemas.player import Player, StatLine
from courtside.schemas.team import Team, TeamWithRoster
from courtside.services.fantasy import FantasyDataService

router = APIRouter(prefix="/team", tags=["team"])


@router.get("/{team_key}", response_model=Team)
def team(team_key: str, svc: FantasyDataService = Depends(get_fantasy_service)):
    return svc.get_team(team_key)


@router.get("/{team_key}/full", response_model=TeamWithRoster)
def team_with_roster(
    team_key: str,
    week: Optional[int] = Query(default=None, ge=1),
    svc: FantasyDataService = Depends(get_fantasy_service),
):
    return svc.get_team_with_roster(team_key, week)


@router.get("/{team_key}/roster", response_model=RecordList[Player])
def roster(
    team_key: str,
    response: Response,
    week: Optional[int] = Query(default=None, ge=1),
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    svc: FantasyDataService = Depends(get_fantasy_service),
):
    return degraded(response, svc.get_roster(team_key, week=week, date=date))


@router.put("/{team_key}/roster", response_model=MutationResult)
def update_roster(team_key: str, body: RosterUpdate, svc: FantasyDataService = Depends(get_fantasy_service)):
    return svc.update_roster(team_key, body)


@router.get("/{team_key}/matchup", response_model=Optional[Matchup])
def my_matchup(
    team_key: str,
    week: Optional[int] = Query(default=None, ge=1),
    svc: FantasyDataService = Depends(get_fantasy_service),
):
    return svc.get_my_matchup(team_key, week)


@router.get("/{team_key}/matchups", response_model=RecordList[Matchup])
def all_matchups(team_key: str, response: Response, svc: FantasyDataService = Depends(get_fantasy_service)):
    return degraded(response, svc.get_all_matchups(team_key))


@router.get("/{team_key}/stats", response_model=StatLine)
def team_stats(
    team_key: str,
    period: str = "season",
    week: Optional[int] = Query(default=None, ge=1),
    svc: FantasyDataService = Depends(get_fantasy_service),
):
    return svc.get_team_stats(team_key, period, week)
