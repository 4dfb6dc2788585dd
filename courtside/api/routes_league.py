# courtside/api/routes_league.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from courtside.api.routes_me import degraded
from courtside.deps import get_fantasy_service
from courtside.schemas.common import RecordList
from courtside.schemas.league import League, LeagueSettings
from courtside.schemas.matchup import Scoreboard
from courtside.schemas.mutation import AddDropRequest, AddPlayerRequest, DropPlayerRequest, MutationResult
from courtside.schemas.player import Player, PlayerFilters
from courtside.schemas.standings import StandingsEntry
from courtside.schemas.team import Team
from courtside.schemas.transaction import DraftPick, Transaction, TransactionFilters
from courtside.services.fantasy import FantasyDataService

router = APIRouter(prefix="/league", tags=["league"])


@router.get("/{league_key}", response_model=League)
def league(league_key: str, svc: FantasyDataService = Depends(get_fantasy_service)):
    return svc.get_league(league_key)


@router.get("/{league_key}/settings", response_model=LeagueSettings)
def league_settings(league_key: str, svc: FantasyDataService = Depends(get_fantasy_service)):
    return svc.get_league_settings(league_key)


@router.get("/{league_key}/stat-columns")
def stat_columns(league_key: str, svc: FantasyDataService = Depends(get_fantasy_service)):
    return svc.get_stat_columns(league_key)


@router.get("/{league_key}/standings", response_model=RecordList[StandingsEntry])
def standings(league_key: str, response: Response, svc: FantasyDataService = Depends(get_fantasy_service)):
    return degraded(response, svc.get_standings(league_key))


@router.get("/{league_key}/teams", response_model=RecordList[Team])
def teams(league_key: str, response: Response, svc: FantasyDataService = Depends(get_fantasy_service)):
    return degraded(response, svc.get_teams(league_key))


@router.get("/{league_key}/my-team", response_model=Team)
def my_team(league_key: str, svc: FantasyDataService = Depends(get_fantasy_service)):
    return svc.get_my_team(league_key)


@router.get("/{league_key}/scoreboard", response_model=Scoreboard)
def scoreboard(
    league_key: str,
    week: Optional[int] = Query(default=None, ge=1),
    svc: FantasyDataService = Depends(get_fantasy_service),
):
    return svc.get_scoreboard(league_key, week)


@router.get("/{league_key}/free-agents", response_model=RecordList[Player])
def free_agents(
    league_key: str,
    response: Response,
    status: str = Query(default="A", description="A, FA, W, T or K"),
    position: Optional[str] = None,
    sort: Optional[str] = None,
    sort_type: Optional[str] = None,
    sort_week: Optional[int] = None,
    search: Optional[str] = None,
    start: int = Query(default=0, ge=0),
    count: int = Query(default=25, ge=1, le=25),
    fetch_all: bool = False,
    compound_sort: Optional[str] = Query(default=None, description="stocks, fgFtPct or ftPct3ptm"),
    svc: FantasyDataService = Depends(get_fantasy_service),
):
    filters = PlayerFilters(
        status=status, position=position, sort=sort, sort_type=sort_type, sort_week=sort_week,
        search=search, start=start, count=count, fetch_all=fetch_all, compound_sort=compound_sort,
    )
    return degraded(response, svc.get_free_agents(league_key, filters))


@router.get("/{league_key}/players/search", response_model=RecordList[Player])
def search_players(
    league_key: str,
    response: Response,
    q: str = Query(..., min_length=1),
    svc: FantasyDataService = Depends(get_fantasy_service),
):
    return degraded(response, svc.search_players(league_key, q))


@router.get("/{league_key}/transactions", response_model=RecordList[Transaction])
def transactions(
    league_key: str,
    response: Response,
    types: Optional[List[str]] = Query(default=None),
    team_key: Optional[str] = None,
    start: int = Query(default=0, ge=0),
    count: Optional[int] = Query(default=25, ge=1),
    all_pages: bool = False,
    svc: FantasyDataService = Depends(get_fantasy_service),
):
    filters = TransactionFilters(types=types, team_key=team_key, start=start, count=None if all_pages else count)
    return degraded(response, svc.get_transactions(league_key, filters))


@router.get("/{league_key}/draft-results", response_model=RecordList[DraftPick])
def draft_results(league_key: str, response: Response, svc: FantasyDataService = Depends(get_fantasy_service)):
    return degraded(response, svc.get_draft_results(league_key))


@router.post("/{league_key}/add", response_model=MutationResult)
def add_player(league_key: str, body: AddPlayerRequest, svc: FantasyDataService = Depends(get_fantasy_service)):
    return svc.add_player(league_key, body.player_key, body.team_key, body.faab_bid)


@router.post("/{league_key}/add-drop", response_model=MutationResult)
def add_drop_player(league_key: str, body: AddDropRequest, svc: FantasyDataService = Depends(get_fantasy_service)):
    return svc.add_drop_player(league_key, body.add_player_key, body.drop_player_key, body.team_key, body.faab_bid)


@router.post("/{league_key}/drop", response_model=MutationResult)
def drop_player(league_key: str, body: DropPlayerRequest, svc: FantasyDataService = Depends(get_fantasy_service)):
    return svc.drop_player(league_key, body.player_key, body.team_key)
