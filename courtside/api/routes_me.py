# courtside/api/routes_me.py
from typing import List

from fastapi import APIRouter, Depends, Response

from courtside.deps import get_current_user, get_fantasy_service
from courtside.schemas.common import RecordList
from courtside.schemas.league import League
from courtside.services.fantasy import FantasyDataService

router = APIRouter(prefix="/me", tags=["me"])


def degraded(response: Response, result: RecordList) -> RecordList:
    """Mark a list that came back empty because Yahoo refused it."""
    if result.error:
        response.headers["X-Degraded"] = result.error
    return result


@router.get("/leagues", response_model=RecordList[League])
def me_leagues(response: Response, svc: FantasyDataService = Depends(get_fantasy_service)):
    return degraded(response, svc.get_leagues())


@router.get("/whoami")
def whoami(guid: str = Depends(get_current_user)):
    return {"guid": guid}
