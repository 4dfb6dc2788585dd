# courtside/deps.py
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status
from sqlalchemy.orm import Session

from courtside.core.auth import decode_session_token
from courtside.core.config import settings
from courtside.db.engine import SessionLocal
from courtside.db.session import get_db
from courtside.services.cache import CacheStore, MemoryCacheStore, SqlCacheStore
from courtside.services.fantasy import FantasyDataService
from courtside.services.nba.client import BalldontlieClient
from courtside.services.nba.schedule import ScheduleCorrelator
from courtside.services.yahoo.client import YahooClient
from courtside.services.yahoo.oauth import TokenManager, TokenRepository, UserCredentials

# one per process so concurrent refreshes for a user collapse into one grant
token_manager = TokenManager()

_cache_store: Optional[CacheStore] = None


def get_current_user(session_token: Optional[str] = Cookie(default=None)) -> str:
    """Session cookie -> Yahoo GUID, or 401."""
    if not session_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    guid = decode_session_token(session_token)
    if not guid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")
    return guid


def get_cache_store() -> CacheStore:
    global _cache_store
    if _cache_store is None:
        if settings.CACHE_BACKEND == "memory":
            _cache_store = MemoryCacheStore()
        else:
            _cache_store = SqlCacheStore(SessionLocal)
    return _cache_store


def get_yahoo_client(
    db: Session = Depends(get_db),
    guid: str = Depends(get_current_user),
) -> YahooClient:
    return YahooClient(UserCredentials(token_manager, TokenRepository(db), guid))


def get_fantasy_service(
    client: YahooClient = Depends(get_yahoo_client),
    cache: CacheStore = Depends(get_cache_store),
    guid: str = Depends(get_current_user),
) -> FantasyDataService:
    return FantasyDataService(client, cache, user_id=guid)


def get_schedule(cache: CacheStore = Depends(get_cache_store)) -> ScheduleCorrelator:
    return ScheduleCorrelator(BalldontlieClient(cache))
