# courtside/services/nba/client.py
from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests
from pydantic import TypeAdapter
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from courtside.core.config import settings
from courtside.core.errors import InvalidRequest, ProviderApiError, UpstreamUnavailable
from courtside.schemas.schedule import NbaGame
from courtside.services.cache import CacheStore, Resource, cache_key, ttl_for

logger = logging.getLogger(__name__)

PER_PAGE = 100
MAX_PAGES = 50

_GAMES = TypeAdapter(List[NbaGame])


def build_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": "Courtside/1.0"})
    # one retry on throttling or 5xx, GET only
    session.mount(
        "https://",
        HTTPAdapter(
            pool_connections=4,
            pool_maxsize=8,
            max_retries=Retry(
                total=1,
                backoff_factor=0.5,
                status_forcelist=[429, 500, 502, 503, 504],
                allowed_methods=["GET"],
                raise_on_status=False,
            ),
        ),
    )
    return session


class BalldontlieClient:
    """Schedule provider. ``get_games`` walks ``meta.next_cursor`` to the end."""

    def __init__(
        self,
        cache: Optional[CacheStore] = None,
        session: Optional[requests.Session] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.cache = cache
        self.session = session or build_session()
        self.api_key = api_key if api_key is not None else settings.BALLDONTLIE_API_KEY
        self.base_url = (base_url or settings.BALLDONTLIE_API_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS

    def _get(self, path: str, params: Dict[str, Any]) -> dict:
        headers = {"Authorization": self.api_key} if self.api_key else {}
        try:
            resp = self.session.get(f"{self.base_url}{path}", params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise UpstreamUnavailable(503, str(exc), message=f"balldontlie unreachable: {exc}") from exc
        if resp.status_code >= 500 or resp.status_code == 429:
            raise UpstreamUnavailable(resp.status_code, resp.text[:500])
        if not resp.ok:
            raise ProviderApiError(resp.status_code, resp.text[:500], message=f"balldontlie error {resp.status_code}")
        return resp.json()

    def _fetch_games(self, start: str, end: str, team_ids: Sequence[int]) -> List[NbaGame]:
        games: List[NbaGame] = []
        cursor: Optional[int] = None
        for _ in range(MAX_PAGES):
            params: Dict[str, Any] = {"start_date": start, "end_date": end, "per_page": PER_PAGE}
            if team_ids:
                params["team_ids[]"] = list(team_ids)
            if cursor is not None:
                params["cursor"] = cursor
            payload = self._get("/games", params)
            games.extend(_GAMES.validate_python(payload.get("data") or []))
            cursor = (payload.get("meta") or {}).get("next_cursor")
            if not cursor:
                return games
        logger.warning("balldontlie pagination stopped after %d pages (%s..%s)", MAX_PAGES, start, end)
        return games

    def get_games(
        self,
        start_date: dt.date | str,
        end_date: dt.date | str,
        team_ids: Optional[Sequence[int]] = None,
    ) -> List[NbaGame]:
        start, end = _iso(start_date), _iso(end_date)
        if start > end:
            raise InvalidRequest(f"start_date {start} is after end_date {end}")
        ids = sorted(set(team_ids or []))
        if self.cache is None:
            return self._fetch_games(start, end, ids)
        key = cache_key(Resource.SCHEDULE, start, end, ",".join(map(str, ids)) or "all")
        raw = self.cache.get_or_set(
            key,
            ttl_for(Resource.SCHEDULE),
            lambda: _GAMES.dump_python(self._fetch_games(start, end, ids), mode="json"),
        )
        return _GAMES.validate_python(raw)


def _iso(value: dt.date | str) -> str:
    if isinstance(value, dt.date):
        return value.isoformat()
    try:
        return dt.date.fromisoformat(value).isoformat()
    except (TypeError, ValueError):
        raise InvalidRequest(f"Malformed date (want YYYY-MM-DD): {value!r}")
