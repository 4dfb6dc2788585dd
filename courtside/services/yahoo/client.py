# courtside/services/yahoo/client.py
from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional, Protocol

import requests

from courtside.core.config import settings
from courtside.core.errors import (
    AuthExpired,
    InvalidRequest,
    NotAuthorized,
    NotFound,
    ProviderApiError,
    ProviderTransient,
    UpstreamUnavailable,
)
from courtside.services.yahoo.parsers import find_key, indexed

logger = logging.getLogger(__name__)

# Yahoo caps player collections at 25 per page
PAGE_SIZE = 25
MAX_PAGES = 200

_LEAGUE_KEY = re.compile(r"^[A-Za-z0-9]+\.l\.\d+$")
_TEAM_KEY = re.compile(r"^[A-Za-z0-9]+\.l\.\d+\.t\.\d+$")
_PLAYER_KEY = re.compile(r"^[A-Za-z0-9]+\.p\.\d+$")
_GAME_KEY = re.compile(r"^[A-Za-z0-9]+$")
_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class Credentials(Protocol):
    refresh_failed: bool

    def token(self) -> str: ...

    def refresh(self) -> bool: ...


# ---------------- Identifier checks ----------------

def require(value: Any, name: str) -> str:
    s = "" if value is None else str(value)
    if not s.strip() or "/" in s or "?" in s:
        raise InvalidRequest(f"Missing or malformed {name}: {value!r}")
    return s


def _checked(value: Any, name: str, pattern: re.Pattern) -> str:
    s = require(value, name)
    if not pattern.match(s):
        raise InvalidRequest(f"Malformed {name}: {value!r}")
    return s


def league_key(value: Any) -> str:
    return _checked(value, "league key", _LEAGUE_KEY)


def team_key(value: Any) -> str:
    return _checked(value, "team key", _TEAM_KEY)


def player_key(value: Any) -> str:
    return _checked(value, "player key", _PLAYER_KEY)


def game_key(value: Any) -> str:
    return _checked(value, "game key", _GAME_KEY)


def week(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise InvalidRequest(f"Malformed week: {value!r}")
    if n < 1:
        raise InvalidRequest(f"Malformed week: {value!r}")
    return n


def date(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) or not _DATE.match(value):
        raise InvalidRequest(f"Malformed date (want YYYY-MM-DD): {value!r}")
    return value


def league_key_of(team_key_value: str) -> str:
    """466.l.17802.t.3 -> 466.l.17802"""
    return team_key(team_key_value).split(".t.", 1)[0]


# ---------------- Client ----------------

class YahooClient:
    """
    Fantasy API transport. Attaches the bearer token, asks for JSON and turns
    non-2xx answers into typed errors.

    Retry rule, all of it lives in ``_send``: a 401 refreshes the token and
    retries once; a 5xx, timeout or dropped connection retries once after a
    backoff (never for POST); nothing retries more than once.
    """

    def __init__(
        self,
        credentials: Credentials,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        backoff: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.credentials = credentials
        self.session = session or requests.Session()
        self.base_url = (base_url or settings.YAHOO_API_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self.backoff = backoff if backoff is not None else settings.HTTP_RETRY_BACKOFF_SECONDS
        self._sleep = sleep

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _attempt(self, method: str, url: str, params: Dict[str, Any], data: Optional[str], headers: Dict[str, str]) -> requests.Response:
        headers = {**headers, "Authorization": f"Bearer {self.credentials.token()}"}
        try:
            resp = self.session.request(method, url, params=params, data=data, headers=headers, timeout=self.timeout)
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise ProviderTransient(0, str(exc), message=f"Yahoo unreachable: {exc}") from exc
        if resp.status_code >= 500:
            raise ProviderTransient(resp.status_code, _body(resp))
        return resp

    def _send(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
              data: Optional[str] = None, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        url = self._url(path)
        params = dict(params or {})
        headers = dict(headers or {})
        retried_transient = False
        refreshed = False
        while True:
            try:
                resp = self._attempt(method, url, params, data, headers)
            except ProviderTransient as exc:
                if retried_transient or method == "POST":
                    raise UpstreamUnavailable(exc.status_code or 503, exc.body or "",
                                              message=f"Yahoo unavailable on {path}") from exc
                retried_transient = True
                logger.warning("transient Yahoo failure on %s %s (%s); retrying once", method, path, exc.status_code)
                self._sleep(self.backoff)
                continue

            if resp.status_code == 401:
                if refreshed or self.credentials.refresh_failed:
                    raise AuthExpired(status_code=401, body=_body(resp))
                refreshed = True
                if not self.credentials.refresh():
                    raise AuthExpired(status_code=401, body=_body(resp))
                logger.info("Yahoo 401 on %s; token refreshed, retrying", path)
                continue

            if not resp.ok:
                raise _error_for(resp, path)
            return resp

    # ---- reads ----
    def request(self, path: str, query: Optional[Dict[str, Any]] = None) -> dict:
        params = dict(query or {})
        params.setdefault("format", "json")
        resp = self._send("GET", path, params=params)
        try:
            return resp.json()
        except ValueError:
            raise ProviderApiError(resp.status_code, _body(resp), message=f"Yahoo returned non-JSON on {path}")

    def paginate(
        self,
        path_builder: Callable[[int, int], str],
        extract: Callable[[dict], List[Any]],
        collection: Optional[str] = None,
        page_size: int = PAGE_SIZE,
        start: int = 0,
    ) -> List[Any]:
        """
        Walk an offset-paged collection to the end. ``path_builder(start, count)``
        builds each page path; a page with fewer than ``page_size`` raw entries
        is the last.

        ``collection`` names the Yahoo collection (``"players"``, ``"transactions"``)
        whose raw entries are counted to advance the offset. Without it the
        extracted items are counted, so entries ``extract`` drops would end the
        walk early.
        """
        items: List[Any] = []
        cursor: Optional[int] = start
        pages = 0
        while cursor is not None:
            raw = self.request(path_builder(cursor, page_size))
            page = extract(raw)
            items.extend(page)
            pages += 1
            seen = len(indexed(find_key(raw, collection))) if collection else len(page)
            cursor = cursor + seen if seen >= page_size else None
            if pages >= MAX_PAGES and cursor is not None:
                logger.warning("pagination stopped after %d pages at start=%d", pages, cursor)
                break
        return items

    # ---- writes ----
    def put_xml(self, path: str, xml: str) -> str:
        return self._send("PUT", path, data=xml, headers={"Content-Type": "application/xml"}).text

    def post_xml(self, path: str, xml: str) -> str:
        return self._send("POST", path, data=xml, headers={"Content-Type": "application/xml"}).text


def _body(resp: requests.Response) -> str:
    try:
        return resp.text[:2000]
    except (UnicodeDecodeError, AttributeError):
        return "<no-body>"


def _error_for(resp: requests.Response, path: str) -> ProviderApiError | NotFound | InvalidRequest:
    body = _body(resp)
    status = resp.status_code
    logger.info("Yahoo %s on %s", status, path)
    if status == 403:
        return NotAuthorized(403, body, message="Not authorized to view this resource")
    if status == 404:
        return NotFound(f"Yahoo resource not found: {path}", status_code=404, body=body)
    if status == 400:
        return InvalidRequest(f"Yahoo rejected the request: {body[:300]}", status_code=400, body=body)
    return ProviderApiError(status, body)
