# courtside/services/yahoo/oauth.py
"""
Yahoo OAuth2: authorization-code exchange, refresh grants and the token state
every provider call runs on.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Tuple

import requests
from requests_oauthlib import OAuth2Session
from sqlalchemy import select
from sqlalchemy.orm import Session

from courtside.core.config import settings
from courtside.core.crypto import decrypt_value, encrypt_value
from courtside.core.errors import AuthExpired
from courtside.db.models import OAuthToken, User
from courtside.services.yahoo.client import YahooClient
from courtside.services.yahoo.leagues import normalize_login_profile

logger = logging.getLogger(__name__)

REFRESH_FAILED = "RefreshFailed"
DEFAULT_LIFETIME_SECONDS = 3600


@dataclass(frozen=True)
class TokenState:
    access_token: str
    refresh_token: Optional[str]
    expires_at: float  # epoch seconds
    last_error: Optional[str] = None

    @property
    def refresh_failed(self) -> bool:
        return self.last_error == REFRESH_FAILED


def scope_list() -> list:
    return settings.YAHOO_SCOPE.split()


# ---------------- Provider grants ----------------

def authorization_url(state: str, redirect_uri: Optional[str] = None) -> str:
    oauth = OAuth2Session(
        client_id=settings.YAHOO_CLIENT_ID,
        redirect_uri=(redirect_uri or settings.YAHOO_REDIRECT_URI or "").strip(),
        scope=scope_list(),
    )
    url, _ = oauth.authorization_url(settings.YAHOO_AUTH_URL, state=state)
    return url


def exchange_code(code: str, redirect_uri: Optional[str] = None, now: Optional[float] = None) -> Tuple[TokenState, dict]:
    """Authorization code -> initial token state (plus the raw grant for bookkeeping)."""
    oauth = OAuth2Session(
        client_id=settings.YAHOO_CLIENT_ID,
        redirect_uri=(redirect_uri or settings.YAHOO_REDIRECT_URI or "").strip(),
        scope=scope_list(),
    )
    token = oauth.fetch_token(
        token_url=settings.YAHOO_TOKEN_URL,
        code=code,
        include_client_id=True,
        client_secret=settings.YAHOO_CLIENT_SECRET,
        auth=(settings.YAHOO_CLIENT_ID, settings.YAHOO_CLIENT_SECRET),
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    issued = now if now is not None else time.time()
    state = TokenState(
        access_token=token["access_token"],
        refresh_token=token.get("refresh_token"),
        expires_at=issued + float(token.get("expires_in") or DEFAULT_LIFETIME_SECONDS),
    )
    return state, dict(token)


def refresh_access_token(refresh_token: str) -> Dict[str, Any]:
    """POST a refresh_token grant with HTTP Basic client credentials."""
    resp = requests.post(
        settings.YAHOO_TOKEN_URL,
        data={
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "redirect_uri": settings.YAHOO_REDIRECT_URI or "oob",
        },
        auth=(settings.YAHOO_CLIENT_ID or "", settings.YAHOO_CLIENT_SECRET or ""),
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    resp.raise_for_status()
    return resp.json()


# ---------------- Lifecycle ----------------

Refresher = Callable[[str], Dict[str, Any]]


class TokenManager:
    """
    Hands out valid access tokens, refreshing expired ones.

    One manager is shared per process. Refreshes are single-flighted per
    session key: a caller that arrives with the same stale token while another
    refresh is finishing gets that refreshed state instead of a second grant.
    """

    def __init__(self, refresher: Optional[Refresher] = None, clock: Optional[Callable[[], float]] = None):
        self._refresher = refresher or refresh_access_token
        self._clock = clock or time.time
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        # session key -> (stale access token, state it was refreshed into)
        self._recent: Dict[str, Tuple[str, TokenState]] = {}

    def _lock_for(self, session_key: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(session_key, threading.Lock())

    def get_valid_token(self, state: TokenState, session_key: Optional[str] = None) -> Tuple[str, TokenState]:
        if self._clock() < state.expires_at:
            return state.access_token, state
        new_state = self.refresh(state, session_key=session_key)
        return new_state.access_token, new_state

    def refresh(self, state: TokenState, session_key: Optional[str] = None) -> TokenState:
        """Run the refresh grant. Failure returns the stale state flagged RefreshFailed."""
        if session_key is None:
            return self._refresh(state)
        with self._lock_for(session_key):
            recent = self._recent.get(session_key)
            if recent and recent[0] == state.access_token and self._clock() < recent[1].expires_at:
                return recent[1]
            new_state = self._refresh(state)
            if not new_state.refresh_failed:
                self._recent[session_key] = (state.access_token, new_state)
            return new_state

    def _refresh(self, state: TokenState) -> TokenState:
        if not state.refresh_token:
            logger.warning("token expired and no refresh token on file")
            return replace(state, last_error=REFRESH_FAILED)
        try:
            payload = self._refresher(state.refresh_token)
            access_token = payload["access_token"]
        except (requests.RequestException, KeyError, ValueError) as exc:
            logger.warning("token refresh failed: %s", exc)
            return replace(state, last_error=REFRESH_FAILED)
        lifetime = float(payload.get("expires_in") or DEFAULT_LIFETIME_SECONDS)
        return TokenState(
            access_token=access_token,
            refresh_token=payload.get("refresh_token") or state.refresh_token,
            expires_at=self._clock() + lifetime,
        )


# ---------------- Persistence ----------------

class TokenRepository:
    """Loads and saves a user's token state in ``oauth_tokens`` (encrypted)."""

    def __init__(self, db: Session):
        self.db = db

    def _latest_row(self, user_id: str) -> Optional[OAuthToken]:
        stmt = (
            select(OAuthToken)
            .where(OAuthToken.user_id == user_id)
            .order_by(OAuthToken.id.desc())
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    def load(self, user_id: str) -> Optional[TokenState]:
        row = self._latest_row(user_id)
        if row is None:
            return None
        access = decrypt_value(row.access_token)
        if not access:
            return None
        return TokenState(
            access_token=access,
            refresh_token=decrypt_value(row.refresh_token),
            expires_at=row.expires_at or 0.0,
            last_error=row.last_error,
        )

    def save(self, user_id: str, state: TokenState, raw: Optional[dict] = None) -> None:
        row = self._latest_row(user_id)
        if row is None:
            row = OAuthToken(user_id=user_id)
        row.access_token = encrypt_value(state.access_token)
        row.refresh_token = encrypt_value(state.refresh_token)
        row.expires_at = state.expires_at
        row.last_error = state.last_error
        if raw is not None:
            row.token_type = raw.get("token_type")
            row.scope = raw.get("scope") if isinstance(raw.get("scope"), str) else " ".join(raw.get("scope") or [])
            row.raw = json.dumps({k: v for k, v in raw.items() if k not in ("access_token", "refresh_token")})
        self.db.add(row)
        self.db.commit()

    def delete(self, user_id: str) -> None:
        for row in self.db.scalars(select(OAuthToken).where(OAuthToken.user_id == user_id)):
            self.db.delete(row)
        self.db.commit()


# ---------------- Credentials seen by the client ----------------

class UserCredentials:
    """Token source for one signed-in user, backed by the repository."""

    def __init__(self, manager: TokenManager, repository: TokenRepository, user_id: str):
        self.manager = manager
        self.repository = repository
        self.user_id = user_id
        self._state: Optional[TokenState] = None

    def _current(self) -> TokenState:
        if self._state is None:
            self._state = self.repository.load(self.user_id)
        if self._state is None:
            raise AuthExpired(f"No Yahoo token on file for user {self.user_id!r}; sign in again")
        return self._state

    def _adopt(self, new_state: TokenState) -> None:
        if new_state != self._state:
            self.repository.save(self.user_id, new_state)
        self._state = new_state

    @property
    def refresh_failed(self) -> bool:
        return bool(self._state and self._state.refresh_failed)

    def token(self) -> str:
        token, new_state = self.manager.get_valid_token(self._current(), session_key=self.user_id)
        self._adopt(new_state)
        return token

    def refresh(self) -> bool:
        """Forced refresh after a 401. False means the session is over."""
        new_state = self.manager.refresh(self._current(), session_key=self.user_id)
        self._adopt(new_state)
        return not new_state.refresh_failed


class StaticCredentials:
    """A token that cannot be refreshed, e.g. one fresh from the code exchange."""

    refresh_failed = False

    def __init__(self, access_token: str):
        self._access_token = access_token

    def token(self) -> str:
        return self._access_token

    def refresh(self) -> bool:
        return False


# ---------------- Users ----------------

def fetch_login_profile(credentials) -> Dict[str, Optional[str]]:
    """GUID, nickname and avatar of whoever owns ``credentials``."""
    return normalize_login_profile(YahooClient(credentials).request("/users;use_login=1"))


def upsert_user(db: Session, profile: Dict[str, Optional[str]]) -> User:
    guid = profile["guid"]
    user = db.get(User, guid)
    if user is None:
        user = User(guid=guid)
    if profile.get("nickname"):
        user.nickname = profile["nickname"]
    if profile.get("image_url"):
        user.image_url = profile["image_url"]
    db.add(user)
    db.commit()
    return user
