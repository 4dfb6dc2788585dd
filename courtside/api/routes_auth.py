# courtside/api/routes_auth.py
import base64
import json
import logging
import secrets
from typing import Optional
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from oauthlib.oauth2.rfc6749.errors import OAuth2Error
from sqlalchemy.orm import Session

from courtside.core.auth import SESSION_EXP_SECONDS, create_session_token
from courtside.core.config import settings
from courtside.db.session import get_db
from courtside.deps import get_current_user
from courtside.services.yahoo.oauth import (
    StaticCredentials,
    TokenRepository,
    authorization_url,
    exchange_code,
    fetch_login_profile,
    upsert_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

STATE_COOKIE = "oauth_state"
SESSION_COOKIE = "session_token"


def _b64url(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64url_decode(s: str) -> Optional[dict]:
    try:
        s += "=" * (-len(s) % 4)
        return json.loads(base64.urlsafe_b64decode(s.encode("ascii")).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None


def _frontend_origins() -> set:
    urls = (settings.FRONTEND_URL_LOCAL, settings.FRONTEND_URL_REMOTE)
    return {(p.scheme, p.netloc) for p in (urlsplit(u) for u in urls if u)}


def _return_to(rt: Optional[str]) -> str:
    """
    Absolute targets must be on a configured frontend; anything else lands on
    the default page. A bare path joins the current frontend.
    """
    default = f"{settings.frontend_url}/leagues"
    base = (rt or default).strip()
    if base.startswith(("http://", "https://")):
        target = urlsplit(base)
        if (target.scheme, target.netloc) in _frontend_origins():
            return base
        logger.warning("refusing return_to outside the frontend: %s", target.netloc)
        return default
    return f"{settings.frontend_url}/{base.lstrip('/')}"


def _session_cookie_params() -> dict:
    secure = settings.COOKIE_SECURE
    return {
        "httponly": True,
        "secure": secure,
        # cross-site frontends need SameSite=None, which browsers only accept with Secure
        "samesite": "none" if secure else "lax",
        "path": "/",
        "max_age": SESSION_EXP_SECONDS,
    }


@router.get("/login")
def auth_login(return_to: Optional[str] = Query(default=None), debug: bool = False):
    if not settings.YAHOO_REDIRECT_URI:
        raise HTTPException(500, "YAHOO_REDIRECT_URI missing")
    state = f"{secrets.token_urlsafe(24)}.{_b64url({'r': _return_to(return_to)})}"
    url = authorization_url(state)
    if debug:
        return JSONResponse({"authorize_url": url, "state": state, "env": settings.APP_ENV})
    resp = RedirectResponse(url, status_code=302)
    resp.set_cookie(STATE_COOKIE, state, httponly=True, secure=settings.COOKIE_SECURE,
                    max_age=600, samesite="lax", path="/")
    return resp


@router.get("/callback")
def auth_callback(request: Request, code: str, state: str, db: Session = Depends(get_db)):
    if request.cookies.get(STATE_COOKIE) != state:
        raise HTTPException(400, "Invalid or missing OAuth state")
    parts = state.split(".", 1)
    payload = _b64url_decode(parts[1]) if len(parts) == 2 else None
    if not isinstance(payload, dict):
        raise HTTPException(400, "Malformed OAuth state")

    try:
        token_state, raw = exchange_code(code)
    except OAuth2Error as exc:
        logger.warning("code exchange rejected: %s", exc)
        return RedirectResponse(url="/auth/login", status_code=302)

    profile = fetch_login_profile(StaticCredentials(token_state.access_token))
    if not profile.get("guid"):
        raise HTTPException(502, "Yahoo did not return a user profile")
    user = upsert_user(db, profile)
    TokenRepository(db).save(user.guid, token_state, raw=raw)
    logger.info("signed in %s", user.guid)

    resp = RedirectResponse(_return_to(payload.get("r")), status_code=302)
    resp.set_cookie(SESSION_COOKIE, create_session_token(user.guid), **_session_cookie_params())
    resp.delete_cookie(STATE_COOKIE, path="/")
    return resp


@router.post("/logout")
def auth_logout(guid: str = Depends(get_current_user), db: Session = Depends(get_db)):
    TokenRepository(db).delete(guid)
    resp = JSONResponse({"success": True})
    resp.delete_cookie(SESSION_COOKIE, path="/")
    return resp
