import threading

import pytest
import requests
import responses

from courtside.core.auth import create_session_token, decode_session_token
from courtside.core.config import settings
from courtside.core.errors import AuthExpired
from courtside.db.models import OAuthToken
from courtside.services.yahoo.oauth import (
    REFRESH_FAILED,
    TokenManager,
    TokenRepository,
    TokenState,
    UserCredentials,
    refresh_access_token,
    upsert_user,
)


class Refresher:
    def __init__(self, payload=None, error=None):
        self.payload = payload or {"access_token": "new", "refresh_token": "r2", "expires_in": 3600}
        self.error = error
        self.calls = []

    def __call__(self, refresh_token):
        self.calls.append(refresh_token)
        if self.error:
            raise self.error
        return self.payload


def stale(clock, **kw):
    return TokenState(access_token="old", refresh_token="r1", expires_at=clock() - 1, **kw)


def test_valid_token_is_returned_without_refresh(clock):
    refresher = Refresher()
    state = TokenState("tok", "r1", clock() + 100)
    token, new_state = TokenManager(refresher, clock).get_valid_token(state)
    assert token == "tok"
    assert new_state is state
    assert refresher.calls == []


def test_expired_token_is_refreshed(clock):
    refresher = Refresher()
    token, new_state = TokenManager(refresher, clock).get_valid_token(stale(clock))
    assert token == "new"
    assert new_state.refresh_token == "r2"
    assert new_state.expires_at == clock() + 3600
    assert refresher.calls == ["r1"]


def test_refresh_keeps_old_refresh_token_and_default_lifetime(clock):
    refresher = Refresher(payload={"access_token": "new"})
    _, new_state = TokenManager(refresher, clock).get_valid_token(stale(clock))
    assert new_state.refresh_token == "r1"
    assert new_state.expires_at == clock() + 3600


def test_refresh_failure_is_flagged_not_raised(clock):
    refresher = Refresher(error=requests.HTTPError("400 invalid_grant"))
    _, new_state = TokenManager(refresher, clock).get_valid_token(stale(clock))
    assert new_state.last_error == REFRESH_FAILED
    assert new_state.refresh_failed
    assert new_state.access_token == "old"


def test_missing_refresh_token_is_a_failed_refresh(clock):
    state = TokenState("old", None, clock() - 1)
    _, new_state = TokenManager(Refresher(), clock).get_valid_token(state)
    assert new_state.refresh_failed


def test_concurrent_refreshes_share_one_grant(clock):
    gate = threading.Event()

    class SlowRefresher(Refresher):
        def __call__(self, refresh_token):
            gate.wait(1)
            return super().__call__(refresh_token)

    refresher = SlowRefresher()
    manager = TokenManager(refresher, clock)
    state = stale(clock)
    results = []

    def worker():
        results.append(manager.get_valid_token(state, session_key="GUID1")[0])

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    gate.set()
    for t in threads:
        t.join()

    assert results == ["new"] * 4
    assert len(refresher.calls) == 1


@responses.activate
def test_refresh_grant_uses_basic_auth():
    responses.add(responses.POST, settings.YAHOO_TOKEN_URL, json={"access_token": "a", "expires_in": 3600})
    assert refresh_access_token("r1")["access_token"] == "a"
    sent = responses.calls[0].request
    assert sent.headers["Authorization"].startswith("Basic ")
    assert "grant_type=refresh_token" in sent.body
    assert "refresh_token=r1" in sent.body


def test_repository_round_trip_is_encrypted(db):
    repo = TokenRepository(db)
    repo.save("GUID1", TokenState("access-secret", "refresh-secret", 123.0), raw={"token_type": "bearer", "scope": ["fspt-w"]})

    row = db.query(OAuthToken).one()
    assert "access-secret" not in row.access_token
    assert row.scope == "fspt-w"

    loaded = repo.load("GUID1")
    assert loaded == TokenState("access-secret", "refresh-secret", 123.0)

    repo.save("GUID1", TokenState("second", "refresh-secret", 456.0, REFRESH_FAILED))
    assert db.query(OAuthToken).count() == 1
    assert repo.load("GUID1").refresh_failed

    repo.delete("GUID1")
    assert repo.load("GUID1") is None


def test_user_credentials_persist_refreshed_state(db, clock):
    repo = TokenRepository(db)
    repo.save("GUID1", stale(clock))
    creds = UserCredentials(TokenManager(Refresher(), clock), repo, "GUID1")

    assert creds.token() == "new"
    assert repo.load("GUID1").access_token == "new"
    assert not creds.refresh_failed


def test_user_credentials_without_token_on_file(db, clock):
    creds = UserCredentials(TokenManager(Refresher(), clock), TokenRepository(db), "nobody")
    with pytest.raises(AuthExpired):
        creds.token()


def test_upsert_user_keeps_existing_fields(db):
    upsert_user(db, {"guid": "GUID1", "nickname": "hooper", "image_url": "https://img/a.png"})
    user = upsert_user(db, {"guid": "GUID1", "nickname": None, "image_url": "https://img/b.png"})
    assert user.nickname == "hooper"
    assert user.image_url == "https://img/b.png"


def test_session_tokens():
    token = create_session_token("GUID1", now=1000)
    assert decode_session_token(token, now=1001) == "GUID1"
    assert decode_session_token(token + "x", now=1001) is None
    assert decode_session_token(token, now=1000 + 8 * 24 * 3600) is None
    assert decode_session_token("garbage", now=1001) is None
