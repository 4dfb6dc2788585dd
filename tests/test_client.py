import pytest
import requests
import responses
from payloads import player_fragments, players_payload

from courtside.core.errors import (
    AuthExpired,
    InvalidRequest,
    NotAuthorized,
    NotFound,
    ProviderApiError,
    UpstreamUnavailable,
)
from courtside.services.yahoo import client as ids
from courtside.services.yahoo.client import YahooClient
from courtside.services.yahoo.players import normalize_players

BASE = "https://fantasy.test/v2"


class FakeCredentials:
    def __init__(self, tokens=("t1", "t2"), can_refresh=True):
        self.tokens = list(tokens)
        self.can_refresh = can_refresh
        self.refresh_failed = False
        self.refreshes = 0

    def token(self):
        return self.tokens[0]

    def refresh(self):
        self.refreshes += 1
        if not self.can_refresh:
            self.refresh_failed = True
            return False
        self.tokens.pop(0)
        return True


def make_client(creds=None):
    sleeps = []
    c = YahooClient(creds or FakeCredentials(), base_url=BASE, timeout=5, backoff=0.25, sleep=sleeps.append)
    return c, sleeps


@responses.activate
def test_request_sends_bearer_and_json_flag():
    responses.add(responses.GET, f"{BASE}/league/466.l.1", json={"ok": 1})
    c, _ = make_client()
    assert c.request("/league/466.l.1") == {"ok": 1}
    sent = responses.calls[0].request
    assert sent.headers["Authorization"] == "Bearer t1"
    assert "format=json" in sent.url


@responses.activate
def test_401_refreshes_once_and_retries():
    url = f"{BASE}/league/466.l.1"
    responses.add(responses.GET, url, status=401)
    responses.add(responses.GET, url, json={"ok": 1})
    creds = FakeCredentials()
    c, _ = make_client(creds)

    assert c.request("/league/466.l.1") == {"ok": 1}
    assert creds.refreshes == 1
    assert responses.calls[1].request.headers["Authorization"] == "Bearer t2"


@responses.activate
def test_second_401_is_auth_expired():
    url = f"{BASE}/league/466.l.1"
    responses.add(responses.GET, url, status=401)
    responses.add(responses.GET, url, status=401)
    c, _ = make_client()
    with pytest.raises(AuthExpired):
        c.request("/league/466.l.1")
    assert len(responses.calls) == 2


@responses.activate
def test_failed_refresh_is_auth_expired():
    responses.add(responses.GET, f"{BASE}/league/466.l.1", status=401)
    c, _ = make_client(FakeCredentials(can_refresh=False))
    with pytest.raises(AuthExpired) as info:
        c.request("/league/466.l.1")
    assert info.value.http_status == 401
    assert len(responses.calls) == 1


@responses.activate
def test_5xx_retries_once_after_backoff():
    url = f"{BASE}/league/466.l.1"
    responses.add(responses.GET, url, status=503)
    responses.add(responses.GET, url, json={"ok": 1})
    c, sleeps = make_client()
    assert c.request("/league/466.l.1") == {"ok": 1}
    assert sleeps == [0.25]


@responses.activate
def test_repeated_5xx_is_upstream_unavailable():
    url = f"{BASE}/league/466.l.1"
    responses.add(responses.GET, url, status=502)
    responses.add(responses.GET, url, status=502)
    responses.add(responses.GET, url, json={"never": 1})
    c, _ = make_client()
    with pytest.raises(UpstreamUnavailable):
        c.request("/league/466.l.1")
    assert len(responses.calls) == 2


@responses.activate
def test_timeout_counts_as_transient():
    url = f"{BASE}/league/466.l.1"
    responses.add(responses.GET, url, body=requests.exceptions.ConnectTimeout("slow"))
    responses.add(responses.GET, url, json={"ok": 1})
    c, _ = make_client()
    assert c.request("/league/466.l.1") == {"ok": 1}


@responses.activate
def test_post_is_not_retried():
    url = f"{BASE}/league/466.l.1/transactions"
    responses.add(responses.POST, url, status=503)
    c, sleeps = make_client()
    with pytest.raises(UpstreamUnavailable):
        c.post_xml("/league/466.l.1/transactions", "<fantasy_content/>")
    assert len(responses.calls) == 1
    assert sleeps == []


@responses.activate
def test_put_sends_xml_and_is_retried():
    url = f"{BASE}/team/466.l.1.t.3/roster"
    responses.add(responses.PUT, url, status=500)
    responses.add(responses.PUT, url, body="<ok/>")
    c, _ = make_client()
    assert c.put_xml("/team/466.l.1.t.3/roster", "<fantasy_content/>") == "<ok/>"
    assert responses.calls[1].request.headers["Content-Type"] == "application/xml"


@pytest.mark.parametrize(
    "status,error",
    [(403, NotAuthorized), (404, NotFound), (400, InvalidRequest), (409, ProviderApiError)],
)
@responses.activate
def test_status_mapping(status, error):
    responses.add(responses.GET, f"{BASE}/league/466.l.1", status=status, body="nope")
    c, _ = make_client()
    with pytest.raises(error) as info:
        c.request("/league/466.l.1")
    assert info.value.status_code == status
    assert len(responses.calls) == 1


@responses.activate
def test_not_authorized_is_a_provider_error_with_403():
    responses.add(responses.GET, f"{BASE}/league/466.l.1", status=403, body="<error/>")
    c, _ = make_client()
    with pytest.raises(ProviderApiError) as info:
        c.request("/league/466.l.1")
    assert info.value.http_status == 403
    assert info.value.to_dict()["error"] == "NotAuthorized"


@responses.activate
def test_paginate_stops_on_short_page():
    responses.add(responses.GET, f"{BASE}/items/0/2", json={"items": ["a", "b"]})
    responses.add(responses.GET, f"{BASE}/items/2/2", json={"items": ["c"]})
    c, _ = make_client()
    got = c.paginate(lambda start, count: f"/items/{start}/{count}", lambda raw: raw["items"], page_size=2)
    assert got == ["a", "b", "c"]
    assert len(responses.calls) == 2


def test_identifier_validation_happens_before_any_call():
    assert ids.league_key("466.l.17802") == "466.l.17802"
    assert ids.team_key("466.l.17802.t.3") == "466.l.17802.t.3"
    assert ids.league_key_of("466.l.17802.t.3") == "466.l.17802"
    assert ids.week("7") == 7
    for bad in ("", None, "466.l.1/../x", "466.l.1?x=1"):
        with pytest.raises(InvalidRequest):
            ids.league_key(bad)
    with pytest.raises(InvalidRequest):
        ids.team_key("466.l.1")
    with pytest.raises(InvalidRequest):
        ids.week(0)
    with pytest.raises(InvalidRequest):
        ids.date("01/02/2025")


@responses.activate
def test_paginate_counts_raw_entries_not_normalized_ones():
    first = [player_fragments(f"466.p.{i}", f"P{i}", "BOS", ["G"]) for i in range(25)]
    first[7][0] = [{"player_id": "7"}, {"name": {"full": "No Key"}}]
    second = [player_fragments(f"466.p.{i}", f"P{i}", "BOS", ["G"]) for i in range(25, 35)]
    responses.add(responses.GET, f"{BASE}/players/0/25", json=players_payload(first))
    responses.add(responses.GET, f"{BASE}/players/25/25", json=players_payload(second))
    c, _ = make_client()

    got = c.paginate(lambda start, count: f"/players/{start}/{count}", normalize_players, collection="players")

    assert len(got) == 34
    assert len(responses.calls) == 2
