import datetime as dt

import pytest
import requests
import responses

from courtside.core.errors import InvalidRequest, ProviderApiError, UpstreamUnavailable
from courtside.schemas.player import Player
from courtside.schemas.schedule import NbaGame
from courtside.services.nba.client import BalldontlieClient, build_session
from courtside.services.nba.schedule import (
    ScheduleCorrelator,
    games_by_team,
    games_per_week,
)
from courtside.services.nba.team_mapping import abbr_for, normalize_abbr, team_id_for

BASE = "https://nba.test/v1"

BOS, LAL, NYK, PHX = 2, 14, 20, 24


def game(gid, day, home, visitor):
    return {
        "id": gid,
        "date": day,
        "season": 2025,
        "status": "Final",
        "home_team": {"id": home, "abbreviation": abbr_for(home)},
        "visitor_team": {"id": visitor, "abbreviation": abbr_for(visitor)},
    }


def nba_game(gid, day, home, visitor):
    return NbaGame.model_validate(game(gid, day, home, visitor))


class FakeProvider:
    def __init__(self, games):
        self.games = games
        self.calls = []

    def get_games(self, start_date, end_date, team_ids=None):
        self.calls.append((start_date, end_date, team_ids))
        if team_ids is None:
            return list(self.games)
        return [g for g in self.games if {g.home_team.id, g.visitor_team.id} & set(team_ids)]


def test_team_mapping_aliases():
    assert normalize_abbr("gs") == "GSW"
    assert team_id_for("NO") == team_id_for("NOP") == 19
    assert team_id_for("PHO") == PHX
    assert team_id_for("UTAH") == 29
    assert team_id_for("XYZ") is None
    assert team_id_for(None) is None
    assert abbr_for(BOS) == "BOS"


@responses.activate
def test_get_games_follows_cursor_and_caches(memory_cache):
    responses.add(
        responses.GET, f"{BASE}/games",
        json={"data": [game(1, "2025-11-17", BOS, LAL)], "meta": {"next_cursor": 77}},
    )
    responses.add(
        responses.GET, f"{BASE}/games",
        json={"data": [game(2, "2025-11-18", NYK, BOS)], "meta": {"next_cursor": None}},
    )
    client = BalldontlieClient(memory_cache, session=build_session(), api_key="k", base_url=BASE)

    games = client.get_games(dt.date(2025, 11, 17), "2025-11-23", team_ids=[LAL, BOS])
    again = client.get_games("2025-11-17", dt.date(2025, 11, 23), team_ids=[BOS, LAL])

    assert [g.id for g in games] == [1, 2]
    assert again == games
    assert len(responses.calls) == 2
    first, second = (c.request for c in responses.calls)
    assert first.headers["Authorization"] == "k"
    assert "per_page=100" in first.url
    assert "team_ids%5B%5D=2" in first.url and "team_ids%5B%5D=14" in first.url
    assert "cursor=77" in second.url


@responses.activate
def test_get_games_errors():
    responses.add(responses.GET, f"{BASE}/games", status=401, json={"error": "bad key"})
    client = BalldontlieClient(None, session=build_session(), api_key="bad", base_url=BASE)
    with pytest.raises(InvalidRequest):
        client.get_games("2025-11-20", "2025-11-17")
    with pytest.raises(ProviderApiError) as info:
        client.get_games("2025-11-17", "2025-11-20")
    assert info.value.status_code == 401


@responses.activate
def test_get_games_server_error_is_upstream_unavailable():
    responses.add(responses.GET, f"{BASE}/games", status=500)
    client = BalldontlieClient(None, session=requests.Session(), api_key="k", base_url=BASE)
    with pytest.raises(UpstreamUnavailable):
        client.get_games("2025-11-17", "2025-11-20")


def test_games_by_team_counts_both_sides():
    games = [nba_game(1, "2025-11-17", BOS, LAL), nba_game(2, "2025-11-18", NYK, BOS)]
    assert games_by_team(games) == {BOS: 2, LAL: 1, NYK: 1}


def test_games_per_week_keys_by_week_then_abbreviation():
    weeks = [(5, dt.date(2025, 11, 17), dt.date(2025, 11, 23)), (6, dt.date(2025, 11, 24), dt.date(2025, 11, 30))]
    games = [
        nba_game(1, "2025-11-17", BOS, LAL),
        nba_game(2, "2025-11-23", NYK, BOS),
        nba_game(3, "2025-11-24", BOS, PHX),
        nba_game(4, "2025-12-01", BOS, PHX),
    ]
    assert games_per_week(games, weeks) == {
        5: {"BOS": 2, "LAL": 1, "NYK": 1},
        6: {"BOS": 1, "PHX": 1},
    }


def players():
    return [
        Player(key="466.p.1", name="Alpha", team_abbr="BOS"),
        Player(key="466.p.2", name="Beta", team_abbr="LAL"),
        Player(key="466.p.3", name="Gamma", team_abbr="NY"),
        Player(key="466.p.4", name="Free", team_abbr=None),
    ]


def test_games_for_players_joins_on_team():
    provider = FakeProvider([
        nba_game(1, "2025-11-17", BOS, LAL),
        nba_game(2, "2025-11-19", NYK, BOS),
        nba_game(3, "2025-11-20", PHX, NYK),
    ])
    out = ScheduleCorrelator(provider).games_for_players(players(), dt.date(2025, 11, 17), dt.date(2025, 11, 23))

    by_key = {pg.player_key: pg for pg in out}
    assert by_key["466.p.1"].games == 2
    assert by_key["466.p.1"].game_dates == ["2025-11-17", "2025-11-19"]
    assert by_key["466.p.3"].games == 2
    assert by_key["466.p.4"].games == 0
    assert provider.calls[0][2] == [BOS, LAL, NYK]


def test_streaming_candidates_rank_by_games():
    provider = FakeProvider([
        nba_game(1, "2025-11-17", NYK, PHX),
        nba_game(2, "2025-11-18", NYK, BOS),
        nba_game(3, "2025-11-19", LAL, NYK),
        nba_game(4, "2025-11-20", LAL, PHX),
    ])
    ranked = ScheduleCorrelator(provider).streaming_candidates(players(), dt.date(2025, 11, 17), dt.date(2025, 11, 23), limit=2)
    assert [pg.name for pg in ranked] == ["Gamma", "Beta"]


def test_weekly_counts_fetch_the_whole_span_once():
    provider = FakeProvider([nba_game(1, "2025-11-18", BOS, LAL)])
    weeks = [(5, dt.date(2025, 11, 17), dt.date(2025, 11, 23)), (6, dt.date(2025, 11, 24), dt.date(2025, 11, 30))]
    counts = ScheduleCorrelator(provider).weekly_counts(weeks)
    assert counts == {5: {"BOS": 1, "LAL": 1}, 6: {}}
    assert provider.calls == [(dt.date(2025, 11, 17), dt.date(2025, 11, 30), None)]
