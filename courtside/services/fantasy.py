# courtside/services/fantasy.py
"""
Fantasy data service: the one surface request handlers call.

Every read goes cache -> Yahoo client -> normalizer -> cache. List reads that
hit a 403 come back empty with a ``NotAuthorized`` marker and are not cached.
Writes never touch cached values; they invalidate the team's and league's keys.
"""
from __future__ import annotations

import datetime as dt
import functools
import logging
from typing import Any, Callable, List, Optional, Sequence, Type, TypeVar
from urllib.parse import quote

from pydantic import TypeAdapter

from courtside.core.errors import CacheUnavailable, InvalidRequest, NotAuthorized, NotFound
from courtside.schemas.common import RecordList
from courtside.schemas.league import League, LeagueSettings, StatCategory
from courtside.schemas.matchup import Matchup, Scoreboard
from courtside.schemas.mutation import MutationResult, RosterUpdate
from courtside.schemas.player import Player, PlayerFilters, StatLine
from courtside.schemas.standings import StandingsEntry
from courtside.schemas.team import Team, TeamWithRoster
from courtside.schemas.transaction import DraftPick, Transaction, TransactionFilters
from courtside.services import stat_catalog
from courtside.services.cache import CacheStore, Resource, cache_key, ttl_for
from courtside.services.yahoo import client as ids
from courtside.services.yahoo import writes
from courtside.services.yahoo.client import PAGE_SIZE, YahooClient
from courtside.services.yahoo.leagues import (
    normalize_draft_results,
    normalize_league,
    normalize_league_settings,
    normalize_leagues,
)
from courtside.services.yahoo.matchups import normalize_scoreboard, normalize_team_matchups
from courtside.services.yahoo.players import (
    normalize_player,
    normalize_player_stats,
    normalize_players,
    normalize_roster,
)
from courtside.services.yahoo.standings import normalize_standings
from courtside.services.yahoo.teams import normalize_team, normalize_team_stats, normalize_teams
from courtside.services.yahoo.transactions import normalize_transactions

logger = logging.getLogger(__name__)

T = TypeVar("T")

PLAYER_STATUSES = {"A", "FA", "W", "T", "K"}
STAT_PERIODS = {"season", "lastweek", "lastmonth", "week", "date"}
TRANSACTION_TYPES = {"add", "drop", "commish", "trade", "waiver", "pending_trade"}


@functools.lru_cache(maxsize=None)
def _adapter(tp: Any) -> TypeAdapter:
    return TypeAdapter(tp)


def _players_path(league_key: str, f: PlayerFilters, start: int, count: int) -> str:
    seg = f";status={f.status}"
    if f.search:
        seg += f";search={quote(f.search, safe='')}"
    if f.position:
        seg += f";position={quote(f.position, safe='')}"
    if f.sort:
        seg += f";sort={quote(f.sort, safe='')}"
    if f.sort_type:
        seg += f";sort_type={f.sort_type}"
    if f.sort_week is not None:
        seg += f";sort_week={f.sort_week}"
    seg += f";start={start};count={count}"
    return f"/league/{league_key}/players{seg}/stats"


def _stats_tail(period: str, week: Optional[int], date: Optional[str]) -> str:
    if period == "week":
        if week is None:
            raise InvalidRequest("week is required for period=week")
        return f"stats;type=week;week={week}"
    if period == "date":
        if date is None:
            raise InvalidRequest("date is required for period=date")
        return f"stats;type=date;date={date}"
    if period not in STAT_PERIODS:
        raise InvalidRequest(f"Unknown stat period {period!r}")
    return f"stats;type={period}"


class FantasyDataService:
    """Cache and Yahoo client come in from outside so tests can swap both."""

    def __init__(
        self,
        client: YahooClient,
        cache: CacheStore,
        user_id: Optional[str] = None,
        game_key: str = "nba",
        today: Callable[[], dt.date] = dt.date.today,
    ):
        self.client = client
        self.cache = cache
        self.user_id = user_id
        self.game_key = ids.game_key(game_key)
        self._today = today

    # ---------------- plumbing ----------------

    def _cached(self, resource: Resource, parts: Sequence[Any], fetch: Callable[[], T], tp: Any) -> T:
        adapter = _adapter(tp)
        raw = self.cache.get_or_set(
            cache_key(resource, *parts),
            ttl_for(resource),
            lambda: adapter.dump_python(fetch(), mode="json"),
        )
        return adapter.validate_python(raw)

    def _listing(self, resource: Optional[Resource], parts: Sequence[Any],
                 fetch: Callable[[], List[T]], item_type: Type[T]) -> RecordList[T]:
        try:
            if resource is None:
                items = fetch()
            else:
                items = self._cached(resource, parts, fetch, List[item_type])
        except NotAuthorized:
            logger.info("403 on %s %s; returning empty list", resource.value if resource else "search", parts)
            return RecordList[item_type](items=[], error=NotAuthorized.code)
        return RecordList[item_type](items=items)

    def _categories(self, league_key: str) -> List[StatCategory]:
        return self.get_league_settings(league_key).categories

    # ---------------- leagues ----------------

    def get_leagues(self, user_id: Optional[str] = None) -> RecordList[League]:
        uid = user_id or self.user_id
        path = f"/users;use_login=1/games;game_keys={self.game_key}/leagues"
        return self._listing(
            Resource.LEAGUES, (uid, self.game_key),
            lambda: normalize_leagues(self.client.request(path)),
            League,
        )

    def get_league(self, league_key: str) -> League:
        lk = ids.league_key(league_key)

        def fetch() -> League:
            league = normalize_league(self.client.request(f"/league/{lk}"))
            if league is None:
                raise NotFound(f"League {lk} not found")
            return league

        return self._cached(Resource.LEAGUE, (lk,), fetch, League)

    def get_league_settings(self, league_key: str) -> LeagueSettings:
        lk = ids.league_key(league_key)

        def fetch() -> LeagueSettings:
            settings = normalize_league_settings(self.client.request(f"/league/{lk}/settings"))
            if settings is None:
                raise NotFound(f"Settings for league {lk} not found")
            return settings

        return self._cached(Resource.SETTINGS, (lk,), fetch, LeagueSettings)

    def get_stat_columns(self, league_key: str) -> List[stat_catalog.StatColumn]:
        """Display columns for the league's enabled categories, labelled the league's way."""
        return stat_catalog.build_stat_columns(self._categories(league_key))

    def get_standings(self, league_key: str) -> RecordList[StandingsEntry]:
        lk = ids.league_key(league_key)
        return self._listing(
            Resource.STANDINGS, (lk,),
            lambda: normalize_standings(self.client.request(f"/league/{lk}/standings"), self._categories(lk)),
            StandingsEntry,
        )

    def get_teams(self, league_key: str) -> RecordList[Team]:
        lk = ids.league_key(league_key)
        return self._listing(
            Resource.TEAMS, (lk, self.user_id),
            lambda: normalize_teams(self.client.request(f"/league/{lk}/teams")),
            Team,
        )

    def get_my_team(self, league_key: str) -> Team:
        teams = self.get_teams(league_key)
        if teams.error == NotAuthorized.code:
            raise NotAuthorized(403, "", message=f"Not authorized to view league {league_key}")
        for team in teams.items:
            if team.is_owned:
                return team
        raise NotFound(f"No team owned by the current user in league {league_key}")

    def get_draft_results(self, league_key: str) -> RecordList[DraftPick]:
        lk = ids.league_key(league_key)
        return self._listing(
            Resource.DRAFT_RESULTS, (lk,),
            lambda: normalize_draft_results(self.client.request(f"/league/{lk}/draftresults")),
            DraftPick,
        )

    # ---------------- teams ----------------

    def get_team(self, team_key: str) -> Team:
        tk = ids.team_key(team_key)

        def fetch() -> Team:
            team = normalize_team(self.client.request(f"/team/{tk}"))
            if team is None:
                raise NotFound(f"Team {tk} not found")
            return team

        return self._cached(Resource.TEAM, (tk, self.user_id), fetch, Team)

    def get_roster(self, team_key: str, week: Optional[int] = None, date: Optional[str] = None) -> RecordList[Player]:
        tk = ids.team_key(team_key)
        wk, day = ids.week(week), ids.date(date)
        if wk is not None and day is not None:
            raise InvalidRequest("Pass either week or date, not both")
        lk = ids.league_key_of(tk)
        if wk is not None:
            path = f"/team/{tk}/roster;week={wk}/players/stats;type=week;week={wk}"
        elif day is not None:
            path = f"/team/{tk}/roster;date={day}/players/stats;type=date;date={day}"
        else:
            path = f"/team/{tk}/roster/players/stats;type=season"
        return self._listing(
            Resource.ROSTER, (tk, wk, day),
            lambda: normalize_roster(self.client.request(path), self._categories(lk)),
            Player,
        )

    def get_team_with_roster(self, team_key: str, week: Optional[int] = None) -> TeamWithRoster:
        team = self.get_team(team_key)
        roster = self.get_roster(team.key, week=week)
        if roster.error:
            raise NotAuthorized(403, "", message=f"Not authorized to view roster of {team.key}")
        return TeamWithRoster(team=team, players=roster.items)

    def get_team_stats(self, team_key: str, period: str = "season", week: Optional[int] = None) -> StatLine:
        tk = ids.team_key(team_key)
        wk = ids.week(week)
        tail = _stats_tail(period, wk, None)
        lk = ids.league_key_of(tk)

        def fetch() -> StatLine:
            line = normalize_team_stats(self.client.request(f"/team/{tk}/{tail}"), period, wk, self._categories(lk))
            if line is None:
                raise NotFound(f"No stats for team {tk}")
            return line

        return self._cached(Resource.TEAM_STATS, (tk, period, wk), fetch, StatLine)

    # ---------------- players ----------------

    def get_player(self, player_key: str) -> Player:
        pk = ids.player_key(player_key)

        def fetch() -> Player:
            player = normalize_player(self.client.request(f"/player/{pk}"))
            if player is None:
                raise NotFound(f"Player {pk} not found")
            return player

        return self._cached(Resource.PLAYER, (pk,), fetch, Player)

    def get_player_stats(self, player_key: str, period: str = "season",
                         week: Optional[int] = None, date: Optional[str] = None) -> StatLine:
        pk = ids.player_key(player_key)
        wk, day = ids.week(week), ids.date(date)
        tail = _stats_tail(period, wk, day)

        def fetch() -> StatLine:
            line = normalize_player_stats(self.client.request(f"/player/{pk}/{tail}"), period, wk, day)
            if line is None:
                raise NotFound(f"No stats for player {pk}")
            return line

        return self._cached(Resource.PLAYER_STATS, (pk, period, wk, day), fetch, StatLine)

    def get_free_agents(self, league_key: str, filters: Optional[PlayerFilters] = None) -> RecordList[Player]:
        lk = ids.league_key(league_key)
        f = filters or PlayerFilters()
        if f.status not in PLAYER_STATUSES:
            raise InvalidRequest(f"Unknown player status {f.status!r}")
        if f.start < 0 or not 1 <= f.count <= PAGE_SIZE:
            raise InvalidRequest(f"start must be >= 0 and count between 1 and {PAGE_SIZE}")
        if f.compound_sort and f.compound_sort not in stat_catalog.COMPOUND_SORTS:
            raise InvalidRequest(f"Unknown compound sort {f.compound_sort!r}")

        def fetch() -> List[Player]:
            categories = self._categories(lk)
            if f.fetch_all:
                return self.client.paginate(
                    lambda start, count: _players_path(lk, f, start, count),
                    lambda raw: normalize_players(raw, categories),
                    collection="players",
                    start=f.start,
                )
            return normalize_players(self.client.request(_players_path(lk, f, f.start, f.count)), categories)

        parts = (lk, f.status, f.position, f.sort, f.sort_type, f.sort_week, f.search, f.start,
                 "all" if f.fetch_all else f.count)
        result = self._listing(Resource.FREE_AGENTS, parts, fetch, Player)
        if f.compound_sort:
            ranked = stat_catalog.sort_by_compound(result.items, f.compound_sort)
            return RecordList[Player](items=ranked, error=result.error)
        return result

    def search_players(self, league_key: str, term: str) -> RecordList[Player]:
        """Name search. Not cached: terms rarely repeat."""
        lk = ids.league_key(league_key)
        term = (term or "").strip()
        if not term:
            raise InvalidRequest("Search term is required")
        path = f"/league/{lk}/players;search={quote(term, safe='')}/stats"
        return self._listing(
            None, (lk, term),
            lambda: normalize_players(self.client.request(path), self._categories(lk)),
            Player,
        )

    # ---------------- matchups ----------------

    def get_scoreboard(self, league_key: str, week: Optional[int] = None) -> Scoreboard:
        lk = ids.league_key(league_key)
        wk = ids.week(week)
        path = f"/league/{lk}/scoreboard" + (f";week={wk}" if wk is not None else "")

        def fetch() -> Scoreboard:
            board = normalize_scoreboard(self.client.request(path), self._categories(lk))
            if board is None:
                raise NotFound(f"No scoreboard for league {lk}")
            return board

        return self._cached(Resource.SCOREBOARD, (lk, wk), fetch, Scoreboard)

    def get_my_matchup(self, team_key: str, week: Optional[int] = None) -> Optional[Matchup]:
        """This team's matchup for ``week`` (default: the league's current week), or None."""
        tk = ids.team_key(team_key)
        wk = ids.week(week)
        lk = ids.league_key_of(tk)
        if wk is None:
            wk = self.get_league(lk).current_week

        def fetch() -> Optional[Matchup]:
            path = f"/team/{tk}/matchups" + (f";weeks={wk}" if wk is not None else "")
            matchups = normalize_team_matchups(self.client.request(path), tk, self._categories(lk))
            for m in matchups:
                if wk is None or m.week == wk:
                    return m
            return None

        return self._cached(Resource.MATCHUP, (tk, wk), fetch, Optional[Matchup])

    def get_all_matchups(self, team_key: str) -> RecordList[Matchup]:
        tk = ids.team_key(team_key)
        lk = ids.league_key_of(tk)
        return self._listing(
            Resource.MATCHUPS, (tk,),
            lambda: normalize_team_matchups(self.client.request(f"/team/{tk}/matchups"), tk, self._categories(lk)),
            Matchup,
        )

    # ---------------- transactions ----------------

    def get_transactions(self, league_key: str, filters: Optional[TransactionFilters] = None) -> RecordList[Transaction]:
        lk = ids.league_key(league_key)
        f = filters or TransactionFilters()
        types = sorted(set(f.types or []))
        unknown = [t for t in types if t not in TRANSACTION_TYPES]
        if unknown:
            raise InvalidRequest(f"Unknown transaction types {unknown}")
        team = ids.team_key(f.team_key) if f.team_key else None
        if f.start < 0 or (f.count is not None and f.count < 1):
            raise InvalidRequest("start must be >= 0 and count >= 1")

        def path(start: int, count: int) -> str:
            seg = ""
            if types:
                seg += f";types={','.join(types)}"
            if team:
                seg += f";team_key={team}"
            return f"/league/{lk}/transactions{seg};start={start};count={count}"

        def fetch() -> List[Transaction]:
            if f.count is None:
                return self.client.paginate(
                    path, normalize_transactions, collection="transactions", start=f.start,
                )
            return normalize_transactions(self.client.request(path(f.start, f.count)))

        parts = (lk, ",".join(types) or None, team, f.start, "all" if f.count is None else f.count)
        return self._listing(Resource.TRANSACTIONS, parts, fetch, Transaction)

    # ---------------- writes ----------------

    def _invalidate(self, league_key: str, team_key: str) -> None:
        self.cache.invalidate_for_team(team_key)
        self.cache.invalidate_for_league(league_key)

    def _write(self, league_key: str, team_key: str, send: Callable[[], Any]) -> Any:
        """
        Run a Yahoo write, then drop the team's and league's cached reads.
        Invalidation runs even when the write fails; if both fail, the write's
        error is the one raised.
        """
        try:
            result = send()
        except Exception:
            try:
                self._invalidate(league_key, team_key)
            except CacheUnavailable:
                logger.exception("cache invalidation failed after a failed write to %s", team_key)
            raise
        self._invalidate(league_key, team_key)
        return result

    def _team_in_league(self, league_key: str, team_key: str):
        lk = ids.league_key(league_key)
        tk = ids.team_key(team_key)
        if ids.league_key_of(tk) != lk:
            raise InvalidRequest(f"Team {tk} is not in league {lk}")
        return lk, tk

    def add_player(self, league_key: str, player_key: str, team_key: str,
                   faab_bid: Optional[int] = None) -> MutationResult:
        lk, tk = self._team_in_league(league_key, team_key)
        pk = ids.player_key(player_key)
        xml = writes.add_xml(pk, tk, faab_bid)
        self._write(lk, tk, lambda: self.client.post_xml(f"/league/{lk}/transactions", xml))
        logger.info("added %s to %s", pk, tk)
        return MutationResult(success=True, message="Player added")

    def add_drop_player(self, league_key: str, add_key: str, drop_key: str, team_key: str,
                        faab_bid: Optional[int] = None) -> MutationResult:
        lk, tk = self._team_in_league(league_key, team_key)
        add_pk, drop_pk = ids.player_key(add_key), ids.player_key(drop_key)
        if add_pk == drop_pk:
            raise InvalidRequest("Cannot add and drop the same player")
        xml = writes.add_drop_xml(add_pk, drop_pk, tk, faab_bid)
        self._write(lk, tk, lambda: self.client.post_xml(f"/league/{lk}/transactions", xml))
        logger.info("added %s and dropped %s on %s", add_pk, drop_pk, tk)
        return MutationResult(success=True, message="Player added and dropped")

    def drop_player(self, league_key: str, player_key: str, team_key: str) -> MutationResult:
        lk, tk = self._team_in_league(league_key, team_key)
        pk = ids.player_key(player_key)
        xml = writes.drop_xml(pk, tk)
        self._write(lk, tk, lambda: self.client.post_xml(f"/league/{lk}/transactions", xml))
        logger.info("dropped %s from %s", pk, tk)
        return MutationResult(success=True, message="Player dropped")

    def update_roster(self, team_key: str, update: RosterUpdate) -> MutationResult:
        tk = ids.team_key(team_key)
        lk = ids.league_key_of(tk)
        if not update.players:
            raise InvalidRequest("No roster moves given")
        moves = [(ids.player_key(m.player_key), ids.require(m.position, "position")) for m in update.players]
        day = ids.date(update.date)
        wk = ids.week(update.week)
        if day is None and wk is None:
            day = self._today().isoformat()
        xml = writes.roster_xml(moves, date=day, week=wk)
        self._write(lk, tk, lambda: self.client.put_xml(f"/team/{tk}/roster", xml))
        logger.info("updated roster of %s (%d moves)", tk, len(moves))
        return MutationResult(success=True, message="Roster updated")
