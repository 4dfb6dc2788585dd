# courtside/services/cache.py
"""
Cache-aside store shared by every request.

Two backends: ``MemoryCacheStore`` (one process, tests, local dev) and
``SqlCacheStore`` (a table every worker sees). Values go in as JSON so both
backends hand back fresh copies, never the object that was stored.
"""
from __future__ import annotations

import fnmatch
import itertools
import json
import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from courtside.core.errors import CacheUnavailable
from courtside.db.models import CacheEntry

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

# writes between sweeps of expired entries
PURGE_EVERY = 500


class Resource(str, Enum):
    LEAGUES = "leagues"
    LEAGUE = "league"
    SETTINGS = "settings"
    STANDINGS = "standings"
    TEAMS = "teams"
    TEAM = "team"
    ROSTER = "roster"
    PLAYER = "player"
    PLAYER_STATS = "playerstats"
    TEAM_STATS = "teamstats"
    FREE_AGENTS = "freeagents"
    SCOREBOARD = "scoreboard"
    MATCHUP = "matchup"
    MATCHUPS = "matchups"
    TRANSACTIONS = "transactions"
    DRAFT_RESULTS = "draftresults"
    SCHEDULE = "schedule"


# seconds; one policy per resource
TTL_POLICY: Dict[Resource, int] = {
    Resource.LEAGUES: 1800,
    Resource.LEAGUE: 3600,
    Resource.SETTINGS: 86400,
    Resource.STANDINGS: 3600,
    Resource.TEAMS: 3600,
    Resource.TEAM: 900,
    Resource.ROSTER: 900,
    Resource.PLAYER: 1800,
    Resource.PLAYER_STATS: 1800,
    Resource.TEAM_STATS: 900,
    Resource.FREE_AGENTS: 600,
    Resource.SCOREBOARD: 300,
    Resource.MATCHUP: 300,
    Resource.MATCHUPS: 300,
    Resource.TRANSACTIONS: 600,
    Resource.DRAFT_RESULTS: 86400,
    Resource.SCHEDULE: 21600,
}

_NONE_PART = "_"


def ttl_for(resource: Resource) -> int:
    return TTL_POLICY[resource]


def cache_key(resource: Resource, *parts: Any) -> str:
    """
    ``yahoo:roster:466.l.1.t.3:7``. Every argument that changes the response is a
    part; ``None`` parts still occupy their slot so positions never shift.
    """
    prefix = "nba" if resource is Resource.SCHEDULE else "yahoo"
    rendered = [_NONE_PART if p is None else str(p) for p in parts]
    return ":".join([prefix, resource.value, *rendered])


def team_patterns(team_key: str) -> Tuple[str, ...]:
    return (
        cache_key(Resource.ROSTER, team_key) + ":*",
        cache_key(Resource.TEAM, team_key) + ":*",
        cache_key(Resource.TEAM_STATS, team_key) + ":*",
        cache_key(Resource.MATCHUP, team_key) + ":*",
        cache_key(Resource.MATCHUPS, team_key),
    )


def league_patterns(league_key: str) -> Tuple[str, ...]:
    return (
        cache_key(Resource.STANDINGS, league_key),
        cache_key(Resource.TEAMS, league_key) + ":*",
        cache_key(Resource.TRANSACTIONS, league_key) + ":*",
        cache_key(Resource.FREE_AGENTS, league_key) + ":*",
        cache_key(Resource.SCOREBOARD, league_key) + ":*",
    )


class CacheStore:
    """
    Backend-neutral cache-aside API. Subclasses implement the ``_`` hooks.

    Expired entries go when they are next read, and in a sweep every
    ``purge_every`` writes so keys that are never read again do not pile up.
    """

    def __init__(self, clock: Optional[Clock] = None, purge_every: int = PURGE_EVERY):
        self._clock = clock or time.time
        self._purge_every = purge_every
        self._write_count = itertools.count(1)

    # ---- backend hooks ----
    def _read(self, key: str) -> Optional[Tuple[float, str]]:
        raise NotImplementedError

    def _write(self, key: str, payload: str, expires_at: float, stored_at: float) -> None:
        raise NotImplementedError

    def _remove(self, key: str) -> int:
        raise NotImplementedError

    def _remove_matching(self, pattern: str) -> int:
        raise NotImplementedError

    def _remove_expired(self, now: float) -> int:
        raise NotImplementedError

    # ---- public API ----
    def _lookup(self, key: str) -> Tuple[bool, Any]:
        entry = self._read(key)
        if entry is None:
            return False, None
        expires_at, payload = entry
        if expires_at <= self._clock():
            return False, None
        return True, json.loads(payload)

    def get(self, key: str, default: Any = None) -> Any:
        try:
            hit, value = self._lookup(key)
        except CacheUnavailable as exc:
            logger.warning("cache read failed for %s: %s", key, exc)
            return default
        return value if hit else default

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        payload = json.dumps(value, separators=(",", ":"))
        now = self._clock()
        try:
            self._write(key, payload, now + ttl_seconds, now)
            if self._purge_every and next(self._write_count) % self._purge_every == 0:
                self.purge_expired()
        except CacheUnavailable as exc:
            logger.warning("cache write failed for %s: %s", key, exc)

    def get_or_set(self, key: str, ttl_seconds: int, fetch: Callable[[], Any]) -> Any:
        """
        Return the cached value, or call ``fetch`` and store what it returns.
        An unreachable store degrades to calling ``fetch`` directly. Errors raised
        by ``fetch`` propagate and nothing is stored.
        """
        try:
            hit, value = self._lookup(key)
        except CacheUnavailable as exc:
            logger.warning("cache unavailable, fetching %s directly: %s", key, exc)
            return fetch()
        if hit:
            logger.debug("cache HIT %s", key)
            return value
        logger.debug("cache MISS %s", key)
        value = fetch()
        self.set(key, value, ttl_seconds)
        return value

    def purge_expired(self) -> int:
        removed = self._remove_expired(self._clock())
        if removed:
            logger.info("purged %d expired cache entries", removed)
        return removed

    def delete(self, *keys: str) -> int:
        return sum(self._remove(k) for k in keys)

    def delete_pattern(self, pattern: str) -> int:
        """Glob delete; ``*`` matches any run of characters."""
        return self._remove_matching(pattern)

    def _delete_patterns(self, patterns) -> int:
        removed = 0
        for pattern in patterns:
            removed += self.delete_pattern(pattern) if "*" in pattern else self.delete(pattern)
        return removed

    def invalidate_for_team(self, team_key: str) -> int:
        removed = self._delete_patterns(team_patterns(team_key))
        logger.info("invalidated %d cache entries for team %s", removed, team_key)
        return removed

    def invalidate_for_league(self, league_key: str) -> int:
        removed = self._delete_patterns(league_patterns(league_key))
        logger.info("invalidated %d cache entries for league %s", removed, league_key)
        return removed


class MemoryCacheStore(CacheStore):
    """In-process store: key -> (expires_at, stored_at, payload)."""

    def __init__(self, clock: Optional[Clock] = None, purge_every: int = PURGE_EVERY):
        super().__init__(clock, purge_every)
        self._entries: Dict[str, Tuple[float, float, str]] = {}
        self._lock = threading.Lock()

    def _read(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, _stored_at, payload = entry
            if expires_at <= self._clock():
                self._entries.pop(key, None)
                return None
            return expires_at, payload

    def _write(self, key, payload, expires_at, stored_at):
        with self._lock:
            self._entries[key] = (expires_at, stored_at, payload)

    def _remove(self, key):
        with self._lock:
            return 1 if self._entries.pop(key, None) is not None else 0

    def _remove_matching(self, pattern):
        with self._lock:
            doomed = [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    def _remove_expired(self, now):
        with self._lock:
            doomed = [k for k, (expires_at, _, _) in self._entries.items() if expires_at <= now]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    def __len__(self) -> int:
        return len(self._entries)


def _glob_to_like(pattern: str) -> str:
    escaped = pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", "%")


class SqlCacheStore(CacheStore):
    """Store backed by the ``cache_entries`` table, shared by every worker."""

    def __init__(self, session_factory: sessionmaker, clock: Optional[Clock] = None,
                 purge_every: int = PURGE_EVERY):
        super().__init__(clock, purge_every)
        self._session_factory = session_factory

    def _session(self) -> Session:
        return self._session_factory()

    def _read(self, key):
        try:
            with self._session() as db:
                row = db.get(CacheEntry, key)
                if row is None:
                    return None
                if row.expires_at <= self._clock():
                    db.delete(row)
                    db.commit()
                    return None
                return row.expires_at, row.value
        except SQLAlchemyError as exc:
            raise CacheUnavailable(str(exc)) from exc

    def _write(self, key, payload, expires_at, stored_at):
        entry = dict(key=key, value=payload, expires_at=expires_at, stored_at=stored_at)
        try:
            with self._session() as db:
                try:
                    db.merge(CacheEntry(**entry))
                    db.commit()
                except IntegrityError:
                    # another worker inserted the same key first; last write wins
                    db.rollback()
                    db.merge(CacheEntry(**entry))
                    db.commit()
        except SQLAlchemyError as exc:
            raise CacheUnavailable(str(exc)) from exc

    def _execute_delete(self, stmt) -> int:
        try:
            with self._session() as db:
                result = db.execute(stmt)
                db.commit()
                return result.rowcount or 0
        except SQLAlchemyError as exc:
            raise CacheUnavailable(str(exc)) from exc

    def _remove(self, key):
        return self._execute_delete(delete(CacheEntry).where(CacheEntry.key == key))

    def _remove_matching(self, pattern):
        like = _glob_to_like(pattern)
        return self._execute_delete(delete(CacheEntry).where(CacheEntry.key.like(like, escape="\\")))

    def _remove_expired(self, now):
        return self._execute_delete(delete(CacheEntry).where(CacheEntry.expires_at <= now))

    def keys(self) -> list:
        try:
            with self._session() as db:
                return list(db.scalars(select(CacheEntry.key)))
        except SQLAlchemyError as exc:
            raise CacheUnavailable(str(exc)) from exc
