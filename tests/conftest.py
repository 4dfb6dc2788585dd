import os
import tempfile

# settings are read at import time
os.environ.setdefault("ENCRYPTION_KEY", "YWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWE=")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{tempfile.mkdtemp()}/courtside-test.db")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("YAHOO_CLIENT_ID", "client-id")
os.environ.setdefault("YAHOO_CLIENT_SECRET", "client-secret")
os.environ.setdefault("YAHOO_REDIRECT_URI", "https://localhost:8000/auth/callback")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from courtside.db.models import Base
from courtside.schemas.league import StatCategory
from courtside.services.cache import MemoryCacheStore


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_cache(clock):
    return MemoryCacheStore(clock=clock)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def categories():
    """A standard 9-cat league plus the FGM/FGA and FTM/FTA display columns."""
    return [
        StatCategory(id="9004003", abbr="FGM/FGA", display_only=True),
        StatCategory(id="5", abbr="FG%"),
        StatCategory(id="9007006", abbr="FTM/FTA", display_only=True),
        StatCategory(id="8", abbr="FT%"),
        StatCategory(id="10", abbr="3PTM"),
        StatCategory(id="12", abbr="PTS"),
        StatCategory(id="15", abbr="REB"),
        StatCategory(id="16", abbr="AST"),
        StatCategory(id="17", abbr="ST"),
        StatCategory(id="18", abbr="BLK"),
        StatCategory(id="19", abbr="TO", sort_direction="asc"),
    ]
