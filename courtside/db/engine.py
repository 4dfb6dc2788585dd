# courtside/db/engine.py
import os
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Load .env for local dev
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite:///./courtside.db"


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # one file shared by the worker threads FastAPI runs sync routes on
        return {"connect_args": {"check_same_thread": False}}
    kwargs = {
        "pool_pre_ping": True,   # tests and replaces stale conns
        "pool_recycle": 300,     # beats hosted-provider idle timeout
        "pool_size": 10,
        "max_overflow": 10,
        "pool_timeout": 10,
    }
    if url.startswith("postgresql"):
        kwargs["connect_args"] = {
            "sslmode": "require",
            "keepalives": 1,
            "keepalives_idle": 30,
            "keepalives_interval": 10,
            "keepalives_count": 5,
        }
    return kwargs


engine = create_engine(DATABASE_URL, echo=False, future=True, **_engine_kwargs(DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
    future=True,
)
