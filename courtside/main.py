# courtside/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from courtside.api import routes_auth, routes_league, routes_me, routes_players, routes_schedule, routes_team
from courtside.core.config import settings
from courtside.core.errors import CacheUnavailable, CourtsideError
from courtside.core.logging_config import configure_logging
from courtside.db.engine import engine
from courtside.db.models import Base
from courtside.deps import get_cache_store
from courtside.middleware.request_log import RequestLogMiddleware

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings.validate_at_startup()
    Base.metadata.create_all(bind=engine)
    try:
        get_cache_store().purge_expired()
    except CacheUnavailable as exc:
        logger.warning("startup cache sweep skipped: %s", exc)
    logger.info("%s started (env=%s, cache=%s)", settings.APP_NAME, settings.APP_ENV, settings.CACHE_BACKEND)
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1):5173$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)


@app.exception_handler(CourtsideError)
async def courtside_error_handler(request: Request, exc: CourtsideError):
    if exc.http_status >= 500:
        logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


app.include_router(routes_auth.router)
app.include_router(routes_me.router)
app.include_router(routes_league.router)
app.include_router(routes_team.router)
app.include_router(routes_players.router)
app.include_router(routes_schedule.router)


@app.get("/health")
def health():
    return {"ok": True, "env": settings.APP_ENV}
