# courtside/core/config.py
from __future__ import annotations

import json
import base64
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


EnvType = Literal["local", "dev", "staging", "prod"]
CacheBackend = Literal["database", "memory"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # App
    APP_NAME: str = "CourtsideAPI"
    APP_ENV: EnvType = "local"
    LOG_LEVEL: str = "INFO"
    SECRET_KEY: str = Field(default="change_me_dev_only", description="Used for session signing")
    ENCRYPTION_KEY: str  # required; Fernet key

    # CORS
    CORS_ORIGINS: str | List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        description='JSON list or comma-separated origins',
    )

    # DB
    DATABASE_URL: Optional[str] = None

    FRONTEND_URL_LOCAL: str = "http://localhost:5173"
    FRONTEND_URL_REMOTE: Optional[str] = None

    @property
    def frontend_url(self) -> str:
        if self.APP_ENV != "local" and self.FRONTEND_URL_REMOTE:
            return self.FRONTEND_URL_REMOTE.rstrip("/")
        return self.FRONTEND_URL_LOCAL.rstrip("/")

    # Yahoo OAuth
    YAHOO_CLIENT_ID: Optional[str] = None
    YAHOO_CLIENT_SECRET: Optional[str] = None
    YAHOO_REDIRECT_URI: Optional[str] = None
    YAHOO_AUTH_URL: str = "https://api.login.yahoo.com/oauth2/request_auth"
    YAHOO_TOKEN_URL: str = "https://api.login.yahoo.com/oauth2/get_token"
    YAHOO_API_BASE: str = "https://fantasysports.yahooapis.com/fantasy/v2"
    YAHOO_SCOPE: str = "fspt-w"

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 15.0
    HTTP_RETRY_BACKOFF_SECONDS: float = 0.5

    # Cache
    CACHE_BACKEND: CacheBackend = "database"

    # Schedule provider (balldontlie)
    BALLDONTLIE_API_BASE: str = "https://api.balldontlie.io/v1"
    BALLDONTLIE_API_KEY: Optional[str] = None

    @property
    def IS_LOCAL(self) -> bool:
        return self.APP_ENV == "local"

    @property
    def COOKIE_SECURE(self) -> bool:
        return not self.IS_LOCAL

    # ---------- Validators ----------

    @field_validator("ENCRYPTION_KEY")
    @classmethod
    def _validate_fernet_key(cls, v: str) -> str:
        # Fernet requires 32-byte urlsafe base64-encoded key
        try:
            raw = v.strip().strip('"').strip("'")
            decoded = base64.urlsafe_b64decode(raw + "===")
            if len(decoded) != 32:
                raise ValueError
            return raw
        except ValueError:
            raise ValueError(
                "ENCRYPTION_KEY must be a 32-byte urlsafe base64-encoded Fernet key "
                "(generate with: from cryptography.fernet import Fernet; print(Fernet.generate_key().decode()))"
            )

    @field_validator("CORS_ORIGINS")
    @classmethod
    def _parse_cors(cls, v):
        # Accept JSON list or comma-separated string
        if isinstance(v, list):
            return v
        s = str(v).strip()
        if not s:
            return []
        try:
            parsed = json.loads(s)
            if isinstance(parsed, list):
                return parsed
        except ValueError:
            pass
        return [p.strip() for p in s.split(",") if p.strip()]

    @field_validator("HTTP_TIMEOUT_SECONDS")
    @classmethod
    def _bounded_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("HTTP_TIMEOUT_SECONDS must be positive; outbound calls always carry a timeout")
        return v

    # ---------- Runtime validations ----------

    def validate_at_startup(self) -> None:
        """Fail fast with clear messages for misconfigurations."""
        problems: list[str] = []

        if not self.IS_LOCAL:
            if not self.DATABASE_URL:
                problems.append("DATABASE_URL is required in non-local env.")
            if not self.YAHOO_CLIENT_ID:
                problems.append("YAHOO_CLIENT_ID is required in non-local env.")
            if not self.YAHOO_CLIENT_SECRET:
                problems.append("YAHOO_CLIENT_SECRET is required in non-local env.")
            if not self.YAHOO_REDIRECT_URI:
                problems.append("YAHOO_REDIRECT_URI is required in non-local env.")
            if not self.CORS_ORIGINS:
                problems.append("CORS_ORIGINS must contain at least one allowed origin in non-local env.")
            if self.SECRET_KEY == "change_me_dev_only":
                problems.append("SECRET_KEY must be set in non-local env.")

        if problems:
            raise RuntimeError("Config validation failed: " + " ".join(problems))


settings = Settings()
