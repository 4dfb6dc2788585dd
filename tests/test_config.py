import pytest
from pydantic import ValidationError

from courtside.core.config import Settings

KEY = "YWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWE="


def make(**overrides):
    return Settings(_env_file=None, ENCRYPTION_KEY=KEY, **overrides)


def test_rejects_bad_fernet_key():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, ENCRYPTION_KEY="short")


def test_cors_origins_accept_json_or_commas():
    assert make(CORS_ORIGINS='["https://a.test"]').CORS_ORIGINS == ["https://a.test"]
    assert make(CORS_ORIGINS="https://a.test, https://b.test").CORS_ORIGINS == ["https://a.test", "https://b.test"]


def test_timeout_must_be_positive():
    with pytest.raises(ValidationError):
        make(HTTP_TIMEOUT_SECONDS=0)


def test_non_local_env_collects_every_problem():
    s = make(
        APP_ENV="prod",
        SECRET_KEY="change_me_dev_only",
        YAHOO_CLIENT_ID=None,
        YAHOO_CLIENT_SECRET=None,
        YAHOO_REDIRECT_URI=None,
        DATABASE_URL=None,
    )
    with pytest.raises(RuntimeError) as info:
        s.validate_at_startup()
    message = str(info.value)
    assert "DATABASE_URL" in message
    assert "YAHOO_CLIENT_ID" in message
    assert "SECRET_KEY" in message


def test_local_env_passes():
    make().validate_at_startup()
