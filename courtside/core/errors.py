# courtside/core/errors.py
"""
Typed failures raised by the Yahoo client and the fantasy data service.

Every error carries a stable ``code`` and the HTTP status the API layer answers
with. Upstream failures also keep the provider's status code and body.
"""
from __future__ import annotations

from typing import Optional


class CourtsideError(Exception):
    code = "Error"
    http_status = 500

    def __init__(
        self,
        message: str = "",
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.status_code = status_code
        self.body = body

    def to_dict(self) -> dict:
        return {"success": False, "error": self.code, "message": self.message}


class InvalidRequest(CourtsideError):
    code = "InvalidRequest"
    http_status = 400


class AuthExpired(CourtsideError):
    code = "AuthExpired"
    http_status = 401

    def __init__(self, message: str = "Session expired, re-authenticate", **kwargs):
        super().__init__(message, **kwargs)


class NotFound(CourtsideError):
    code = "NotFound"
    http_status = 404


class CacheUnavailable(CourtsideError):
    code = "CacheUnavailable"
    http_status = 503


class ProviderApiError(CourtsideError):
    """Non-2xx answer from the provider."""

    code = "ProviderApiError"
    http_status = 502

    def __init__(self, status_code: int, body: str = "", message: str = ""):
        super().__init__(
            message or f"Yahoo error {status_code}: {(body or '')[:300]}",
            status_code=status_code,
            body=body,
        )


class NotAuthorized(ProviderApiError):
    code = "NotAuthorized"
    http_status = 403


class ProviderTransient(ProviderApiError):
    """5xx, timeout or dropped connection. Only ever seen inside the retry wrapper."""

    code = "ProviderTransient"
    http_status = 503


class UpstreamUnavailable(ProviderApiError):
    code = "UpstreamUnavailable"
    http_status = 503
