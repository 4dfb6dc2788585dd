# courtside/core/auth.py
import json
import hmac
import hashlib
import base64
import time
from typing import Optional

from courtside.core.config import settings

# Session lifetime (1 week)
SESSION_EXP_SECONDS = 7 * 24 * 60 * 60


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def _b64decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(payload_b64: str) -> bytes:
    return hmac.new(settings.SECRET_KEY.encode(), payload_b64.encode(), hashlib.sha256).digest()


def create_session_token(guid: str, now: Optional[float] = None) -> str:
    issued = int(now if now is not None else time.time())
    payload = {"sub": guid, "exp": issued + SESSION_EXP_SECONDS}
    payload_b64 = _b64encode(json.dumps(payload, separators=(",", ":")).encode())
    return f"{payload_b64}.{_b64encode(_sign(payload_b64))}"


def decode_session_token(token: str, now: Optional[float] = None) -> Optional[str]:
    """Return the GUID for a valid, unexpired session token, else None."""
    try:
        payload_b64, signature_b64 = token.split(".", 1)
        if not hmac.compare_digest(_sign(payload_b64), _b64decode(signature_b64)):
            return None
        payload = json.loads(_b64decode(payload_b64))
    except (ValueError, TypeError):
        return None
    current = now if now is not None else time.time()
    if not isinstance(payload, dict) or payload.get("exp", 0) < current:
        return None
    return payload.get("sub")
