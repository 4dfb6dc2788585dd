# courtside/core/crypto.py
from cryptography.fernet import Fernet, InvalidToken

from courtside.core.config import settings

_fernet = Fernet(settings.ENCRYPTION_KEY)


def encrypt_value(value: str | None) -> str | None:
    if value is None:
        return None
    return _fernet.encrypt(value.encode()).decode()


def decrypt_value(value: str | None) -> str | None:
    """Decrypt a stored column. A value written under a rotated key reads back as None."""
    if value is None:
        return None
    try:
        return _fernet.decrypt(value.encode()).decode()
    except InvalidToken:
        return None
