"""Outbox secrets at rest.

Generated passwords wait in ``NotificationOutbox.secret`` until their welcome
email goes out. They are sealed with Fernet under a key derived from SECRET_KEY,
so rotating SECRET_KEY makes still-pending secrets unreadable.
"""

import base64
import hashlib
import logging
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken

from app.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _sealer(secret_key: str) -> Fernet:
    return Fernet(base64.urlsafe_b64encode(hashlib.sha256(secret_key.encode("utf-8")).digest()))


def encrypt_secret(plaintext: str) -> str:
    token = _sealer(settings.SECRET_KEY).encrypt(plaintext.encode("utf-8"))
    return token.decode("ascii")


def decrypt_secret(ciphertext: str) -> str | None:
    """None when the token was sealed under another key or altered."""
    try:
        plaintext = _sealer(settings.SECRET_KEY).decrypt(ciphertext.encode("ascii"))
    except InvalidToken:
        logger.warning("Outbox secret could not be unsealed")
        return None
    return plaintext.decode("utf-8")
