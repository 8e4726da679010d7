"""Password hashing and generation for inspector and contact accounts."""

import re
import secrets
import string

import bcrypt

from app.config import settings

PASSWORD_ALPHABET = string.ascii_letters + string.digits


def validate_password(password: str) -> list[str]:
    """Validate password complexity. Returns list of failure messages (empty if valid)."""
    errors = []

    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least 1 uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least 1 lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least 1 digit")

    return errors


def generate_password(length: int | None = None) -> str:
    """Random password that satisfies validate_password."""
    length = max(length or settings.GENERATED_PASSWORD_LENGTH, 8)
    while True:
        candidate = "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))
        if not validate_password(candidate):
            return candidate


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return bcrypt.checkpw(
        plain_password.encode('utf-8'),
        hashed_password.encode('utf-8')
    )
