# Security module
from app.security.passwords import (
    generate_password,
    get_password_hash,
    validate_password,
    verify_password,
)

__all__ = [
    "generate_password",
    "get_password_hash",
    "validate_password",
    "verify_password",
]
