"""Credential handling package."""

from finora.services.security.passwords import (
    BCRYPT_MAX_BYTES,
    hash_password,
    verify_password,
)

__all__ = ["BCRYPT_MAX_BYTES", "hash_password", "verify_password"]
