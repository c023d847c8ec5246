"""
Password Hashing

DESIGN DECISION: Passwords are stored only as salted bcrypt hashes.
Earlier builds stored a reversible encoding of the password; nothing
in this package can produce or read that format.

bcrypt only looks at the first 72 bytes of its input. The validator
rejects longer passwords before they reach here.
"""

from typing import Optional

import bcrypt

from finora.config import get_settings


BCRYPT_MAX_BYTES = 72


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """
    Hash a password with a fresh salt.
    
    Args:
        password: Plain-text password
        rounds: bcrypt cost; defaults to the configured value
        
    Returns:
        The bcrypt hash as text
    """
    cost = rounds or get_settings().security.bcrypt_rounds
    password_bytes = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain-text password against a stored hash."""
    try:
        return bcrypt.checkpw(
            password.encode("utf-8")[:BCRYPT_MAX_BYTES],
            password_hash.encode("utf-8"),
        )
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
