"""
bcrypt password digests.

bcrypt silently ignores everything past 72 bytes of input, so over-long
passwords are refused outright instead of being truncated.
"""

from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 12
MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password exceeds {MAX_PASSWORD_BYTES} bytes")
    return raw


def hash_password(password: str, *, rounds: int = BCRYPT_ROUNDS) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """
    True when ``password`` matches ``password_hash``.

    Unusable input (a malformed digest, or a password bcrypt could not
    have hashed) is a mismatch, never an exception.
    """
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("ascii"))
    except (ValueError, TypeError):
        return False
