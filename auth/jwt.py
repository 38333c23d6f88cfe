"""
JWT creation and verification.

Tokens are HS256-signed JWTs carrying the user id (``sub``), a few display
claims taken from the user record, and an expiry. The signing secret is
passed in by the app factory from ``Settings.jwt_secret``.
"""

from __future__ import annotations

import base64
import binascii
import logging
import time
from typing import Any, Dict, Optional

import jwt as pyjwt
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    """Raised for any token that fails verification."""


class TokenClaims(BaseModel):
    subject: str
    name: str = ""
    avatar: str = ""
    role: str = "user"
    issued_at: Optional[int] = None
    expires_at: Optional[int] = None

    @classmethod
    def for_user(cls, user: Any, role: str) -> "TokenClaims":
        """Derive display claims from the authenticated ``User`` row."""
        return cls(
            subject=str(user.user_id),
            name=user.full_name,
            avatar=user.avatar_url or "",
            role=role,
        )


class TokenIssuer:
    """Signs and verifies auth tokens with a single shared secret."""

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        expiry_seconds: int = 604800,
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._expiry_seconds = expiry_seconds

    def issue(self, claims: TokenClaims) -> str:
        """Create a signed token for ``claims`` with a fresh ``iat``/``exp``."""
        now = int(time.time())
        payload: Dict[str, Any] = {
            "sub": claims.subject,
            "name": claims.name,
            "avatar": claims.avatar,
            "role": claims.role,
            "iat": now,
            "exp": now + self._expiry_seconds,
        }
        return pyjwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Verify ``token`` and return its claims.

        Malformed tokens, bad signatures, unexpected algorithms, expired
        tokens and missing claims all raise ``InvalidTokenError``.
        """
        try:
            payload = pyjwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except pyjwt.PyJWTError as exc:
            logger.debug("Token rejected: %s", exc)
            raise InvalidTokenError("Invalid token") from exc

        if not _has_canonical_signature(token):
            logger.debug("Token rejected: non-canonical signature encoding")
            raise InvalidTokenError("Invalid token")

        if not isinstance(payload.get("sub"), str) or not payload["sub"]:
            raise InvalidTokenError("Invalid token")

        return TokenClaims(
            subject=payload["sub"],
            name=str(payload.get("name", "")),
            avatar=str(payload.get("avatar", "")),
            role=str(payload.get("role", "")),
            issued_at=payload.get("iat"),
            expires_at=payload["exp"],
        )


def _has_canonical_signature(token: str) -> bool:
    # base64 decoders ignore the spare low bits of the last character, so
    # several spellings of one signature would otherwise all verify.
    segment = token.rpartition(".")[2]
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError):
        return False
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode() == segment
