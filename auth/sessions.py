"""
Server-side sessions.

``SessionCookie`` owns the session identity: a random id handed to the
client as ``<id>.<hmac>`` so a forged or edited cookie never maps to a
session. ``SessionBinder`` reads and writes the one token a session holds.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import AuthSession

logger = logging.getLogger(__name__)


class SessionCookie:
    def __init__(
        self,
        secret: str,
        *,
        name: str = "sid",
        max_age: int = 86400,
        secure: bool = False,
    ) -> None:
        if not secret:
            raise ValueError("Session secret must not be empty")
        self._secret = secret.encode()
        self.name = name
        self.max_age = max_age
        self.secure = secure

    @staticmethod
    def new_session_id() -> str:
        return secrets.token_urlsafe(32)

    def _signature(self, session_id: str) -> str:
        return hmac.new(self._secret, session_id.encode(), hashlib.sha256).hexdigest()

    def sign(self, session_id: str) -> str:
        return f"{session_id}.{self._signature(session_id)}"

    def unsign(self, value: str) -> Optional[str]:
        """Return the session id, or None if the value was not signed by us."""
        session_id, sep, sig = value.rpartition(".")
        if not sep or not session_id:
            return None
        if not hmac.compare_digest(sig, self._signature(session_id)):
            return None
        return session_id

    def read(self, request: Request) -> Optional[str]:
        value = request.cookies.get(self.name)
        if not value:
            return None
        return self.unsign(value)

    def attach(self, response: Response, session_id: str) -> None:
        response.set_cookie(
            self.name,
            self.sign(session_id),
            max_age=self.max_age,
            httponly=True,
            samesite="lax",
            secure=self.secure,
        )


class SessionBinder:
    """Token slot of the ``auth_sessions`` table."""

    def __init__(self, session: AsyncSession, *, ttl_seconds: int = 86400) -> None:
        self._session = session
        self._ttl = timedelta(seconds=ttl_seconds)

    async def set_token(self, session_id: str, token: str) -> None:
        now = datetime.now(timezone.utc)
        row = await self._session.get(AuthSession, session_id)
        if row is None or _is_expired(row, now):
            if row is not None:
                await self._session.delete(row)
                await self._session.flush()
            row = AuthSession(
                session_id=session_id,
                created_at=now,
                expires_at=now + self._ttl,
            )
            self._session.add(row)
        row.token = token
        await self._session.commit()

    async def get_token(self, session_id: str) -> Optional[str]:
        row = await self._session.get(AuthSession, session_id)
        if row is None:
            return None
        if _is_expired(row, datetime.now(timezone.utc)):
            logger.debug("Session %s… has expired", session_id[:8])
            return None
        return row.token

    async def clear_token(self, session_id: str) -> None:
        row = await self._session.get(AuthSession, session_id)
        if row is None or row.token is None:
            return
        row.token = None
        await self._session.commit()

    async def discard(self, session_id: str) -> None:
        """Delete the session row outright; used when login rotates the id."""
        row = await self._session.get(AuthSession, session_id)
        if row is None:
            return
        await self._session.delete(row)
        await self._session.commit()


def _is_expired(row: AuthSession, now: datetime) -> bool:
    expires_at = row.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= now
