"""
Credential store — persistence of user identity records.

Uniqueness of e-mail addresses is enforced by the ``users.email`` unique
index; a concurrent duplicate insert surfaces as ``IntegrityError`` at
commit time and is reported as ``DuplicateEmailError``.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.exceptions import DuplicateEmailError, ValidationError
from database.models import DEFAULT_AVATAR_URL, User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_required_fields(full_name: str, email: str, password_hash: str) -> None:
    """Raise ``ValidationError`` naming the first missing field."""
    for field, value in (
        ("namaLengkap", full_name),
        ("email", email),
        ("password", password_hash),
    ):
        if value is None or not str(value).strip():
            raise ValidationError(f"{field} is required")


class UserStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        full_name: str,
        email: str,
        password_hash: str,
        avatar_url: str | None = None,
    ) -> User:
        check_required_fields(full_name, email, password_hash)

        user = User(
            user_id=uuid.uuid4(),
            full_name=full_name.strip(),
            email=normalize_email(email),
            password_hash=password_hash,
            avatar_url=avatar_url or DEFAULT_AVATAR_URL,
        )
        self._session.add(user)
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            logger.info("Rejected duplicate registration for %s", user.email)
            raise DuplicateEmailError() from exc
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self._session.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: str | uuid.UUID) -> Optional[User]:
        try:
            uid = uuid.UUID(user_id) if isinstance(user_id, str) else user_id
        except ValueError:
            return None
        return await self._session.get(User, uid)
