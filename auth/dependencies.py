"""
FastAPI dependencies for authentication.

Provides the per-request stores and the ``get_current_user_id`` gate that
every protected route depends on. Long-lived collaborators (token issuer,
session cookie, mailer) are built once by ``create_app`` and read from
``app.state``.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth.exceptions import AuthError
from auth.jwt import InvalidTokenError, TokenIssuer
from auth.sessions import SessionBinder, SessionCookie
from auth.store import UserStore
from config.settings import Settings
from database.session import get_db_session
from mail.sender import Mailer

logger = logging.getLogger(__name__)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_session_cookie(request: Request) -> SessionCookie:
    return request.app.state.session_cookie


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


async def get_user_store(
    session: AsyncSession = Depends(get_db_session),
) -> UserStore:
    return UserStore(session)


async def get_session_binder(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings_dep),
) -> SessionBinder:
    return SessionBinder(session, ttl_seconds=settings.session_ttl_seconds)


async def get_current_user_id(
    request: Request,
    cookie: SessionCookie = Depends(get_session_cookie),
    binder: SessionBinder = Depends(get_session_binder),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> str:
    """
    Auth gate: resolve the session token, verify it, and return the
    authenticated ``user_id``.

    The token is re-verified on every call; a missing token yields
    401 "Unauthorized", a rejected one 401 "Invalid token".
    """
    session_id = cookie.read(request)
    token = await binder.get_token(session_id) if session_id else None
    if not token:
        raise AuthError("Unauthorized")

    try:
        claims = issuer.verify(token)
    except InvalidTokenError:
        logger.info("Rejected invalid session token on %s", request.url.path)
        raise AuthError("Invalid token")

    request.state.user_id = claims.subject
    return claims.subject
