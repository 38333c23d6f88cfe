"""
Auth API routes — register, login, current user, logout.

Mounted at the application root.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from auth.dependencies import (
    get_current_user_id,
    get_mailer,
    get_session_binder,
    get_session_cookie,
    get_settings_dep,
    get_token_issuer,
    get_user_store,
)
from auth.exceptions import AuthError, NotFoundError
from auth.jwt import TokenClaims, TokenIssuer
from auth.password import MAX_PASSWORD_BYTES, hash_password, verify_password
from auth.sessions import SessionBinder, SessionCookie
from auth.store import UserStore
from config.settings import Settings
from database.models import User
from mail.sender import Mailer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

INVALID_CREDENTIALS = "Invalid email or password"


# ── Request / response schemas ─────────────────────────────────────────


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(..., alias="namaLengkap", min_length=1, max_length=128)
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("password")
    @classmethod
    def _fits_bcrypt(cls, v: str) -> str:
        if len(v.encode()) > MAX_PASSWORD_BYTES:
            raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


def public_profile(user: User) -> Dict[str, Any]:
    """User fields that are safe to send to the client."""
    return {
        "id": str(user.user_id),
        "namaLengkap": user.full_name,
        "email": user.email,
        "url_photo": user.avatar_url,
    }


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    req: RegisterRequest,
    store: UserStore = Depends(get_user_store),
    mailer: Mailer = Depends(get_mailer),
) -> Dict[str, str]:
    """Register a new user and send a verification email."""
    password_hash = await run_in_threadpool(hash_password, req.password)
    user = await store.create(
        full_name=req.full_name,
        email=req.email,
        password_hash=password_hash,
    )
    logger.info("Registered user %s", user.user_id)

    # The user row is already committed; mail problems must not turn into a 500.
    try:
        await run_in_threadpool(mailer.send_verification_email, user.email)
    except Exception:
        logger.exception("Verification mail for user %s failed", user.user_id)

    return {
        "message": "Registration successful. Please check your email for verification.",
    }


@router.post("/login")
async def login(
    req: LoginRequest,
    request: Request,
    response: Response,
    store: UserStore = Depends(get_user_store),
    binder: SessionBinder = Depends(get_session_binder),
    cookie: SessionCookie = Depends(get_session_cookie),
    issuer: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_settings_dep),
) -> Dict[str, Any]:
    """Login with email + password; binds a fresh token to the session."""
    user = await store.find_by_email(req.email)

    if user is None or not await run_in_threadpool(
        verify_password, req.password, user.password_hash
    ):
        logger.warning("Failed login attempt")
        raise AuthError(INVALID_CREDENTIALS)

    token = issuer.issue(TokenClaims.for_user(user, role=settings.default_role))

    # Never adopt an id the client brought along; rotate it.
    previous_id = cookie.read(request)
    if previous_id:
        await binder.discard(previous_id)
    session_id = cookie.new_session_id()
    await binder.set_token(session_id, token)
    cookie.attach(response, session_id)

    logger.info("Login: %s", user.user_id)
    return {"data": {"token": token, "message": "success"}}


@router.get("/user")
async def current_user(
    user_id: str = Depends(get_current_user_id),
    store: UserStore = Depends(get_user_store),
) -> Dict[str, Any]:
    """Profile of the signed-in user."""
    user = await store.find_by_id(user_id)
    if user is None:
        raise NotFoundError()
    return {"user": public_profile(user)}


@router.get("/protected")
async def protected(user_id: str = Depends(get_current_user_id)) -> Dict[str, str]:
    return {"message": "Protected route accessed successfully"}


@router.post("/logout")
async def logout(
    request: Request,
    binder: SessionBinder = Depends(get_session_binder),
    cookie: SessionCookie = Depends(get_session_cookie),
) -> Dict[str, str]:
    """Drop the session's token. Succeeds whether or not anyone was signed in."""
    session_id = cookie.read(request)
    if session_id:
        await binder.clear_token(session_id)
        logger.info("Logout: session %s…", session_id[:8])
    return {"message": "Logged out successfully"}
