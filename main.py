"""
Account service — application entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import register_exception_handlers, register_middleware
from auth.jwt import TokenIssuer
from auth.routes import router as auth_router
from auth.sessions import SessionCookie
from config.settings import Settings, get_settings
from dashboard.routes import router as dashboard_router
from database.session import build_engine, build_session_factory, create_tables
from mail.sender import Mailer

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        stream=sys.stdout,
    )
    for _noisy in ("httpcore", "httpx", "urllib3", "asyncio"):
        logging.getLogger(_noisy).setLevel(logging.WARNING)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        description="User registration and session authentication.",
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_issuer = TokenIssuer(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expiry_seconds=settings.jwt_expiry_seconds,
    )
    app.state.session_cookie = SessionCookie(
        settings.session_secret,
        name=settings.session_cookie_name,
        max_age=settings.session_ttl_seconds,
        secure=settings.session_cookie_secure,
    )
    app.state.mailer = Mailer.from_settings(settings)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    app.include_router(auth_router)
    app.include_router(dashboard_router, prefix="/dashboard")

    @app.on_event("startup")
    async def on_startup():
        if settings.uses_placeholder_secrets():
            logger.warning(
                "JWT_SECRET / SESSION_SECRET still hold placeholder values; "
                "set them before deploying."
            )
        if not app.state.mailer.is_configured():
            logger.warning("Mail not configured; verification emails will be skipped.")
        if settings.create_tables_on_startup:
            await create_tables(engine)
        logger.info("Application ready to accept requests.")

    @app.on_event("shutdown")
    async def on_shutdown():
        await engine.dispose()

    return app


if __name__ == "__main__":
    _settings = get_settings()
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=_settings.host,
        port=_settings.port,
        reload=_settings.debug,
        log_level="debug" if _settings.debug else "info",
    )
