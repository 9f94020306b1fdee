from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crowdfund.api.deps import NEW_ACCESS_TOKEN_HEADER, NEW_REFRESH_TOKEN_HEADER
from crowdfund.api.error_handling import register_exception_handlers
from crowdfund.api.routers import auth, me
from crowdfund.infrastructure.clients.google_oauth_client import build_google_oauth_client
from crowdfund.infrastructure.security.rate_limiter import FixedWindowRateLimiter
from crowdfund.shared.config import Settings, get_settings


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    _configure_logging(settings.log_level)

    app = FastAPI(title="Crowdfund API")
    app.state.settings = settings
    app.state.auth_rate_limiter = FixedWindowRateLimiter(
        max_attempts=settings.auth_rate_limit_max_attempts,
        window_seconds=settings.auth_rate_limit_window_seconds,
    )
    app.state.google_oauth = build_google_oauth_client(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[NEW_ACCESS_TOKEN_HEADER, NEW_REFRESH_TOKEN_HEADER],
    )

    register_exception_handlers(app, hide_internal_errors=settings.is_production)
    app.include_router(auth.router, tags=["auth"])
    app.include_router(me.router, tags=["user"])
    return app


app = create_app()
