from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _csv(name: str, default: str = "") -> tuple[str, ...]:
    value = _env(name, default) or ""
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    app_env: str
    log_level: str
    postgres_dsn: str
    postgres_connect_timeout_seconds: int
    postgres_pool_timeout_seconds: float
    jwt_access_secret: str
    jwt_refresh_secret: str
    jwt_issuer: str
    jwt_audience: str
    jwt_access_ttl_minutes: int
    jwt_refresh_ttl_days: int
    google_client_id: str
    google_client_secret: str
    google_callback_url: str
    google_http_timeout_seconds: float
    oauth_state_secret: str
    frontend_url: str
    cors_allowed_origins: tuple[str, ...]
    auth_rate_limit_max_attempts: int
    auth_rate_limit_window_seconds: int

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def google_oauth_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret and self.google_callback_url)


def get_settings() -> Settings:
    frontend_url = (_env("FRONTEND_URL", "http://localhost:3000") or "").rstrip("/")
    jwt_access_secret = _env("JWT_ACCESS_SECRET", "")
    return Settings(
        app_env=_env("APP_ENV", "development"),
        log_level=_env("LOG_LEVEL", "INFO"),
        postgres_dsn=_env("POSTGRES_DSN", ""),
        postgres_connect_timeout_seconds=int(_env("POSTGRES_CONNECT_TIMEOUT_SECONDS", "10")),
        postgres_pool_timeout_seconds=float(_env("POSTGRES_POOL_TIMEOUT_SECONDS", "10")),
        jwt_access_secret=jwt_access_secret,
        jwt_refresh_secret=_env("JWT_REFRESH_SECRET", ""),
        jwt_issuer=_env("JWT_ISSUER", "weraise-crowdfunding"),
        jwt_audience=_env("JWT_AUDIENCE", "weraise-users"),
        jwt_access_ttl_minutes=int(_env("JWT_ACCESS_TTL_MINUTES", "15")),
        jwt_refresh_ttl_days=int(_env("JWT_REFRESH_TTL_DAYS", "7")),
        google_client_id=_env("GOOGLE_CLIENT_ID", ""),
        google_client_secret=_env("GOOGLE_CLIENT_SECRET", ""),
        google_callback_url=_env("GOOGLE_CALLBACK_URL", ""),
        google_http_timeout_seconds=float(_env("GOOGLE_HTTP_TIMEOUT_SECONDS", "10")),
        oauth_state_secret=_env("OAUTH_STATE_SECRET", "") or jwt_access_secret,
        frontend_url=frontend_url,
        cors_allowed_origins=_csv("CORS_ALLOWED_ORIGINS", frontend_url),
        auth_rate_limit_max_attempts=int(_env("AUTH_RATE_LIMIT_MAX_ATTEMPTS", "5")),
        auth_rate_limit_window_seconds=int(_env("AUTH_RATE_LIMIT_WINDOW_SECONDS", "900")),
    )
