from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, Header, Request, Response

from crowdfund.api.auth_gateway import AuthGateway, GatewayResult, require_creator
from crowdfund.api.errors import ApiError
from crowdfund.api.oauth_state import OAuthStateCodec
from crowdfund.application.dto.auth import AuthenticatedIdentity
from crowdfund.application.ports.credential_store_port import CredentialStorePort
from crowdfund.application.ports.google_oauth_port import GoogleOauthPort
from crowdfund.application.ports.password_hasher_port import PasswordHasherPort
from crowdfund.application.ports.token_port import TokenPort
from crowdfund.application.use_cases.become_creator import BecomeCreatorUseCase
from crowdfund.application.use_cases.change_password import ChangePasswordUseCase, SetPasswordUseCase
from crowdfund.application.use_cases.get_me import GetMeUseCase
from crowdfund.application.use_cases.login_google import LoginGoogleUseCase
from crowdfund.application.use_cases.login_local import LoginLocalUseCase
from crowdfund.application.use_cases.refresh_session import RefreshSessionUseCase
from crowdfund.application.use_cases.register_user import RegisterUserUseCase
from crowdfund.application.use_cases.update_profile import UpdateProfileUseCase
from crowdfund.domain.exceptions import ConfigurationError
from crowdfund.infrastructure.db.engine import get_engine
from crowdfund.infrastructure.db.repositories.users_repository import SqlUsersRepository
from crowdfund.infrastructure.security.password_hasher import PasswordHasher
from crowdfund.infrastructure.security.rate_limiter import FixedWindowRateLimiter
from crowdfund.infrastructure.security.token_service import JwtTokenService
from crowdfund.shared.config import Settings, get_settings


logger = logging.getLogger(__name__)

NEW_ACCESS_TOKEN_HEADER = "X-New-Access-Token"
NEW_REFRESH_TOKEN_HEADER = "X-New-Refresh-Token"


def get_app_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings or get_settings()


def _get_db_engine(settings: Settings):
    if not settings.postgres_dsn:
        raise ConfigurationError("POSTGRES_DSN is required.")
    return get_engine(
        settings.postgres_dsn,
        connect_timeout_seconds=settings.postgres_connect_timeout_seconds,
        pool_timeout_seconds=settings.postgres_pool_timeout_seconds,
    )


@lru_cache(maxsize=1)
def _get_password_hasher() -> PasswordHasher:
    return PasswordHasher()


@lru_cache(maxsize=4)
def _get_token_service(settings: Settings) -> JwtTokenService:
    if not settings.jwt_access_secret or not settings.jwt_refresh_secret:
        logger.error("deps: jwt_secrets_missing required=JWT_ACCESS_SECRET,JWT_REFRESH_SECRET")
    return JwtTokenService(
        access_secret=settings.jwt_access_secret,
        refresh_secret=settings.jwt_refresh_secret,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        access_ttl_minutes=settings.jwt_access_ttl_minutes,
        refresh_ttl_days=settings.jwt_refresh_ttl_days,
    )


def get_credential_store(settings: Settings = Depends(get_app_settings)) -> CredentialStorePort:
    return SqlUsersRepository(_get_db_engine(settings))


def get_password_hasher() -> PasswordHasherPort:
    return _get_password_hasher()


def get_token_service(settings: Settings = Depends(get_app_settings)) -> TokenPort:
    return _get_token_service(settings)


def get_google_oauth(request: Request) -> GoogleOauthPort | None:
    return getattr(request.app.state, "google_oauth", None)


def get_oauth_state_codec(settings: Settings = Depends(get_app_settings)) -> OAuthStateCodec | None:
    if not settings.oauth_state_secret:
        logger.error("deps: oauth_state_secret_missing required=OAUTH_STATE_SECRET,JWT_ACCESS_SECRET")
        return None
    return OAuthStateCodec(secret=settings.oauth_state_secret)


def get_auth_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    return request.app.state.auth_rate_limiter


def get_register_user_use_case(
    credential_store: CredentialStorePort = Depends(get_credential_store),
    password_hasher: PasswordHasherPort = Depends(get_password_hasher),
    token_port: TokenPort = Depends(get_token_service),
) -> RegisterUserUseCase:
    return RegisterUserUseCase(
        credential_store=credential_store,
        password_hasher=password_hasher,
        token_port=token_port,
    )


def get_login_local_use_case(
    credential_store: CredentialStorePort = Depends(get_credential_store),
    password_hasher: PasswordHasherPort = Depends(get_password_hasher),
    token_port: TokenPort = Depends(get_token_service),
) -> LoginLocalUseCase:
    return LoginLocalUseCase(
        credential_store=credential_store,
        password_hasher=password_hasher,
        token_port=token_port,
    )


def get_refresh_session_use_case(
    credential_store: CredentialStorePort = Depends(get_credential_store),
    token_port: TokenPort = Depends(get_token_service),
) -> RefreshSessionUseCase:
    return RefreshSessionUseCase(credential_store=credential_store, token_port=token_port)


def get_login_google_use_case(
    google_oauth: GoogleOauthPort | None = Depends(get_google_oauth),
    credential_store: CredentialStorePort = Depends(get_credential_store),
    token_port: TokenPort = Depends(get_token_service),
) -> LoginGoogleUseCase | None:
    if google_oauth is None:
        return None
    return LoginGoogleUseCase(
        credential_store=credential_store,
        google_oauth_port=google_oauth,
        token_port=token_port,
    )


def get_get_me_use_case(
    credential_store: CredentialStorePort = Depends(get_credential_store),
) -> GetMeUseCase:
    return GetMeUseCase(credential_store=credential_store)


def get_update_profile_use_case(
    credential_store: CredentialStorePort = Depends(get_credential_store),
) -> UpdateProfileUseCase:
    return UpdateProfileUseCase(credential_store=credential_store)


def get_change_password_use_case(
    credential_store: CredentialStorePort = Depends(get_credential_store),
    password_hasher: PasswordHasherPort = Depends(get_password_hasher),
) -> ChangePasswordUseCase:
    return ChangePasswordUseCase(credential_store=credential_store, password_hasher=password_hasher)


def get_set_password_use_case(
    credential_store: CredentialStorePort = Depends(get_credential_store),
    password_hasher: PasswordHasherPort = Depends(get_password_hasher),
) -> SetPasswordUseCase:
    return SetPasswordUseCase(credential_store=credential_store, password_hasher=password_hasher)


def get_become_creator_use_case(
    credential_store: CredentialStorePort = Depends(get_credential_store),
    token_port: TokenPort = Depends(get_token_service),
) -> BecomeCreatorUseCase:
    return BecomeCreatorUseCase(credential_store=credential_store, token_port=token_port)


def get_auth_gateway(
    token_port: TokenPort = Depends(get_token_service),
    refresh_session_use_case: RefreshSessionUseCase = Depends(get_refresh_session_use_case),
) -> AuthGateway:
    return AuthGateway(token_port=token_port, refresh_session_use_case=refresh_session_use_case)


async def get_refresh_token_hint(
    request: Request,
    x_refresh_token: str | None = Header(default=None),
) -> str | None:
    """Refresh token offered alongside a bearer token, from the JSON body or header."""
    if request.method in ("POST", "PUT", "PATCH"):
        try:
            payload = await request.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            candidate = payload.get("refreshToken")
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
    if x_refresh_token and x_refresh_token.strip():
        return x_refresh_token.strip()
    return None


def _expose_rotated_tokens(response: Response, result: GatewayResult) -> None:
    if result.rotated_tokens is None:
        return
    response.headers[NEW_ACCESS_TOKEN_HEADER] = result.rotated_tokens.access_token
    response.headers[NEW_REFRESH_TOKEN_HEADER] = result.rotated_tokens.refresh_token


def require_identity(
    response: Response,
    authorization: str | None = Header(default=None),
    refresh_token: str | None = Depends(get_refresh_token_hint),
    gateway: AuthGateway = Depends(get_auth_gateway),
) -> AuthenticatedIdentity:
    result = gateway.authenticate(authorization=authorization, refresh_token=refresh_token, mandatory=True)
    _expose_rotated_tokens(response, result)
    return result.identity


def get_optional_identity(
    response: Response,
    authorization: str | None = Header(default=None),
    refresh_token: str | None = Depends(get_refresh_token_hint),
    gateway: AuthGateway = Depends(get_auth_gateway),
) -> AuthenticatedIdentity | None:
    result = gateway.authenticate(authorization=authorization, refresh_token=refresh_token, mandatory=False)
    _expose_rotated_tokens(response, result)
    return result.identity


def require_creator_identity(
    identity: AuthenticatedIdentity = Depends(require_identity),
) -> AuthenticatedIdentity:
    return require_creator(identity)


def enforce_auth_rate_limit(
    request: Request,
    limiter: FixedWindowRateLimiter = Depends(get_auth_rate_limiter),
) -> None:
    client_key = request.client.host if request.client and request.client.host else "unknown"
    decision = limiter.hit(client_key)
    if decision.allowed:
        return
    logger.warning(
        "auth_rate_limit: rejected client=%s path=%s retry_after=%s",
        client_key,
        request.url.path,
        decision.retry_after_seconds,
    )
    raise ApiError(
        429,
        "RATE_LIMIT_EXCEEDED",
        "Rate limit exceeded. Please try again later.",
        extra={"retryAfter": decision.retry_after_seconds},
        headers={"Retry-After": str(decision.retry_after_seconds)},
    )
