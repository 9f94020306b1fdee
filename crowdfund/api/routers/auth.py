from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Cookie, Depends
from fastapi.responses import RedirectResponse

from crowdfund.api.deps import (
    enforce_auth_rate_limit,
    get_app_settings,
    get_google_oauth,
    get_oauth_state_codec,
    get_login_google_use_case,
    get_login_local_use_case,
    get_refresh_session_use_case,
    get_register_user_use_case,
)
from crowdfund.api.errors import ApiError
from crowdfund.api.oauth_state import OAUTH_STATE_COOKIE, OAuthFlow, OAuthStateCodec
from crowdfund.api.schemas.auth import (
    AuthTokensResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokensResponse,
)
from crowdfund.application.dto.auth import (
    LoginGoogleInput,
    LoginLocalInput,
    RefreshSessionInput,
    RegisterUserInput,
    TokenPair,
)
from crowdfund.application.ports.google_oauth_port import GoogleOauthPort
from crowdfund.application.use_cases.login_google import LoginGoogleUseCase
from crowdfund.application.use_cases.login_local import INVALID_CREDENTIALS_MESSAGE, LoginLocalUseCase
from crowdfund.application.use_cases.refresh_session import RefreshSessionUseCase
from crowdfund.application.use_cases.register_user import RegisterUserUseCase
from crowdfund.domain.exceptions import (
    AuthenticationError,
    DomainError,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from crowdfund.shared.config import Settings


logger = logging.getLogger(__name__)

router = APIRouter()

OAUTH_COOKIE_PATH = "/auth/google"


def _tokens_response(message: str, tokens: TokenPair) -> AuthTokensResponse:
    return AuthTokensResponse(
        message=message,
        tokens=TokensResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token),
    )


@router.post(
    "/api/user/register",
    response_model=AuthTokensResponse,
    status_code=201,
    dependencies=[Depends(enforce_auth_rate_limit)],
)
def register_user(
    req: RegisterRequest,
    use_case: RegisterUserUseCase = Depends(get_register_user_use_case),
):
    try:
        output = use_case.execute(
            RegisterUserInput(
                email=req.email,
                password=req.password,
                first_name=req.first_name,
                last_name=req.last_name,
                display_name=req.display_name,
                is_creator=req.is_creator,
            )
        )
    except EmailAlreadyExistsError as exc:
        raise ApiError(409, "EMAIL_EXISTS", "Email already exists") from exc
    except ValidationError as exc:
        raise ApiError(400, "VALIDATION_ERROR", str(exc)) from exc

    return _tokens_response("User registered successfully", output.tokens)


@router.post(
    "/api/user/login",
    response_model=AuthTokensResponse,
    dependencies=[Depends(enforce_auth_rate_limit)],
)
def login_local(
    req: LoginRequest,
    use_case: LoginLocalUseCase = Depends(get_login_local_use_case),
):
    try:
        output = use_case.execute(LoginLocalInput(email=req.email, password=req.password))
    except InvalidCredentialsError as exc:
        raise ApiError(401, "INVALID_CREDENTIALS", INVALID_CREDENTIALS_MESSAGE) from exc

    return _tokens_response("Login successful", output.tokens)


@router.post("/api/user/refresh-token", response_model=AuthTokensResponse)
def refresh_token(
    req: RefreshTokenRequest,
    use_case: RefreshSessionUseCase = Depends(get_refresh_session_use_case),
):
    try:
        output = use_case.execute(RefreshSessionInput(refresh_token=req.refresh_token))
    except (AuthenticationError, NotFoundError) as exc:
        logger.info("auth_router: refresh_rejected error=%s", type(exc).__name__)
        raise ApiError(401, "INVALID_REFRESH_TOKEN", "Invalid or expired refresh token") from exc

    return _tokens_response("Tokens refreshed successfully", output.tokens)


def _oauth_start(
    google_oauth: GoogleOauthPort | None,
    state_codec: OAuthStateCodec | None,
    settings: Settings,
    flow: OAuthFlow,
) -> RedirectResponse:
    if google_oauth is None or state_codec is None:
        raise ApiError(503, "OAUTH_NOT_CONFIGURED", "Google OAuth is not configured")
    state, nonce = state_codec.issue(flow)
    response = RedirectResponse(google_oauth.authorization_url(state=state))
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        nonce,
        max_age=state_codec.ttl_seconds,
        path=OAUTH_COOKIE_PATH,
        httponly=True,
        samesite="lax",
        secure=settings.google_callback_url.startswith("https://"),
    )
    return response


@router.get("/auth/google")
def google_login(
    settings: Settings = Depends(get_app_settings),
    google_oauth: GoogleOauthPort | None = Depends(get_google_oauth),
    state_codec: OAuthStateCodec | None = Depends(get_oauth_state_codec),
):
    return _oauth_start(google_oauth, state_codec, settings, flow="login")


@router.get("/auth/google/register")
def google_register(
    settings: Settings = Depends(get_app_settings),
    google_oauth: GoogleOauthPort | None = Depends(get_google_oauth),
    state_codec: OAuthStateCodec | None = Depends(get_oauth_state_codec),
):
    return _oauth_start(google_oauth, state_codec, settings, flow="register")


def _callback_redirect(url: str) -> RedirectResponse:
    response = RedirectResponse(url, status_code=302)
    response.delete_cookie(OAUTH_STATE_COOKIE, path=OAUTH_COOKIE_PATH)
    return response


@router.get("/auth/google/callback")
def google_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    oauth_state: str | None = Cookie(default=None),
    settings: Settings = Depends(get_app_settings),
    state_codec: OAuthStateCodec | None = Depends(get_oauth_state_codec),
    use_case: LoginGoogleUseCase | None = Depends(get_login_google_use_case),
):
    login_url = f"{settings.frontend_url}/login"
    if use_case is None or state_codec is None:
        return _callback_redirect(f"{login_url}?error=oauth_not_configured")
    if error or not code:
        logger.warning("auth_router: oauth_callback_without_code provider_error=%s", error)
        return _callback_redirect(f"{login_url}?error=oauth_failed")

    try:
        flow = state_codec.read(state, oauth_state)
        output = use_case.execute(LoginGoogleInput(code=code))
    except DomainError as exc:
        logger.warning("auth_router: oauth_callback_failed error=%s", type(exc).__name__)
        return _callback_redirect(f"{login_url}?error=oauth_failed")

    logger.info("auth_router: oauth_login user_id=%s outcome=%s", output.user_id, output.outcome)
    target = f"{settings.frontend_url}/signup" if flow == "register" else login_url
    query = urlencode(
        {
            "access_token": output.tokens.access_token,
            "refresh_token": output.tokens.refresh_token,
            "oauth_success": "true",
        }
    )
    return _callback_redirect(f"{target}?{query}")
