from __future__ import annotations

import logging
from dataclasses import dataclass

from crowdfund.api.errors import ApiError
from crowdfund.application.dto.auth import AuthenticatedIdentity, RefreshSessionInput, TokenPair
from crowdfund.application.ports.token_port import TokenPort
from crowdfund.application.use_cases.refresh_session import RefreshSessionUseCase
from crowdfund.domain.exceptions import AuthenticationError, NotFoundError, TokenError, TokenErrorKind


logger = logging.getLogger(__name__)


class AuthRejection(ApiError):
    def __init__(self, status_code: int, code: str, message: str):
        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        super().__init__(status_code, code, message, headers=headers)


@dataclass(frozen=True)
class GatewayResult:
    identity: AuthenticatedIdentity | None
    rotated_tokens: TokenPair | None = None


ANONYMOUS = GatewayResult(identity=None)


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


class AuthGateway:
    """Authenticates a request from its bearer token.

    An expired access token accompanied by a refresh token is recovered by
    rotating the session; the rotated pair is returned for the caller to
    expose as response headers.
    """

    def __init__(self, *, token_port: TokenPort, refresh_session_use_case: RefreshSessionUseCase):
        self._token_port = token_port
        self._refresh_session = refresh_session_use_case

    def authenticate(
        self,
        *,
        authorization: str | None,
        refresh_token: str | None = None,
        mandatory: bool = True,
    ) -> GatewayResult:
        try:
            return self._authenticate(authorization=authorization, refresh_token=refresh_token)
        except AuthRejection:
            if mandatory:
                raise
            return ANONYMOUS

    def _authenticate(self, *, authorization: str | None, refresh_token: str | None) -> GatewayResult:
        access_token = extract_bearer_token(authorization)
        if access_token is None:
            raise AuthRejection(401, "MISSING_TOKEN", "Access token is required")

        try:
            claims = self._token_port.verify(access_token, "access")
        except TokenError as exc:
            if exc.kind is TokenErrorKind.EXPIRED and refresh_token:
                return self._recover(refresh_token)
            logger.info("auth_gateway: access_rejected kind=%s", exc.kind.value)
            raise AuthRejection(401, "INVALID_TOKEN", "Invalid or expired access token") from exc

        return GatewayResult(identity=AuthenticatedIdentity.from_claims(claims))

    def _recover(self, refresh_token: str) -> GatewayResult:
        try:
            output = self._refresh_session.execute(RefreshSessionInput(refresh_token=refresh_token))
            claims = self._token_port.verify(output.tokens.access_token, "access")
        except (AuthenticationError, NotFoundError) as exc:
            logger.info("auth_gateway: refresh_failed error=%s", type(exc).__name__)
            raise AuthRejection(401, "REFRESH_FAILED", "Token refresh failed") from exc

        logger.info("auth_gateway: session_rotated user_id=%s", claims.subject_id)
        return GatewayResult(
            identity=AuthenticatedIdentity.from_claims(claims),
            rotated_tokens=output.tokens,
        )


def require_creator(identity: AuthenticatedIdentity | None) -> AuthenticatedIdentity:
    if identity is None:
        raise AuthRejection(401, "AUTHENTICATION_REQUIRED", "Authentication required")
    if not identity.is_creator:
        raise AuthRejection(403, "CREATOR_REQUIRED", "Creator access required")
    return identity
