from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt

from crowdfund.application.dto.auth import AccessTokenClaims, RefreshTokenClaims
from crowdfund.application.ports.token_port import TokenPort
from crowdfund.domain.entities.token import TokenKind
from crowdfund.domain.exceptions import (
    ConfigurationError,
    DomainError,
    TokenExpiredError,
    TokenInvalidError,
    TokenMalformedError,
)


logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ["exp", "iat", "iss", "aud", "sub"]


class JwtTokenService(TokenPort):
    """Signs and verifies access and refresh tokens.

    Access and refresh tokens are signed with independent secrets and carry a
    ``type`` claim, so one kind can never be accepted in place of the other.
    """

    def __init__(
        self,
        *,
        access_secret: str | None,
        refresh_secret: str | None,
        issuer: str,
        audience: str,
        access_ttl_minutes: int = 15,
        refresh_ttl_days: int = 7,
    ):
        self._access_secret = access_secret or ""
        self._refresh_secret = refresh_secret or ""
        self._issuer = issuer
        self._audience = audience
        self._access_ttl = timedelta(minutes=access_ttl_minutes)
        self._refresh_ttl = timedelta(days=refresh_ttl_days)

    def mint_access(
        self,
        *,
        subject_id: str,
        email: str,
        is_creator: bool,
        now: datetime | None = None,
    ) -> str:
        secret = self._secret_for("access")
        issued_at = now or utcnow()
        payload = {
            **self._base_claims(subject_id=subject_id, kind="access", issued_at=issued_at),
            "email": email,
            "is_creator": bool(is_creator),
        }
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    def mint_refresh(self, *, subject_id: str, now: datetime | None = None) -> str:
        secret = self._secret_for("refresh")
        issued_at = now or utcnow()
        payload = self._base_claims(subject_id=subject_id, kind="refresh", issued_at=issued_at)
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    def verify(self, token: str, expected_kind: TokenKind) -> AccessTokenClaims | RefreshTokenClaims:
        secret = self._secret_for(expected_kind)
        if not token or not token.strip():
            raise TokenMalformedError("Token is empty.")

        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                issuer=self._issuer,
                audience=self._audience,
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError(f"{expected_kind.capitalize()} token has expired.") from exc
        except jwt.InvalidSignatureError as exc:
            raise TokenInvalidError(f"Invalid {expected_kind} token.") from exc
        except jwt.DecodeError as exc:
            raise TokenMalformedError(f"Malformed {expected_kind} token.") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenInvalidError(f"Invalid {expected_kind} token.") from exc

        if payload.get("type") != expected_kind:
            raise TokenInvalidError("Invalid token type.")

        subject_id = payload.get("sub")
        if not subject_id or not isinstance(subject_id, str):
            raise TokenInvalidError("Invalid token subject.")

        issued_at = _from_timestamp(payload["iat"])
        expires_at = _from_timestamp(payload["exp"])

        if expected_kind == "refresh":
            return RefreshTokenClaims(subject_id=subject_id, issued_at=issued_at, expires_at=expires_at)

        email = payload.get("email")
        is_creator = payload.get("is_creator")
        if not isinstance(email, str) or not isinstance(is_creator, bool):
            raise TokenInvalidError("Access token is missing identity claims.")
        return AccessTokenClaims(
            subject_id=subject_id,
            email=email,
            is_creator=is_creator,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def is_expired(self, token: str, kind: TokenKind) -> bool:
        try:
            self.verify(token, kind)
        except DomainError:
            return True
        return False

    def expires_at(self, token: str, kind: TokenKind) -> datetime | None:
        try:
            return self.verify(token, kind).expires_at
        except DomainError:
            return None

    def ttl_seconds(self, kind: TokenKind) -> int:
        ttl = self._access_ttl if kind == "access" else self._refresh_ttl
        return int(ttl.total_seconds())

    def _secret_for(self, kind: TokenKind) -> str:
        secret = self._access_secret if kind == "access" else self._refresh_secret
        if not secret:
            name = "JWT_ACCESS_SECRET" if kind == "access" else "JWT_REFRESH_SECRET"
            logger.error("token_service: missing_secret kind=%s", kind)
            raise ConfigurationError(f"{name} is required.")
        return secret

    def _base_claims(self, *, subject_id: str, kind: TokenKind, issued_at: datetime) -> dict:
        ttl = self._access_ttl if kind == "access" else self._refresh_ttl
        return {
            "sub": subject_id,
            "type": kind,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + ttl).timestamp()),
        }


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _from_timestamp(value) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)
