from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from crowdfund.domain.entities.token import IdentityResolution
from crowdfund.domain.entities.user import User


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class AccessTokenClaims:
    subject_id: str
    email: str
    is_creator: bool
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class RefreshTokenClaims:
    subject_id: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class AuthenticatedIdentity:
    user_id: str
    email: str
    is_creator: bool

    @classmethod
    def from_claims(cls, claims: AccessTokenClaims) -> AuthenticatedIdentity:
        return cls(user_id=claims.subject_id, email=claims.email, is_creator=claims.is_creator)


@dataclass(frozen=True)
class AuthTokensOutput:
    user_id: str
    tokens: TokenPair


@dataclass(frozen=True)
class RegisterUserInput:
    email: str
    password: str
    first_name: str
    last_name: str
    display_name: str | None = None
    is_creator: bool = False


@dataclass(frozen=True)
class LoginLocalInput:
    email: str
    password: str


@dataclass(frozen=True)
class RefreshSessionInput:
    refresh_token: str


@dataclass(frozen=True)
class OAuthProfile:
    provider_id: str
    email: str | None
    given_name: str
    family_name: str
    display_name: str
    avatar_url: str | None
    email_verified: bool = False


@dataclass(frozen=True)
class ResolvedIdentity:
    user: User
    outcome: IdentityResolution


@dataclass(frozen=True)
class LoginGoogleInput:
    code: str


@dataclass(frozen=True)
class GoogleLoginOutput:
    user_id: str
    tokens: TokenPair
    outcome: IdentityResolution


@dataclass(frozen=True)
class ChangePasswordInput:
    user_id: str
    current_password: str
    new_password: str


@dataclass(frozen=True)
class SetPasswordInput:
    user_id: str
    new_password: str
