from __future__ import annotations

from enum import Enum


class DomainError(Exception):
    """Base for domain errors."""


class ValidationError(DomainError):
    """Malformed or unacceptable input."""


class CreatorAlreadyEnabledError(ValidationError):
    """The account is already a creator."""


class AuthenticationError(DomainError):
    """Credentials or bearer token could not be accepted."""


class InvalidCredentialsError(AuthenticationError):
    pass


class TokenErrorKind(str, Enum):
    EXPIRED = "expired"
    MALFORMED = "malformed"
    INVALID = "invalid"


class TokenError(AuthenticationError):
    kind: TokenErrorKind = TokenErrorKind.INVALID


class TokenExpiredError(TokenError):
    kind = TokenErrorKind.EXPIRED


class TokenMalformedError(TokenError):
    kind = TokenErrorKind.MALFORMED


class TokenInvalidError(TokenError):
    kind = TokenErrorKind.INVALID


class OAuthError(AuthenticationError):
    """External identity provider rejected or failed the exchange."""


class MissingEmailError(OAuthError):
    """External profile carries no email, so it cannot be linked or created."""


class UnverifiedEmailError(OAuthError):
    """Provider has not verified the email, so it cannot be linked to an existing account."""


class AuthorizationError(DomainError):
    """Authenticated, but lacking a capability."""


class ConflictError(DomainError):
    """A unique field is already taken."""


class EmailAlreadyExistsError(ConflictError):
    pass


class NotFoundError(DomainError):
    pass


class UserNotFoundError(NotFoundError):
    pass


class StoreError(DomainError):
    """Credential store is unavailable or rejected the statement."""


class UniqueViolationError(StoreError):
    def __init__(self, message: str, *, constraint: str | None = None):
        super().__init__(message)
        self.constraint = constraint


class ConfigurationError(DomainError):
    """Required setting is missing."""


class UnreachableAccountError(DomainError):
    """Account would have neither a password nor an OAuth identity."""
