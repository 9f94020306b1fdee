from __future__ import annotations

import logging
from datetime import datetime, timezone

from crowdfund.application.dto.auth import AuthTokensOutput, TokenPair
from crowdfund.application.ports.credential_store_port import CredentialStorePort
from crowdfund.application.ports.token_port import TokenPort
from crowdfund.domain.entities.user import User
from crowdfund.domain.exceptions import ValidationError


logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def validate_new_password(password: str | None) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
    return password


def issue_tokens(
    *,
    user: User,
    credential_store: CredentialStorePort,
    token_port: TokenPort,
    now: datetime | None = None,
) -> AuthTokensOutput:
    """Mint an access/refresh pair for ``user`` and mirror the refresh token."""
    now = now or utcnow()
    access_token = token_port.mint_access(
        subject_id=user.id,
        email=user.email,
        is_creator=user.is_creator,
        now=now,
    )
    refresh_token = token_port.mint_refresh(subject_id=user.id, now=now)
    credential_store.record_login(user_id=user.id, refresh_token=refresh_token, now=now)
    logger.info("auth: tokens_issued user_id=%s", user.id)
    return AuthTokensOutput(
        user_id=user.id,
        tokens=TokenPair(access_token=access_token, refresh_token=refresh_token),
    )
