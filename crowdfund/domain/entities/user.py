from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from crowdfund.domain.exceptions import UnreachableAccountError


@dataclass(frozen=True)
class User:
    id: str
    email: str
    password_hash: str | None
    oauth_provider_id: str | None
    first_name: str
    last_name: str
    display_name: str | None
    avatar_url: str | None
    is_creator: bool
    email_verified: bool
    is_verified: bool
    refresh_token: str | None
    last_login: datetime | None
    created_at: datetime
    updated_at: datetime

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    @property
    def has_oauth_identity(self) -> bool:
        return bool(self.oauth_provider_id)


def ensure_reachable_credentials(*, password_hash: str | None, oauth_provider_id: str | None) -> None:
    if not password_hash and not oauth_provider_id:
        raise UnreachableAccountError("Account needs a password or an OAuth identity.")
