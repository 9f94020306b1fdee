from __future__ import annotations

from datetime import datetime
from typing import Protocol

from crowdfund.domain.entities.user import User


class CredentialStorePort(Protocol):
    """Point lookups and updates on user identity records.

    Lookups return ``None`` when the row does not exist. Store failures raise
    ``StoreError``; unique constraint violations raise ``UniqueViolationError``.
    """

    def get_user_by_id(self, *, user_id: str) -> User | None:
        ...

    def get_user_by_email(self, *, email: str) -> User | None:
        ...

    def get_user_by_oauth_provider_id(self, *, provider_id: str) -> User | None:
        ...

    def create_user(
        self,
        *,
        user_id: str,
        email: str,
        password_hash: str | None,
        oauth_provider_id: str | None,
        first_name: str,
        last_name: str,
        display_name: str | None,
        avatar_url: str | None,
        is_creator: bool,
        email_verified: bool,
        is_verified: bool,
        now: datetime,
    ) -> User:
        ...

    def update_oauth_login(
        self,
        *,
        user_id: str,
        oauth_provider_id: str,
        display_name: str | None,
        avatar_url: str | None,
        email_verified: bool,
        now: datetime,
    ) -> User:
        ...

    def record_login(self, *, user_id: str, refresh_token: str, now: datetime) -> None:
        ...

    def update_password_hash(self, *, user_id: str, password_hash: str, now: datetime) -> None:
        ...

    def update_profile(
        self,
        *,
        user_id: str,
        first_name: str | None,
        last_name: str | None,
        display_name: str | None,
        avatar_url: str | None,
        now: datetime,
    ) -> User | None:
        """Set the supplied fields; ``None`` leaves a field unchanged. Returns ``None`` for an unknown user."""
        ...

    def enable_creator(self, *, user_id: str, now: datetime) -> User:
        ...
