from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from crowdfund.domain.entities.user import User
from crowdfund.domain.exceptions import StoreError, UniqueViolationError
from crowdfund.infrastructure.security.token_service import JwtTokenService


ACCESS_SECRET = "access-secret-for-tests-0123456789abcdef"
REFRESH_SECRET = "refresh-secret-for-tests-0123456789abcdef"


def make_user(**overrides) -> User:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    payload = {
        "id": "user-1",
        "email": "alice@example.com",
        "password_hash": "hashed:correct-horse",
        "oauth_provider_id": None,
        "first_name": "Alice",
        "last_name": "Doe",
        "display_name": "Alice Doe",
        "avatar_url": None,
        "is_creator": False,
        "email_verified": False,
        "is_verified": False,
        "refresh_token": None,
        "last_login": None,
        "created_at": now,
        "updated_at": now,
    }
    payload.update(overrides)
    return User(**payload)


class FakeCredentialStore:
    def __init__(self, users: list[User] | None = None):
        self.users: dict[str, User] = {user.id: user for user in users or []}
        self.fail_with: StoreError | None = None
        self.fail_create_with: StoreError | None = None
        self.password_updates: list[tuple[str, str]] = []

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def get_user_by_id(self, *, user_id: str) -> User | None:
        self._check()
        return self.users.get(user_id)

    def get_user_by_email(self, *, email: str) -> User | None:
        self._check()
        email_l = email.strip().lower()
        for user in self.users.values():
            if user.email.lower() == email_l:
                return user
        return None

    def get_user_by_oauth_provider_id(self, *, provider_id: str) -> User | None:
        self._check()
        for user in self.users.values():
            if user.oauth_provider_id == provider_id:
                return user
        return None

    def create_user(self, *, user_id: str, now: datetime, **fields) -> User:
        self._check()
        if self.fail_create_with is not None:
            raise self.fail_create_with
        if any(user.email == fields["email"] for user in self.users.values()):
            raise UniqueViolationError("duplicate", constraint="users_email_key")
        user = User(
            id=user_id,
            refresh_token=None,
            last_login=None,
            created_at=now,
            updated_at=now,
            **fields,
        )
        self.users[user.id] = user
        return user

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
        self._check()
        user = self.users[user_id]
        user = replace(
            user,
            oauth_provider_id=oauth_provider_id,
            display_name=display_name or user.display_name,
            avatar_url=avatar_url or user.avatar_url,
            email_verified=user.email_verified or email_verified,
            last_login=now,
            updated_at=now,
        )
        self.users[user_id] = user
        return user

    def record_login(self, *, user_id: str, refresh_token: str, now: datetime) -> None:
        self._check()
        user = self.users[user_id]
        self.users[user_id] = replace(user, refresh_token=refresh_token, last_login=now, updated_at=now)

    def update_password_hash(self, *, user_id: str, password_hash: str, now: datetime) -> None:
        self._check()
        self.password_updates.append((user_id, password_hash))
        self.users[user_id] = replace(self.users[user_id], password_hash=password_hash, updated_at=now)

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
        self._check()
        user = self.users.get(user_id)
        if user is None:
            return None
        user = replace(
            user,
            first_name=user.first_name if first_name is None else first_name,
            last_name=user.last_name if last_name is None else last_name,
            display_name=user.display_name if display_name is None else display_name,
            avatar_url=user.avatar_url if avatar_url is None else avatar_url,
            updated_at=now,
        )
        self.users[user_id] = user
        return user

    def enable_creator(self, *, user_id: str, now: datetime) -> User:
        self._check()
        user = replace(self.users[user_id], is_creator=True, updated_at=now)
        self.users[user_id] = user
        return user


class FakePasswordHasher:
    def __init__(self, *, upgrade: bool = False):
        self._upgrade = upgrade

    def hash(self, plain_password: str) -> str:
        return f"hashed:{plain_password}"

    def verify(self, plain_password: str, password_hash: str) -> bool:
        return password_hash == f"hashed:{plain_password}"

    def verify_and_update(self, plain_password: str, password_hash: str) -> tuple[bool, str | None]:
        if not self.verify(plain_password, password_hash):
            return False, None
        return True, (f"rehashed:{plain_password}" if self._upgrade else None)


@pytest.fixture
def token_service() -> JwtTokenService:
    return JwtTokenService(
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        issuer="weraise-crowdfunding",
        audience="weraise-users",
    )


@pytest.fixture
def credential_store() -> FakeCredentialStore:
    return FakeCredentialStore([make_user()])


@pytest.fixture
def password_hasher() -> FakePasswordHasher:
    return FakePasswordHasher()


@pytest.fixture
def user_factory():
    return make_user


@pytest.fixture
def store_factory():
    return FakeCredentialStore


@pytest.fixture
def hasher_factory():
    return FakePasswordHasher
