from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class MeOutput:
    user_id: str
    email: str
    first_name: str
    last_name: str
    display_name: str | None
    avatar_url: str | None
    is_creator: bool
    is_verified: bool
    email_verified: bool
    has_password: bool
    has_oauth_identity: bool
    last_login: datetime | None
    created_at: datetime


@dataclass(frozen=True)
class UpdateProfileInput:
    user_id: str
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
