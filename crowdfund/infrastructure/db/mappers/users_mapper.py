from __future__ import annotations

from typing import Any, Mapping

from crowdfund.domain.entities.user import User


USER_COLUMNS = (
    "id, email, password_hash, google_id, first_name, last_name, display_name, avatar_url, "
    "is_creator, email_verified, is_verified, refresh_token, last_login, created_at, updated_at"
)


def _as_str(value: Any) -> str:
    return str(value)


def map_row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        id=_as_str(row["id"]),
        email=row["email"],
        password_hash=row.get("password_hash"),
        oauth_provider_id=row.get("google_id"),
        first_name=row.get("first_name") or "",
        last_name=row.get("last_name") or "",
        display_name=row.get("display_name"),
        avatar_url=row.get("avatar_url"),
        is_creator=bool(row.get("is_creator")),
        email_verified=bool(row.get("email_verified")),
        is_verified=bool(row.get("is_verified")),
        refresh_token=row.get("refresh_token"),
        last_login=row.get("last_login"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
