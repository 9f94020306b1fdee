from __future__ import annotations

import logging
from urllib.parse import urlparse

from crowdfund.application.dto.me import MeOutput, UpdateProfileInput
from crowdfund.application.ports.credential_store_port import CredentialStorePort
from crowdfund.domain.exceptions import UserNotFoundError, ValidationError

from .auth_common import utcnow
from .get_me import me_output_from_user


logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
MAX_AVATAR_URL_LENGTH = 2048


def _clean_name(value: str | None, field: str) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        raise ValidationError(f"{field} cannot be empty.")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValidationError(f"{field} must be at most {MAX_NAME_LENGTH} characters.")
    return cleaned


def _clean_avatar_url(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    parsed = urlparse(cleaned)
    if parsed.scheme not in ("http", "https") or not parsed.netloc or len(cleaned) > MAX_AVATAR_URL_LENGTH:
        raise ValidationError("avatarUrl must be a valid http(s) URL.")
    return cleaned


class UpdateProfileUseCase:
    """Partial update of the user's personal fields; omitted fields keep their value."""

    def __init__(self, *, credential_store: CredentialStorePort):
        self._credential_store = credential_store

    def execute(self, command: UpdateProfileInput) -> MeOutput:
        first_name = _clean_name(command.first_name, "firstName")
        last_name = _clean_name(command.last_name, "lastName")
        display_name = _clean_name(command.display_name, "displayName")
        avatar_url = _clean_avatar_url(command.avatar_url)
        if first_name is None and last_name is None and display_name is None and avatar_url is None:
            raise ValidationError("No profile fields to update.")

        user = self._credential_store.update_profile(
            user_id=command.user_id,
            first_name=first_name,
            last_name=last_name,
            display_name=display_name,
            avatar_url=avatar_url,
            now=utcnow(),
        )
        if user is None:
            raise UserNotFoundError("User not found.")

        logger.info("update_profile: updated user_id=%s", user.id)
        return me_output_from_user(user)
