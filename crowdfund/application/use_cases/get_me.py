from __future__ import annotations

from crowdfund.application.dto.me import MeOutput
from crowdfund.application.ports.credential_store_port import CredentialStorePort
from crowdfund.domain.entities.user import User
from crowdfund.domain.exceptions import UserNotFoundError


def me_output_from_user(user: User) -> MeOutput:
    return MeOutput(
        user_id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        is_creator=user.is_creator,
        is_verified=user.is_verified,
        email_verified=user.email_verified,
        has_password=user.has_password,
        has_oauth_identity=user.has_oauth_identity,
        last_login=user.last_login,
        created_at=user.created_at,
    )


class GetMeUseCase:
    def __init__(self, *, credential_store: CredentialStorePort):
        self._credential_store = credential_store

    def execute(self, *, user_id: str) -> MeOutput:
        user = self._credential_store.get_user_by_id(user_id=user_id)
        if user is None:
            raise UserNotFoundError("User not found.")
        return me_output_from_user(user)
