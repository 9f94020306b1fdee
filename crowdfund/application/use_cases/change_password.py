from __future__ import annotations

import logging

from crowdfund.application.dto.auth import ChangePasswordInput, SetPasswordInput
from crowdfund.application.ports.credential_store_port import CredentialStorePort
from crowdfund.application.ports.password_hasher_port import PasswordHasherPort
from crowdfund.domain.exceptions import UserNotFoundError, ValidationError

from .auth_common import utcnow, validate_new_password


logger = logging.getLogger(__name__)


class ChangePasswordUseCase:
    def __init__(self, *, credential_store: CredentialStorePort, password_hasher: PasswordHasherPort):
        self._credential_store = credential_store
        self._password_hasher = password_hasher

    def execute(self, command: ChangePasswordInput) -> None:
        new_password = validate_new_password(command.new_password)
        user = self._credential_store.get_user_by_id(user_id=command.user_id)
        if user is None:
            raise UserNotFoundError("User not found.")
        if not user.has_password:
            raise ValidationError("Cannot change password for OAuth accounts, set a password first.")
        if not command.current_password or not self._password_hasher.verify(
            command.current_password, user.password_hash
        ):
            raise ValidationError("Current password is incorrect.")

        self._credential_store.update_password_hash(
            user_id=user.id,
            password_hash=self._password_hasher.hash(new_password),
            now=utcnow(),
        )
        logger.info("change_password: updated user_id=%s", user.id)


class SetPasswordUseCase:
    def __init__(self, *, credential_store: CredentialStorePort, password_hasher: PasswordHasherPort):
        self._credential_store = credential_store
        self._password_hasher = password_hasher

    def execute(self, command: SetPasswordInput) -> None:
        new_password = validate_new_password(command.new_password)
        user = self._credential_store.get_user_by_id(user_id=command.user_id)
        if user is None:
            raise UserNotFoundError("User not found.")
        if user.has_password:
            raise ValidationError("Password already set, use change password instead.")

        self._credential_store.update_password_hash(
            user_id=user.id,
            password_hash=self._password_hasher.hash(new_password),
            now=utcnow(),
        )
        logger.info("set_password: updated user_id=%s", user.id)
