from __future__ import annotations

import logging

from crowdfund.application.dto.auth import AuthTokensOutput, LoginLocalInput
from crowdfund.application.ports.credential_store_port import CredentialStorePort
from crowdfund.application.ports.password_hasher_port import PasswordHasherPort
from crowdfund.application.ports.token_port import TokenPort
from crowdfund.domain.exceptions import InvalidCredentialsError

from .auth_common import issue_tokens, normalize_email, utcnow


logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."


class LoginLocalUseCase:
    def __init__(
        self,
        *,
        credential_store: CredentialStorePort,
        password_hasher: PasswordHasherPort,
        token_port: TokenPort,
    ):
        self._credential_store = credential_store
        self._password_hasher = password_hasher
        self._token_port = token_port

    def execute(self, command: LoginLocalInput) -> AuthTokensOutput:
        email = normalize_email(command.email)
        if not email or not command.password:
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        user = self._credential_store.get_user_by_email(email=email)
        if user is None or not user.has_password:
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        valid, replacement_hash = self._password_hasher.verify_and_update(command.password, user.password_hash)
        if not valid:
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        now = utcnow()
        if replacement_hash:
            self._credential_store.update_password_hash(user_id=user.id, password_hash=replacement_hash, now=now)
            logger.info("login_local: password_hash_upgraded user_id=%s", user.id)

        return issue_tokens(
            user=user,
            credential_store=self._credential_store,
            token_port=self._token_port,
            now=now,
        )
