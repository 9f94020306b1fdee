from __future__ import annotations

import logging
from uuid import uuid4

from crowdfund.application.dto.auth import AuthTokensOutput, RegisterUserInput
from crowdfund.application.ports.credential_store_port import CredentialStorePort
from crowdfund.application.ports.password_hasher_port import PasswordHasherPort
from crowdfund.application.ports.token_port import TokenPort
from crowdfund.domain.entities.user import ensure_reachable_credentials
from crowdfund.domain.exceptions import EmailAlreadyExistsError, UniqueViolationError, ValidationError

from .auth_common import issue_tokens, normalize_email, utcnow, validate_new_password


logger = logging.getLogger(__name__)


class RegisterUserUseCase:
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

    def execute(self, command: RegisterUserInput) -> AuthTokensOutput:
        email = normalize_email(command.email)
        first_name = (command.first_name or "").strip()
        last_name = (command.last_name or "").strip()

        if not email or "@" not in email:
            raise ValidationError("A valid email is required.")
        password = validate_new_password(command.password)
        if not first_name:
            raise ValidationError("First name is required.")
        if not last_name:
            raise ValidationError("Last name is required.")

        if self._credential_store.get_user_by_email(email=email) is not None:
            raise EmailAlreadyExistsError("User with this email already exists.")

        password_hash = self._password_hasher.hash(password)
        ensure_reachable_credentials(password_hash=password_hash, oauth_provider_id=None)

        display_name = (command.display_name or "").strip() or f"{first_name} {last_name}"
        now = utcnow()
        try:
            user = self._credential_store.create_user(
                user_id=str(uuid4()),
                email=email,
                password_hash=password_hash,
                oauth_provider_id=None,
                first_name=first_name,
                last_name=last_name,
                display_name=display_name,
                avatar_url=None,
                is_creator=bool(command.is_creator),
                email_verified=False,
                is_verified=False,
                now=now,
            )
        except UniqueViolationError as exc:
            # Concurrent registration won the insert.
            raise EmailAlreadyExistsError("User with this email already exists.") from exc

        logger.info("register_user: created user_id=%s is_creator=%s", user.id, user.is_creator)
        return issue_tokens(
            user=user,
            credential_store=self._credential_store,
            token_port=self._token_port,
            now=now,
        )
