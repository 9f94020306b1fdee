from __future__ import annotations

import logging

from crowdfund.application.dto.auth import AuthTokensOutput
from crowdfund.application.ports.credential_store_port import CredentialStorePort
from crowdfund.application.ports.token_port import TokenPort
from crowdfund.domain.exceptions import CreatorAlreadyEnabledError, UserNotFoundError

from .auth_common import issue_tokens, utcnow


logger = logging.getLogger(__name__)


class BecomeCreatorUseCase:
    def __init__(self, *, credential_store: CredentialStorePort, token_port: TokenPort):
        self._credential_store = credential_store
        self._token_port = token_port

    def execute(self, *, user_id: str) -> AuthTokensOutput:
        user = self._credential_store.get_user_by_id(user_id=user_id)
        if user is None:
            raise UserNotFoundError("User not found.")
        if user.is_creator:
            raise CreatorAlreadyEnabledError("User is already a creator.")

        now = utcnow()
        user = self._credential_store.enable_creator(user_id=user.id, now=now)
        logger.info("become_creator: enabled user_id=%s", user.id)
        # Fresh pair so the access token carries the creator flag.
        return issue_tokens(
            user=user,
            credential_store=self._credential_store,
            token_port=self._token_port,
            now=now,
        )
