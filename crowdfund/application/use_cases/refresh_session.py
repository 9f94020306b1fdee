from __future__ import annotations

import logging

from crowdfund.application.dto.auth import AuthTokensOutput, RefreshSessionInput
from crowdfund.application.ports.credential_store_port import CredentialStorePort
from crowdfund.application.ports.token_port import TokenPort
from crowdfund.domain.exceptions import TokenMalformedError, UserNotFoundError

from .auth_common import issue_tokens


logger = logging.getLogger(__name__)


class RefreshSessionUseCase:
    def __init__(self, *, credential_store: CredentialStorePort, token_port: TokenPort):
        self._credential_store = credential_store
        self._token_port = token_port

    def execute(self, command: RefreshSessionInput) -> AuthTokensOutput:
        token = (command.refresh_token or "").strip()
        if not token:
            raise TokenMalformedError("Missing refresh token.")

        claims = self._token_port.verify(token, "refresh")
        user = self._credential_store.get_user_by_id(user_id=claims.subject_id)
        if user is None:
            logger.info("refresh_session: subject_not_found user_id=%s", claims.subject_id)
            raise UserNotFoundError("User not found.")

        return issue_tokens(
            user=user,
            credential_store=self._credential_store,
            token_port=self._token_port,
        )
