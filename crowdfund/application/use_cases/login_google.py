from __future__ import annotations

from crowdfund.application.dto.auth import GoogleLoginOutput, LoginGoogleInput
from crowdfund.application.ports.credential_store_port import CredentialStorePort
from crowdfund.application.ports.google_oauth_port import GoogleOauthPort
from crowdfund.application.ports.token_port import TokenPort

from .auth_common import issue_tokens
from .resolve_oauth_identity import ResolveOAuthIdentityUseCase


class LoginGoogleUseCase:
    def __init__(
        self,
        *,
        credential_store: CredentialStorePort,
        google_oauth_port: GoogleOauthPort,
        token_port: TokenPort,
        resolve_identity_use_case: ResolveOAuthIdentityUseCase | None = None,
    ):
        self._credential_store = credential_store
        self._google_oauth_port = google_oauth_port
        self._token_port = token_port
        self._resolve_identity = resolve_identity_use_case or ResolveOAuthIdentityUseCase(
            credential_store=credential_store
        )

    def execute(self, command: LoginGoogleInput) -> GoogleLoginOutput:
        profile = self._google_oauth_port.exchange_code(code=command.code)
        resolved = self._resolve_identity.execute(profile)
        issued = issue_tokens(
            user=resolved.user,
            credential_store=self._credential_store,
            token_port=self._token_port,
        )
        return GoogleLoginOutput(user_id=issued.user_id, tokens=issued.tokens, outcome=resolved.outcome)
