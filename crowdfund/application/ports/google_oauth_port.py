from __future__ import annotations

from typing import Protocol

from crowdfund.application.dto.auth import OAuthProfile


class GoogleOauthPort(Protocol):
    def authorization_url(self, *, state: str | None = None) -> str:
        ...

    def exchange_code(self, *, code: str) -> OAuthProfile:
        ...
