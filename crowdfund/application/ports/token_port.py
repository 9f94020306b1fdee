from __future__ import annotations

from datetime import datetime
from typing import Literal, Protocol, overload

from crowdfund.application.dto.auth import AccessTokenClaims, RefreshTokenClaims
from crowdfund.domain.entities.token import TokenKind


class TokenPort(Protocol):
    def mint_access(
        self,
        *,
        subject_id: str,
        email: str,
        is_creator: bool,
        now: datetime | None = None,
    ) -> str:
        ...

    def mint_refresh(self, *, subject_id: str, now: datetime | None = None) -> str:
        ...

    @overload
    def verify(self, token: str, expected_kind: Literal["access"]) -> AccessTokenClaims:
        ...

    @overload
    def verify(self, token: str, expected_kind: Literal["refresh"]) -> RefreshTokenClaims:
        ...

    def verify(self, token: str, expected_kind: TokenKind) -> AccessTokenClaims | RefreshTokenClaims:
        ...

    def is_expired(self, token: str, kind: TokenKind) -> bool:
        ...

    def expires_at(self, token: str, kind: TokenKind) -> datetime | None:
        ...
