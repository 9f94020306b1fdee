from __future__ import annotations

import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Literal

import jwt

from crowdfund.domain.exceptions import OAuthError


OAUTH_STATE_COOKIE = "oauth_state"
STATE_ALGORITHM = "HS256"
STATE_TYPE = "oauth_state"

OAuthFlow = Literal["login", "register"]


class OAuthStateCodec:
    """Signed OAuth ``state`` values bound to a per-browser nonce.

    The nonce travels in the ``oauth_state`` cookie; the callback accepts the
    state only when its signature, expiry and nonce all match.
    """

    def __init__(self, *, secret: str, ttl_seconds: int = 600):
        self._secret = secret
        self._ttl = timedelta(seconds=ttl_seconds)

    @property
    def ttl_seconds(self) -> int:
        return int(self._ttl.total_seconds())

    def issue(self, flow: OAuthFlow, *, now: datetime | None = None) -> tuple[str, str]:
        issued_at = now or datetime.now(timezone.utc)
        nonce = secrets.token_urlsafe(16)
        payload = {
            "typ": STATE_TYPE,
            "flow": flow,
            "nonce": nonce,
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=STATE_ALGORITHM), nonce

    def read(self, state: str | None, nonce: str | None) -> OAuthFlow:
        if not state or not nonce:
            raise OAuthError("Missing OAuth state.")
        try:
            payload = jwt.decode(
                state,
                self._secret,
                algorithms=[STATE_ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.InvalidTokenError as exc:
            raise OAuthError("Invalid OAuth state.") from exc

        if payload.get("typ") != STATE_TYPE:
            raise OAuthError("Invalid OAuth state.")
        bound_nonce = payload.get("nonce")
        if not isinstance(bound_nonce, str) or not hmac.compare_digest(bound_nonce, nonce):
            raise OAuthError("OAuth state does not match this browser.")
        flow = payload.get("flow")
        if flow not in ("login", "register"):
            raise OAuthError("Invalid OAuth state.")
        return flow
