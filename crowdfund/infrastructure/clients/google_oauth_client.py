from __future__ import annotations

import logging
from urllib.parse import urlencode

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests
from google.oauth2 import id_token

from crowdfund.application.dto.auth import OAuthProfile
from crowdfund.application.ports.google_oauth_port import GoogleOauthPort
from crowdfund.domain.exceptions import OAuthError
from crowdfund.shared.config import Settings


logger = logging.getLogger(__name__)

AUTHORIZATION_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
SCOPES = ("openid", "email", "profile")


class GoogleOAuthClient(GoogleOauthPort):
    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        callback_url: str,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self._callback_url = callback_url
        self._timeout = timeout_seconds
        self._transport = transport

    def authorization_url(self, *, state: str | None = None) -> str:
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._callback_url,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "prompt": "select_account",
        }
        if state:
            params["state"] = state
        return f"{AUTHORIZATION_ENDPOINT}?{urlencode(params)}"

    def exchange_code(self, *, code: str) -> OAuthProfile:
        if not code:
            raise OAuthError("Missing authorization code.")

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(
                    TOKEN_ENDPOINT,
                    data={
                        "code": code,
                        "client_id": self._client_id,
                        "client_secret": self._client_secret,
                        "redirect_uri": self._callback_url,
                        "grant_type": "authorization_code",
                    },
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "google_oauth_client: code_exchange_rejected status=%s",
                exc.response.status_code,
            )
            raise OAuthError("Google rejected the authorization code.") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("google_oauth_client: code_exchange_failed error=%s", type(exc).__name__)
            raise OAuthError("Google token exchange failed.") from exc

        raw_id_token = payload.get("id_token") if isinstance(payload, dict) else None
        if not raw_id_token:
            raise OAuthError("Google token response has no id_token.")

        try:
            claims = id_token_verify(token=raw_id_token, audience=self._client_id)
        except (ValueError, GoogleAuthError) as exc:
            logger.warning("google_oauth_client: id_token_rejected error=%s", type(exc).__name__)
            raise OAuthError("Invalid Google id_token.") from exc

        return profile_from_claims(claims)


def profile_from_claims(claims: dict) -> OAuthProfile:
    subject = claims.get("sub")
    if not subject:
        raise OAuthError("Google id_token missing subject.")

    given_name = _str_or_empty(claims.get("given_name"))
    family_name = _str_or_empty(claims.get("family_name"))
    display_name = _str_or_empty(claims.get("name")) or f"{given_name} {family_name}".strip()
    email = claims.get("email") if isinstance(claims.get("email"), str) else None
    avatar_url = claims.get("picture") if isinstance(claims.get("picture"), str) else None

    email_verified_raw = claims.get("email_verified", False)
    email_verified = bool(email_verified_raw)
    if isinstance(email_verified_raw, str):
        email_verified = email_verified_raw.lower() == "true"

    return OAuthProfile(
        provider_id=str(subject),
        email=email or None,
        given_name=given_name,
        family_name=family_name,
        display_name=display_name,
        avatar_url=avatar_url,
        email_verified=email_verified,
    )


def build_google_oauth_client(settings: Settings) -> GoogleOAuthClient | None:
    if not settings.google_oauth_enabled:
        logger.warning(
            "google_oauth_client: disabled reason=missing_credentials "
            "required=GOOGLE_CLIENT_ID,GOOGLE_CLIENT_SECRET,GOOGLE_CALLBACK_URL"
        )
        return None
    return GoogleOAuthClient(
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        callback_url=settings.google_callback_url,
        timeout_seconds=settings.google_http_timeout_seconds,
    )


def _str_or_empty(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def id_token_verify(*, token: str, audience: str) -> dict:
    request = requests.Request()
    return id_token.verify_oauth2_token(token, request, audience)
