from __future__ import annotations

import logging
from uuid import uuid4

from crowdfund.application.dto.auth import OAuthProfile, ResolvedIdentity
from crowdfund.application.ports.credential_store_port import CredentialStorePort
from crowdfund.domain.entities.user import ensure_reachable_credentials
from crowdfund.domain.exceptions import ConflictError, MissingEmailError, UniqueViolationError, UnverifiedEmailError

from .auth_common import normalize_email, utcnow


logger = logging.getLogger(__name__)


class ResolveOAuthIdentityUseCase:
    """Map an external OAuth profile onto a local user.

    Lookup order is provider id, then email (linking the provider to an
    existing password account), then creation of an OAuth-only account.
    Linking by email requires the provider to have verified that email.
    """

    def __init__(self, *, credential_store: CredentialStorePort):
        self._credential_store = credential_store

    def execute(self, profile: OAuthProfile) -> ResolvedIdentity:
        email = normalize_email(profile.email)
        if not email:
            raise MissingEmailError("No email found in OAuth profile.")

        display_name = profile.display_name or None
        avatar_url = profile.avatar_url or None
        now = utcnow()

        user = self._credential_store.get_user_by_oauth_provider_id(provider_id=profile.provider_id)
        if user is not None:
            user = self._credential_store.update_oauth_login(
                user_id=user.id,
                oauth_provider_id=profile.provider_id,
                display_name=display_name,
                avatar_url=avatar_url,
                email_verified=profile.email_verified,
                now=now,
            )
            logger.info("resolve_oauth_identity: matched_by_provider user_id=%s", user.id)
            return ResolvedIdentity(user=user, outcome="matched-by-provider")

        user = self._credential_store.get_user_by_email(email=email)
        if user is not None:
            if not profile.email_verified:
                logger.warning("resolve_oauth_identity: link_refused reason=email_unverified user_id=%s", user.id)
                raise UnverifiedEmailError("OAuth email is not verified, cannot link it to an existing account.")
            user = self._credential_store.update_oauth_login(
                user_id=user.id,
                oauth_provider_id=profile.provider_id,
                display_name=display_name,
                avatar_url=avatar_url,
                email_verified=True,
                now=now,
            )
            logger.info("resolve_oauth_identity: linked_by_email user_id=%s", user.id)
            return ResolvedIdentity(user=user, outcome="linked-by-email")

        ensure_reachable_credentials(password_hash=None, oauth_provider_id=profile.provider_id)
        first_name = profile.given_name or ""
        last_name = profile.family_name or ""
        try:
            user = self._credential_store.create_user(
                user_id=str(uuid4()),
                email=email,
                password_hash=None,
                oauth_provider_id=profile.provider_id,
                first_name=first_name,
                last_name=last_name,
                display_name=display_name or f"{first_name} {last_name}".strip() or None,
                avatar_url=avatar_url,
                is_creator=False,
                email_verified=profile.email_verified,
                is_verified=False,
                now=now,
            )
        except UniqueViolationError as exc:
            logger.info(
                "resolve_oauth_identity: create_conflict constraint=%s",
                exc.constraint,
            )
            raise ConflictError("Account was created concurrently, retry sign-in.") from exc

        logger.info("resolve_oauth_identity: created user_id=%s", user.id)
        return ResolvedIdentity(user=user, outcome="created")
