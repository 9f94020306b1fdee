from __future__ import annotations

import logging

from passlib.context import CryptContext

from crowdfund.application.ports.password_hasher_port import PasswordHasherPort


logger = logging.getLogger(__name__)


class PasswordHasher(PasswordHasherPort):
    """argon2 for new hashes; bcrypt hashes from older accounts still verify
    and are flagged for replacement by ``verify_and_update``."""

    def __init__(self, *, bcrypt_rounds: int = 12):
        self._ctx = CryptContext(
            schemes=["argon2", "bcrypt"],
            deprecated="auto",
            bcrypt__rounds=bcrypt_rounds,
        )

    def hash(self, plain_password: str) -> str:
        return self._ctx.hash(plain_password)

    def verify(self, plain_password: str, password_hash: str) -> bool:
        try:
            return self._ctx.verify(plain_password, password_hash)
        except (ValueError, TypeError):
            logger.warning("password_hasher: unrecognized_hash")
            return False

    def verify_and_update(self, plain_password: str, password_hash: str) -> tuple[bool, str | None]:
        try:
            verified, replacement_hash = self._ctx.verify_and_update(plain_password, password_hash)
            return bool(verified), replacement_hash
        except (ValueError, TypeError):
            logger.warning("password_hasher: unrecognized_hash")
            return False, None
