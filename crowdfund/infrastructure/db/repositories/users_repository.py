from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from crowdfund.application.ports.credential_store_port import CredentialStorePort
from crowdfund.domain.entities.user import User
from crowdfund.domain.exceptions import StoreError, UniqueViolationError
from crowdfund.infrastructure.db.mappers.users_mapper import USER_COLUMNS, map_row_to_user


logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _sqlstate(exc: IntegrityError) -> str | None:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _constraint_name(exc: IntegrityError) -> str | None:
    diag = getattr(getattr(exc, "orig", None), "diag", None)
    return getattr(diag, "constraint_name", None)


@contextmanager
def _translate_errors(operation: str):
    try:
        yield
    except IntegrityError as exc:
        if _sqlstate(exc) == UNIQUE_VIOLATION:
            constraint = _constraint_name(exc)
            logger.info("users_repository: unique_violation op=%s constraint=%s", operation, constraint)
            raise UniqueViolationError("Unique constraint violated.", constraint=constraint) from exc
        logger.error("users_repository: integrity_error op=%s", operation)
        raise StoreError("Credential store rejected the statement.") from exc
    except SQLAlchemyError as exc:
        logger.error("users_repository: store_error op=%s error=%s", operation, type(exc).__name__)
        raise StoreError("Credential store is unavailable.") from exc


class SqlUsersRepository(CredentialStorePort):
    def __init__(self, engine):
        self._engine = engine

    def _fetch_one(self, operation: str, sql: str, params: dict) -> User | None:
        with _translate_errors(operation):
            with self._engine.connect() as conn:
                row = conn.execute(text(sql), params).mappings().first()
        if row is None:
            return None
        return map_row_to_user(row)

    def _write_returning_optional(self, operation: str, sql: str, params: dict) -> User | None:
        with _translate_errors(operation):
            with self._engine.begin() as conn:
                row = conn.execute(text(sql), params).mappings().first()
        if row is None:
            return None
        return map_row_to_user(row)

    def _write_returning(self, operation: str, sql: str, params: dict) -> User:
        user = self._write_returning_optional(operation, sql, params)
        if user is None:
            raise StoreError(f"Credential store returned no row for {operation}.")
        return user

    def _write(self, operation: str, sql: str, params: dict) -> None:
        with _translate_errors(operation):
            with self._engine.begin() as conn:
                conn.execute(text(sql), params)

    def get_user_by_id(self, *, user_id: str) -> User | None:
        sql = f"""
            SELECT {USER_COLUMNS}
            FROM public.users
            WHERE id = :user_id
            LIMIT 1
        """
        return self._fetch_one("get_user_by_id", sql, {"user_id": user_id})

    def get_user_by_email(self, *, email: str) -> User | None:
        sql = f"""
            SELECT {USER_COLUMNS}
            FROM public.users
            WHERE lower(email) = :email
            LIMIT 1
        """
        return self._fetch_one("get_user_by_email", sql, {"email": email.strip().lower()})

    def get_user_by_oauth_provider_id(self, *, provider_id: str) -> User | None:
        sql = f"""
            SELECT {USER_COLUMNS}
            FROM public.users
            WHERE google_id = :provider_id
            LIMIT 1
        """
        return self._fetch_one("get_user_by_oauth_provider_id", sql, {"provider_id": provider_id})

    def create_user(
        self,
        *,
        user_id: str,
        email: str,
        password_hash: str | None,
        oauth_provider_id: str | None,
        first_name: str,
        last_name: str,
        display_name: str | None,
        avatar_url: str | None,
        is_creator: bool,
        email_verified: bool,
        is_verified: bool,
        now: datetime,
    ) -> User:
        sql = f"""
            INSERT INTO public.users (
                id, email, password_hash, google_id, first_name, last_name, display_name,
                avatar_url, is_creator, email_verified, is_verified, created_at, updated_at
            ) VALUES (
                :id, :email, :password_hash, :google_id, :first_name, :last_name, :display_name,
                :avatar_url, :is_creator, :email_verified, :is_verified, :now, :now
            )
            RETURNING {USER_COLUMNS}
        """
        params = {
            "id": user_id,
            "email": email,
            "password_hash": password_hash,
            "google_id": oauth_provider_id,
            "first_name": first_name,
            "last_name": last_name,
            "display_name": display_name,
            "avatar_url": avatar_url,
            "is_creator": is_creator,
            "email_verified": email_verified,
            "is_verified": is_verified,
            "now": now,
        }
        return self._write_returning("create_user", sql, params)

    def update_oauth_login(
        self,
        *,
        user_id: str,
        oauth_provider_id: str,
        display_name: str | None,
        avatar_url: str | None,
        email_verified: bool,
        now: datetime,
    ) -> User:
        sql = f"""
            UPDATE public.users
            SET google_id = :google_id,
                display_name = COALESCE(:display_name, display_name),
                avatar_url = COALESCE(:avatar_url, avatar_url),
                email_verified = email_verified OR :email_verified,
                last_login = :now,
                updated_at = :now
            WHERE id = :user_id
            RETURNING {USER_COLUMNS}
        """
        params = {
            "user_id": user_id,
            "google_id": oauth_provider_id,
            "display_name": display_name,
            "avatar_url": avatar_url,
            "email_verified": email_verified,
            "now": now,
        }
        return self._write_returning("update_oauth_login", sql, params)

    def record_login(self, *, user_id: str, refresh_token: str, now: datetime) -> None:
        sql = """
            UPDATE public.users
            SET refresh_token = :refresh_token,
                last_login = :now,
                updated_at = :now
            WHERE id = :user_id
        """
        self._write("record_login", sql, {"user_id": user_id, "refresh_token": refresh_token, "now": now})

    def update_password_hash(self, *, user_id: str, password_hash: str, now: datetime) -> None:
        sql = """
            UPDATE public.users
            SET password_hash = :password_hash,
                updated_at = :now
            WHERE id = :user_id
        """
        self._write("update_password_hash", sql, {"user_id": user_id, "password_hash": password_hash, "now": now})

    def update_profile(
        self,
        *,
        user_id: str,
        first_name: str | None,
        last_name: str | None,
        display_name: str | None,
        avatar_url: str | None,
        now: datetime,
    ) -> User | None:
        sql = f"""
            UPDATE public.users
            SET first_name = COALESCE(:first_name, first_name),
                last_name = COALESCE(:last_name, last_name),
                display_name = COALESCE(:display_name, display_name),
                avatar_url = COALESCE(:avatar_url, avatar_url),
                updated_at = :now
            WHERE id = :user_id
            RETURNING {USER_COLUMNS}
        """
        params = {
            "user_id": user_id,
            "first_name": first_name,
            "last_name": last_name,
            "display_name": display_name,
            "avatar_url": avatar_url,
            "now": now,
        }
        return self._write_returning_optional("update_profile", sql, params)

    def enable_creator(self, *, user_id: str, now: datetime) -> User:
        sql = f"""
            UPDATE public.users
            SET is_creator = true,
                updated_at = :now
            WHERE id = :user_id
            RETURNING {USER_COLUMNS}
        """
        return self._write_returning("enable_creator", sql, {"user_id": user_id, "now": now})
