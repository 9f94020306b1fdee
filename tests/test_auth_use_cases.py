from __future__ import annotations

from datetime import timedelta

import pytest

from crowdfund.application.dto.auth import (
    ChangePasswordInput,
    LoginLocalInput,
    RefreshSessionInput,
    RegisterUserInput,
    SetPasswordInput,
)
from crowdfund.application.dto.me import UpdateProfileInput
from crowdfund.application.use_cases.auth_common import utcnow
from crowdfund.application.use_cases.become_creator import BecomeCreatorUseCase
from crowdfund.application.use_cases.change_password import ChangePasswordUseCase, SetPasswordUseCase
from crowdfund.application.use_cases.get_me import GetMeUseCase
from crowdfund.application.use_cases.login_local import LoginLocalUseCase
from crowdfund.application.use_cases.refresh_session import RefreshSessionUseCase
from crowdfund.application.use_cases.register_user import RegisterUserUseCase
from crowdfund.application.use_cases.update_profile import UpdateProfileUseCase
from crowdfund.domain.exceptions import (
    ConflictError,
    CreatorAlreadyEnabledError,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    StoreError,
    TokenErrorKind,
    TokenExpiredError,
    TokenInvalidError,
    TokenMalformedError,
    UniqueViolationError,
    UserNotFoundError,
    ValidationError,
)


def _register_input(**overrides) -> RegisterUserInput:
    payload = {
        "email": "Bob@Example.com",
        "password": "supersecret",
        "first_name": "Bob",
        "last_name": "Smith",
    }
    payload.update(overrides)
    return RegisterUserInput(**payload)


def _register_use_case(store, hasher, token_service) -> RegisterUserUseCase:
    return RegisterUserUseCase(credential_store=store, password_hasher=hasher, token_port=token_service)


def test_register_issues_tokens_bound_to_new_user(credential_store, password_hasher, token_service):
    use_case = _register_use_case(credential_store, password_hasher, token_service)

    output = use_case.execute(_register_input())

    created = credential_store.users[output.user_id]
    assert created.email == "bob@example.com"
    assert created.password_hash == "hashed:supersecret"
    assert created.display_name == "Bob Smith"
    assert created.oauth_provider_id is None
    assert created.email_verified is False
    assert created.refresh_token == output.tokens.refresh_token

    access = token_service.verify(output.tokens.access_token, "access")
    assert access.subject_id == output.user_id
    assert access.email == "bob@example.com"
    assert access.is_creator is False
    assert token_service.verify(output.tokens.refresh_token, "refresh").subject_id == output.user_id


def test_register_keeps_explicit_display_name_and_creator_flag(credential_store, password_hasher, token_service):
    use_case = _register_use_case(credential_store, password_hasher, token_service)

    output = use_case.execute(_register_input(display_name="Bobby", is_creator=True))

    assert credential_store.users[output.user_id].display_name == "Bobby"
    assert token_service.verify(output.tokens.access_token, "access").is_creator is True


def test_register_rejects_existing_email_case_insensitively(credential_store, password_hasher, token_service):
    use_case = _register_use_case(credential_store, password_hasher, token_service)

    with pytest.raises(ConflictError):
        use_case.execute(_register_input(email="  ALICE@example.com "))


def test_register_translates_insert_race_to_email_exists(credential_store, password_hasher, token_service):
    credential_store.fail_create_with = UniqueViolationError("duplicate", constraint="users_email_key")
    use_case = _register_use_case(credential_store, password_hasher, token_service)

    with pytest.raises(EmailAlreadyExistsError):
        use_case.execute(_register_input())


@pytest.mark.parametrize(
    "overrides",
    [
        {"email": ""},
        {"email": "not-an-email"},
        {"password": "short"},
        {"first_name": "   "},
        {"last_name": ""},
    ],
)
def test_register_validates_input(overrides, credential_store, password_hasher, token_service):
    use_case = _register_use_case(credential_store, password_hasher, token_service)

    with pytest.raises(ValidationError):
        use_case.execute(_register_input(**overrides))


def test_register_propagates_store_errors(credential_store, password_hasher, token_service):
    credential_store.fail_with = StoreError("down")
    use_case = _register_use_case(credential_store, password_hasher, token_service)

    with pytest.raises(StoreError):
        use_case.execute(_register_input())


def test_login_local_issues_tokens_and_mirrors_refresh(credential_store, password_hasher, token_service):
    use_case = LoginLocalUseCase(
        credential_store=credential_store,
        password_hasher=password_hasher,
        token_port=token_service,
    )

    output = use_case.execute(LoginLocalInput(email="ALICE@example.com", password="correct-horse"))

    user = credential_store.users["user-1"]
    assert output.user_id == "user-1"
    assert user.refresh_token == output.tokens.refresh_token
    assert user.last_login is not None


@pytest.mark.parametrize(
    ("email", "password"),
    [
        ("nobody@example.com", "correct-horse"),
        ("alice@example.com", "wrong-password"),
        ("alice@example.com", ""),
    ],
)
def test_login_local_failures_share_one_message(email, password, credential_store, password_hasher, token_service):
    use_case = LoginLocalUseCase(
        credential_store=credential_store,
        password_hasher=password_hasher,
        token_port=token_service,
    )

    with pytest.raises(InvalidCredentialsError) as exc_info:
        use_case.execute(LoginLocalInput(email=email, password=password))

    assert str(exc_info.value) == "Invalid email or password."


def test_login_local_rejects_oauth_only_account(store_factory, user_factory, password_hasher, token_service):
    store = store_factory([user_factory(password_hash=None, oauth_provider_id="google-1")])
    use_case = LoginLocalUseCase(credential_store=store, password_hasher=password_hasher, token_port=token_service)

    with pytest.raises(InvalidCredentialsError) as exc_info:
        use_case.execute(LoginLocalInput(email="alice@example.com", password="correct-horse"))

    assert str(exc_info.value) == "Invalid email or password."


def test_login_local_stores_upgraded_hash(credential_store, hasher_factory, token_service):
    use_case = LoginLocalUseCase(
        credential_store=credential_store,
        password_hasher=hasher_factory(upgrade=True),
        token_port=token_service,
    )

    use_case.execute(LoginLocalInput(email="alice@example.com", password="correct-horse"))

    assert credential_store.password_updates == [("user-1", "rehashed:correct-horse")]


def test_refresh_rotates_tokens(credential_store, token_service):
    refresh_token = token_service.mint_refresh(subject_id="user-1", now=utcnow() - timedelta(minutes=5))
    use_case = RefreshSessionUseCase(credential_store=credential_store, token_port=token_service)

    output = use_case.execute(RefreshSessionInput(refresh_token=refresh_token))

    assert output.tokens.refresh_token != refresh_token
    assert credential_store.users["user-1"].refresh_token == output.tokens.refresh_token
    assert token_service.verify(output.tokens.access_token, "access").subject_id == "user-1"


def test_refresh_with_expired_token_reports_expired_kind(credential_store, token_service):
    expired = token_service.mint_refresh(subject_id="user-1", now=utcnow() - timedelta(days=8))
    use_case = RefreshSessionUseCase(credential_store=credential_store, token_port=token_service)

    with pytest.raises(TokenExpiredError) as exc_info:
        use_case.execute(RefreshSessionInput(refresh_token=expired))

    assert exc_info.value.kind is TokenErrorKind.EXPIRED


def test_refresh_with_malformed_or_empty_token(credential_store, token_service):
    use_case = RefreshSessionUseCase(credential_store=credential_store, token_port=token_service)

    with pytest.raises(TokenMalformedError):
        use_case.execute(RefreshSessionInput(refresh_token="not-a-jwt"))
    with pytest.raises(TokenMalformedError):
        use_case.execute(RefreshSessionInput(refresh_token="   "))


def test_refresh_rejects_access_token(credential_store, token_service):
    access = token_service.mint_access(subject_id="user-1", email="alice@example.com", is_creator=False)
    use_case = RefreshSessionUseCase(credential_store=credential_store, token_port=token_service)

    with pytest.raises(TokenInvalidError):
        use_case.execute(RefreshSessionInput(refresh_token=access))


def test_refresh_for_deleted_user(store_factory, token_service):
    refresh_token = token_service.mint_refresh(subject_id="ghost")
    use_case = RefreshSessionUseCase(credential_store=store_factory(), token_port=token_service)

    with pytest.raises(UserNotFoundError):
        use_case.execute(RefreshSessionInput(refresh_token=refresh_token))


def test_get_me_returns_profile(credential_store):
    output = GetMeUseCase(credential_store=credential_store).execute(user_id="user-1")

    assert output.email == "alice@example.com"
    assert output.has_password is True
    assert output.has_oauth_identity is False


def test_get_me_for_missing_user(store_factory):
    with pytest.raises(UserNotFoundError):
        GetMeUseCase(credential_store=store_factory()).execute(user_id="user-1")


def test_change_password_requires_current_password(credential_store, password_hasher):
    use_case = ChangePasswordUseCase(credential_store=credential_store, password_hasher=password_hasher)

    with pytest.raises(ValidationError):
        use_case.execute(
            ChangePasswordInput(user_id="user-1", current_password="wrong", new_password="new-password")
        )

    use_case.execute(
        ChangePasswordInput(user_id="user-1", current_password="correct-horse", new_password="new-password")
    )
    assert credential_store.users["user-1"].password_hash == "hashed:new-password"


def test_change_password_rejects_oauth_only_account(store_factory, user_factory, password_hasher):
    store = store_factory([user_factory(password_hash=None, oauth_provider_id="google-1")])
    use_case = ChangePasswordUseCase(credential_store=store, password_hasher=password_hasher)

    with pytest.raises(ValidationError):
        use_case.execute(ChangePasswordInput(user_id="user-1", current_password="x", new_password="new-password"))


def test_set_password_only_for_accounts_without_one(store_factory, user_factory, password_hasher):
    store = store_factory([user_factory(password_hash=None, oauth_provider_id="google-1")])
    use_case = SetPasswordUseCase(credential_store=store, password_hasher=password_hasher)

    use_case.execute(SetPasswordInput(user_id="user-1", new_password="new-password"))
    assert store.users["user-1"].password_hash == "hashed:new-password"

    with pytest.raises(ValidationError):
        use_case.execute(SetPasswordInput(user_id="user-1", new_password="another-password"))


def test_become_creator_reissues_tokens_with_creator_claim(credential_store, token_service):
    use_case = BecomeCreatorUseCase(credential_store=credential_store, token_port=token_service)

    output = use_case.execute(user_id="user-1")

    assert credential_store.users["user-1"].is_creator is True
    assert token_service.verify(output.tokens.access_token, "access").is_creator is True
    with pytest.raises(CreatorAlreadyEnabledError):
        use_case.execute(user_id="user-1")


def test_update_profile_changes_only_supplied_fields(credential_store):
    before = credential_store.users["user-1"]

    output = UpdateProfileUseCase(credential_store=credential_store).execute(
        UpdateProfileInput(user_id="user-1", display_name="  Ally  ", avatar_url="https://cdn.example.com/a.png")
    )

    after = credential_store.users["user-1"]
    assert output.display_name == "Ally"
    assert output.avatar_url == "https://cdn.example.com/a.png"
    assert after.first_name == "Alice"
    assert after.last_name == "Doe"
    assert after.updated_at > before.updated_at


@pytest.mark.parametrize(
    "overrides",
    [
        {},
        {"first_name": "   "},
        {"last_name": ""},
        {"display_name": " "},
        {"avatar_url": "not-a-url"},
        {"avatar_url": "javascript:alert(1)"},
    ],
)
def test_update_profile_validates_input(overrides, credential_store):
    use_case = UpdateProfileUseCase(credential_store=credential_store)

    with pytest.raises(ValidationError):
        use_case.execute(UpdateProfileInput(user_id="user-1", **overrides))

    assert credential_store.users["user-1"].display_name == "Alice Doe"


def test_update_profile_for_missing_user(store_factory):
    with pytest.raises(UserNotFoundError):
        UpdateProfileUseCase(credential_store=store_factory()).execute(
            UpdateProfileInput(user_id="user-1", first_name="Ghost")
        )
