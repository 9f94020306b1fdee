from __future__ import annotations

from fastapi import APIRouter, Depends

from crowdfund.api.deps import (
    get_become_creator_use_case,
    get_change_password_use_case,
    get_get_me_use_case,
    get_set_password_use_case,
    get_update_profile_use_case,
    require_creator_identity,
    require_identity,
)
from crowdfund.api.errors import ApiError
from crowdfund.api.schemas.auth import TokensResponse
from crowdfund.api.schemas.me import (
    BecomeCreatorResponse,
    ChangePasswordRequest,
    CreatorCheckResponse,
    MeResponse,
    MessageResponse,
    SetPasswordRequest,
    UpdateProfileRequest,
    UpdateProfileResponse,
    UserProfileResponse,
)
from crowdfund.application.dto.auth import AuthenticatedIdentity, ChangePasswordInput, SetPasswordInput
from crowdfund.application.dto.me import MeOutput, UpdateProfileInput
from crowdfund.application.use_cases.become_creator import BecomeCreatorUseCase
from crowdfund.application.use_cases.change_password import ChangePasswordUseCase, SetPasswordUseCase
from crowdfund.application.use_cases.get_me import GetMeUseCase
from crowdfund.application.use_cases.update_profile import UpdateProfileUseCase
from crowdfund.domain.exceptions import CreatorAlreadyEnabledError, UserNotFoundError, ValidationError


router = APIRouter()


def _profile_response(output: MeOutput) -> UserProfileResponse:
    return UserProfileResponse(
        id=output.user_id,
        email=output.email,
        first_name=output.first_name,
        last_name=output.last_name,
        display_name=output.display_name,
        avatar_url=output.avatar_url,
        is_creator=output.is_creator,
        is_verified=output.is_verified,
        email_verified=output.email_verified,
        has_password=output.has_password,
        is_google_connected=output.has_oauth_identity,
        last_login=output.last_login,
        created_at=output.created_at,
    )


@router.get("/api/user/me", response_model=MeResponse)
def get_me(
    identity: AuthenticatedIdentity = Depends(require_identity),
    use_case: GetMeUseCase = Depends(get_get_me_use_case),
):
    try:
        output = use_case.execute(user_id=identity.user_id)
    except UserNotFoundError as exc:
        raise ApiError(404, "USER_NOT_FOUND", "User not found") from exc

    return MeResponse(user=_profile_response(output))


@router.put("/api/user/me", response_model=UpdateProfileResponse)
def update_me(
    req: UpdateProfileRequest,
    identity: AuthenticatedIdentity = Depends(require_identity),
    use_case: UpdateProfileUseCase = Depends(get_update_profile_use_case),
):
    try:
        output = use_case.execute(
            UpdateProfileInput(
                user_id=identity.user_id,
                first_name=req.first_name,
                last_name=req.last_name,
                display_name=req.display_name,
                avatar_url=req.avatar_url,
            )
        )
    except UserNotFoundError as exc:
        raise ApiError(404, "USER_NOT_FOUND", "User not found") from exc
    except ValidationError as exc:
        raise ApiError(400, "VALIDATION_ERROR", str(exc)) from exc

    return UpdateProfileResponse(message="Profile updated successfully", user=_profile_response(output))


@router.put("/api/user/me/password", response_model=MessageResponse)
def change_password(
    req: ChangePasswordRequest,
    identity: AuthenticatedIdentity = Depends(require_identity),
    use_case: ChangePasswordUseCase = Depends(get_change_password_use_case),
):
    try:
        use_case.execute(
            ChangePasswordInput(
                user_id=identity.user_id,
                current_password=req.current_password,
                new_password=req.new_password,
            )
        )
    except UserNotFoundError as exc:
        raise ApiError(404, "USER_NOT_FOUND", "User not found") from exc
    except ValidationError as exc:
        raise ApiError(400, "INVALID_PASSWORD", str(exc), error="Invalid Password") from exc

    return MessageResponse(message="Password updated successfully")


@router.put("/api/user/me/set-password", response_model=MessageResponse)
def set_password(
    req: SetPasswordRequest,
    identity: AuthenticatedIdentity = Depends(require_identity),
    use_case: SetPasswordUseCase = Depends(get_set_password_use_case),
):
    try:
        use_case.execute(SetPasswordInput(user_id=identity.user_id, new_password=req.new_password))
    except UserNotFoundError as exc:
        raise ApiError(404, "USER_NOT_FOUND", "User not found") from exc
    except ValidationError as exc:
        raise ApiError(400, "PASSWORD_ALREADY_SET", str(exc), error="Bad Request") from exc

    return MessageResponse(message="Password set successfully")


@router.post("/api/user/me/become-creator", response_model=BecomeCreatorResponse)
def become_creator(
    identity: AuthenticatedIdentity = Depends(require_identity),
    use_case: BecomeCreatorUseCase = Depends(get_become_creator_use_case),
):
    try:
        output = use_case.execute(user_id=identity.user_id)
    except UserNotFoundError as exc:
        raise ApiError(404, "USER_NOT_FOUND", "User not found") from exc
    except CreatorAlreadyEnabledError as exc:
        raise ApiError(400, "ALREADY_CREATOR", str(exc), error="Bad Request") from exc

    return BecomeCreatorResponse(
        message="Successfully upgraded to creator account",
        is_creator=True,
        tokens=TokensResponse(
            access_token=output.tokens.access_token,
            refresh_token=output.tokens.refresh_token,
        ),
    )


@router.get("/api/user/creator-check", response_model=CreatorCheckResponse)
def creator_check(identity: AuthenticatedIdentity = Depends(require_creator_identity)):
    return CreatorCheckResponse(user_id=identity.user_id, is_creator=identity.is_creator)
