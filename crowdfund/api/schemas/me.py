from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from crowdfund.api.schemas.auth import CamelModel, TokensResponse


class UserProfileResponse(CamelModel):
    id: str
    email: str
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    display_name: str | None = Field(default=None, alias="displayName")
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    is_creator: bool = Field(..., alias="isCreator")
    is_verified: bool = Field(..., alias="isVerified")
    email_verified: bool = Field(..., alias="emailVerified")
    has_password: bool = Field(..., alias="hasPassword")
    is_google_connected: bool = Field(..., alias="isGoogleConnected")
    last_login: datetime | None = Field(default=None, alias="lastLogin")
    created_at: datetime = Field(..., alias="createdAt")


class MeResponse(BaseModel):
    user: UserProfileResponse


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., alias="currentPassword", min_length=1, max_length=256)
    new_password: str = Field(..., alias="newPassword", min_length=8, max_length=256)


class SetPasswordRequest(CamelModel):
    new_password: str = Field(..., alias="newPassword", min_length=8, max_length=256)


class MessageResponse(BaseModel):
    message: str


class BecomeCreatorResponse(CamelModel):
    message: str
    is_creator: bool = Field(..., alias="isCreator")
    tokens: TokensResponse


class CreatorCheckResponse(CamelModel):
    user_id: str = Field(..., alias="userId")
    is_creator: bool = Field(..., alias="isCreator")


class UpdateProfileRequest(CamelModel):
    first_name: str | None = Field(default=None, alias="firstName", max_length=100)
    last_name: str | None = Field(default=None, alias="lastName", max_length=100)
    display_name: str | None = Field(default=None, alias="displayName", max_length=100)
    avatar_url: str | None = Field(default=None, alias="avatarUrl", max_length=2048)


class UpdateProfileResponse(BaseModel):
    message: str
    user: UserProfileResponse
