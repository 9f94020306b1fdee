from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(CamelModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8, max_length=256)
    first_name: str = Field(..., alias="firstName", min_length=1, max_length=100)
    last_name: str = Field(..., alias="lastName", min_length=1, max_length=100)
    display_name: str | None = Field(default=None, alias="displayName", max_length=100)
    is_creator: bool = Field(default=False, alias="isCreator")


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=256)


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(..., alias="refreshToken", min_length=1)


class TokensResponse(CamelModel):
    access_token: str = Field(..., alias="accessToken")
    refresh_token: str = Field(..., alias="refreshToken")


class AuthTokensResponse(CamelModel):
    message: str
    tokens: TokensResponse
