"""Pydantic request/response schemas for auth and operator management."""

from pydantic import BaseModel, Field


class TelegramAuthRequest(BaseModel):
    init_data: str = Field(..., min_length=1, description="Raw Telegram WebApp initData")


class AdminLoginRequest(BaseModel):
    password: str


class OperatorLoginRequest(BaseModel):
    login: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    role: str
    subject: str


class OperatorCreateRequest(BaseModel):
    login: str = Field(..., min_length=3, max_length=64, pattern=r"^[a-zA-Z0-9_.-]+$")
    password: str = Field(..., min_length=8, max_length=128)
    display_name: str | None = Field(None, max_length=128)


class OperatorUpdateRequest(BaseModel):
    is_active: bool | None = None
    display_name: str | None = Field(None, max_length=128)
    password: str | None = Field(None, min_length=8, max_length=128)


class OperatorInfo(BaseModel):
    id: str
    login: str
    display_name: str | None
    is_active: bool
    created_at: str
