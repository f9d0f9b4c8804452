"""Request and response schemas for the credential token endpoints."""

from __future__ import annotations

import unicodedata

from pydantic import BaseModel, Field, field_validator

from app.core.sanitize import clean_code, clean_email, clean_single_line


class PasswordResetRequest(BaseModel):
    email: str = Field(max_length=255)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)


class PasswordResetConfirmRequest(BaseModel):
    email: str = Field(max_length=255)
    code: str = Field(min_length=1, max_length=10)
    new_password: str = Field(min_length=8, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return clean_code(value)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        if any(unicodedata.category(ch) == "Cc" for ch in value):
            raise ValueError("password_contains_control_chars")
        if not value.strip():
            raise ValueError("password_required")
        return value


class EmailVerificationConfirmRequest(BaseModel):
    token: str = Field(min_length=16, max_length=128)

    @field_validator("token", mode="before")
    @classmethod
    def normalize_token(cls, value: str) -> str:
        return clean_single_line(value)


class MessageResponse(BaseModel):
    message: str


class TokenStatsResponse(BaseModel):
    active_tokens: dict[str, int]
    expired_tokens: int
