"""Shared enum values used by the database models and schemas."""

from __future__ import annotations

import enum


class TokenType(str, enum.Enum):
    password_reset = "password_reset"
    email_verification = "email_verification"
    magic_link = "magic_link"


class UserRole(str, enum.Enum):
    admin = "admin"
    user = "user"
