"""Lifetimes and limits applied to credential tokens."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass

from app.core.config import Settings


@dataclass(frozen=True)
class TokenPolicy:
    code_length: int = 6
    password_reset_ttl: dt.timedelta = dt.timedelta(minutes=15)
    email_verification_ttl: dt.timedelta = dt.timedelta(hours=48)
    rate_limit_max_requests: int = 3
    rate_limit_window: dt.timedelta = dt.timedelta(hours=1)
    used_retention: dt.timedelta = dt.timedelta(days=7)

    @classmethod
    def from_settings(cls, config: Settings) -> TokenPolicy:
        return cls(
            code_length=config.PASSWORD_RESET_CODE_LENGTH,
            password_reset_ttl=dt.timedelta(minutes=config.PASSWORD_RESET_CODE_EXPIRE_MINUTES),
            email_verification_ttl=dt.timedelta(hours=config.EMAIL_VERIFICATION_EXPIRE_HOURS),
            rate_limit_max_requests=config.TOKEN_RATE_LIMIT_MAX_REQUESTS,
            rate_limit_window=dt.timedelta(seconds=config.TOKEN_RATE_LIMIT_WINDOW_SECONDS),
            used_retention=dt.timedelta(days=config.USED_TOKEN_RETENTION_DAYS),
        )
