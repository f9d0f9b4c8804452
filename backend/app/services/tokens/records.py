"""Value types shared by the token manager, its store and its notifier."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from app.models.enums import TokenType


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


@dataclass(frozen=True)
class TokenRecord:
    id: int
    token_hash: str
    user_id: UUID
    email: str
    token_type: TokenType
    expires_at: dt.datetime
    used: bool
    created_at: dt.datetime
    request_ip: str = ""
    user_agent: str = ""

    def is_expired(self, now: dt.datetime) -> bool:
        return now > self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": str(self.user_id),
            "email": self.email,
            "type": self.token_type.value,
            "expires_at": self.expires_at.isoformat(),
            "used": self.used,
            "created_at": self.created_at.isoformat(),
            "request_ip": self.request_ip,
            "user_agent": self.user_agent,
        }


@dataclass(frozen=True)
class SecurityContext:
    """Request details shown to the user alongside a reset code."""

    request_ip: str
    user_agent: str
    request_time: dt.datetime


@dataclass(frozen=True)
class TokenStats:
    active_tokens: dict[str, int] = field(default_factory=dict)
    expired_tokens: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"active_tokens": dict(self.active_tokens), "expired_tokens": self.expired_tokens}
