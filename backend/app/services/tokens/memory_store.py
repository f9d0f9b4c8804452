"""Thread-safe in-process token store for tests and local development."""

from __future__ import annotations

import datetime as dt
import itertools
from dataclasses import dataclass, replace
from threading import Lock
from uuid import UUID, uuid4

from app.models.enums import TokenType
from app.services.tokens.records import TokenRecord


@dataclass
class StoredUser:
    id: UUID
    email: str
    name: str = ""
    email_verified_at: dt.datetime | None = None


class InMemoryTokenStore:
    def __init__(self) -> None:
        self._lock = Lock()
        self._ids = itertools.count(1)
        self._tokens: dict[int, TokenRecord] = {}
        self._users: dict[UUID, StoredUser] = {}

    def add_user(self, email: str, *, name: str = "", user_id: UUID | None = None) -> UUID:
        user = StoredUser(id=user_id or uuid4(), email=email.lower(), name=name)
        with self._lock:
            self._users[user.id] = user
        return user.id

    def get_user(self, user_id: UUID) -> StoredUser | None:
        with self._lock:
            return self._users.get(user_id)

    def all_tokens(self) -> list[TokenRecord]:
        with self._lock:
            return sorted(self._tokens.values(), key=lambda record: record.id)

    def create_token(
        self,
        *,
        token_hash: str,
        user_id: UUID,
        email: str,
        token_type: TokenType,
        expires_at: dt.datetime,
        created_at: dt.datetime,
        request_ip: str = "",
        user_agent: str = "",
    ) -> TokenRecord:
        if expires_at <= created_at:
            raise ValueError("expires_at_must_follow_created_at")
        with self._lock:
            record = TokenRecord(
                id=next(self._ids),
                token_hash=token_hash,
                user_id=user_id,
                email=email,
                token_type=token_type,
                expires_at=expires_at,
                used=False,
                created_at=created_at,
                request_ip=request_ip,
                user_agent=user_agent,
            )
            self._tokens[record.id] = record
            return record

    def find_latest_unused_for_email(self, email: str, token_type: TokenType) -> TokenRecord | None:
        with self._lock:
            matches = [
                record
                for record in self._tokens.values()
                if record.email == email and record.token_type == token_type and not record.used
            ]
        if not matches:
            return None
        return max(matches, key=lambda record: (record.created_at, record.id))

    def find_unused_by_hash(self, token_hash: str, token_type: TokenType) -> TokenRecord | None:
        with self._lock:
            for record in self._tokens.values():
                if record.token_hash == token_hash and record.token_type == token_type and not record.used:
                    return record
        return None

    def mark_used(self, token_id: int) -> bool:
        with self._lock:
            record = self._tokens.get(token_id)
            if record is None or record.used:
                return False
            self._tokens[token_id] = replace(record, used=True)
            return True

    def delete_stale(self, *, now: dt.datetime, used_before: dt.datetime) -> int:
        with self._lock:
            stale = [
                record.id
                for record in self._tokens.values()
                if record.expires_at < now or (record.used and record.created_at < used_before)
            ]
            for token_id in stale:
                del self._tokens[token_id]
        return len(stale)

    def count_since(self, email: str, token_type: TokenType, since: dt.datetime) -> int:
        with self._lock:
            return sum(
                1
                for record in self._tokens.values()
                if record.email == email and record.token_type == token_type and record.created_at > since
            )

    def resolve_user_id(self, email: str) -> UUID | None:
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return user.id
        return None

    def set_email_verified(self, user_id: UUID, email: str, verified_at: dt.datetime) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if user is None or user.email != email or user.email_verified_at is not None:
                return False
            user.email_verified_at = verified_at
            return True

    def count_active_by_type(self, now: dt.datetime) -> dict[str, int]:
        counts: dict[str, int] = {}
        with self._lock:
            for record in self._tokens.values():
                if record.expires_at > now and not record.used:
                    counts[record.token_type.value] = counts.get(record.token_type.value, 0) + 1
        return counts

    def count_expired(self, now: dt.datetime) -> int:
        with self._lock:
            return sum(1 for record in self._tokens.values() if record.expires_at <= now)
