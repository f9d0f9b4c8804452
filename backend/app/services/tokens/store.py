"""Persistence contract for token records and its SQLAlchemy implementation."""

from __future__ import annotations

import datetime as dt
import logging
from contextlib import contextmanager
from typing import Iterator, Protocol
from uuid import UUID

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import StoreError
from app.models.email_token import EmailToken
from app.models.enums import TokenType
from app.models.user import User
from app.services.tokens.records import TokenRecord

logger = logging.getLogger(__name__)


class TokenStore(Protocol):
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
    ) -> TokenRecord: ...

    def find_latest_unused_for_email(self, email: str, token_type: TokenType) -> TokenRecord | None: ...

    def find_unused_by_hash(self, token_hash: str, token_type: TokenType) -> TokenRecord | None: ...

    def mark_used(self, token_id: int) -> bool:
        """Flip ``used`` to true. Return ``False`` if another caller already did."""
        ...

    def delete_stale(self, *, now: dt.datetime, used_before: dt.datetime) -> int: ...

    def count_since(self, email: str, token_type: TokenType, since: dt.datetime) -> int: ...

    def resolve_user_id(self, email: str) -> UUID | None: ...

    def set_email_verified(self, user_id: UUID, email: str, verified_at: dt.datetime) -> bool:
        """Set the verified timestamp only if unset and the account still holds ``email``.

        Return whether it was set now.
        """
        ...

    def count_active_by_type(self, now: dt.datetime) -> dict[str, int]: ...

    def count_expired(self, now: dt.datetime) -> int: ...


def _as_utc(value: dt.datetime) -> dt.datetime:
    # SQLite hands back naive datetimes; everything is written in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


def _to_record(row: EmailToken) -> TokenRecord:
    return TokenRecord(
        id=row.id,
        token_hash=row.token,
        user_id=row.user_id,
        email=row.email,
        token_type=TokenType(row.type),
        expires_at=_as_utc(row.expires_at),
        used=bool(row.used),
        created_at=_as_utc(row.created_at),
        request_ip=row.request_ip or "",
        user_agent=row.user_agent or "",
    )


class SqlAlchemyTokenStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Token store operation failed: %s", operation)
            raise StoreError(operation=operation) from exc

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
        with self._guard("create_token"):
            row = EmailToken(
                token=token_hash,
                user_id=user_id,
                email=email,
                type=token_type.value,
                expires_at=expires_at,
                used=False,
                created_at=created_at,
                request_ip=request_ip or None,
                user_agent=user_agent or None,
            )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            return _to_record(row)

    def find_latest_unused_for_email(self, email: str, token_type: TokenType) -> TokenRecord | None:
        with self._guard("find_latest_unused_for_email"):
            row = (
                self.db.query(EmailToken)
                .filter(
                    EmailToken.email == email,
                    EmailToken.type == token_type.value,
                    EmailToken.used.is_(False),
                )
                .order_by(EmailToken.created_at.desc(), EmailToken.id.desc())
                .first()
            )
        return _to_record(row) if row else None

    def find_unused_by_hash(self, token_hash: str, token_type: TokenType) -> TokenRecord | None:
        with self._guard("find_unused_by_hash"):
            row = (
                self.db.query(EmailToken)
                .filter(
                    EmailToken.token == token_hash,
                    EmailToken.type == token_type.value,
                    EmailToken.used.is_(False),
                )
                .first()
            )
        return _to_record(row) if row else None

    def mark_used(self, token_id: int) -> bool:
        # conditional update: of two racing verifications only one matches used = false
        with self._guard("mark_used"):
            updated = (
                self.db.query(EmailToken)
                .filter(EmailToken.id == token_id, EmailToken.used.is_(False))
                .update({EmailToken.used: True}, synchronize_session=False)
            )
            self.db.commit()
        return updated == 1

    def delete_stale(self, *, now: dt.datetime, used_before: dt.datetime) -> int:
        with self._guard("delete_stale"):
            deleted = (
                self.db.query(EmailToken)
                .filter(
                    or_(
                        EmailToken.expires_at < now,
                        and_(EmailToken.used.is_(True), EmailToken.created_at < used_before),
                    )
                )
                .delete(synchronize_session=False)
            )
            self.db.commit()
        return deleted

    def count_since(self, email: str, token_type: TokenType, since: dt.datetime) -> int:
        with self._guard("count_since"):
            count = (
                self.db.query(func.count(EmailToken.id))
                .filter(
                    EmailToken.email == email,
                    EmailToken.type == token_type.value,
                    EmailToken.created_at > since,
                )
                .scalar()
            )
        return int(count or 0)

    def resolve_user_id(self, email: str) -> UUID | None:
        with self._guard("resolve_user_id"):
            return self.db.query(User.id).filter(User.email == email).scalar()

    def set_email_verified(self, user_id: UUID, email: str, verified_at: dt.datetime) -> bool:
        with self._guard("set_email_verified"):
            updated = (
                self.db.query(User)
                .filter(User.id == user_id, User.email == email, User.email_verified_at.is_(None))
                .update({User.email_verified_at: verified_at}, synchronize_session=False)
            )
            self.db.commit()
        return updated == 1

    def count_active_by_type(self, now: dt.datetime) -> dict[str, int]:
        with self._guard("count_active_by_type"):
            rows = (
                self.db.query(EmailToken.type, func.count(EmailToken.id))
                .filter(EmailToken.expires_at > now, EmailToken.used.is_(False))
                .group_by(EmailToken.type)
                .all()
            )
        return {token_type: int(count) for token_type, count in rows}

    def count_expired(self, now: dt.datetime) -> int:
        with self._guard("count_expired"):
            count = self.db.query(func.count(EmailToken.id)).filter(EmailToken.expires_at <= now).scalar()
        return int(count or 0)
