"""User lookups and password updates used by the auth router."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.logging import mask_email
from app.core.security import hash_password
from app.models.user import User

logger = logging.getLogger(__name__)


def set_user_password(db: Session, user_id: UUID, new_password: str) -> User | None:
    user = db.get(User, user_id)
    if not user:
        logger.warning("Password update skipped: user not found")
        return None
    user.password_hash = hash_password(new_password)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Password updated: %s", mask_email(user.email))
    return user
