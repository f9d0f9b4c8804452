"""FastAPI dependencies that assemble token services per request."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.exceptions import AuthenticationException, ExpiredTokenError, InsufficientPermissionsError
from app.core.security import ACCESS_TOKEN_TYPE, decode_token
from app.db.session import get_db
from app.models.enums import UserRole
from app.models.user import User
from app.services.email import Notifier
from app.services.tokens import SqlAlchemyTokenStore, TokenMaintenance, TokenManager, TokenPolicy


def _extract_bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization", "")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    cleaned = token.strip()
    return cleaned or None


def _invalid_bearer() -> AuthenticationException:
    return AuthenticationException("invalid_token", error_code="INVALID_TOKEN", status_code=401)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = _extract_bearer_token(request)
    if not token:
        raise AuthenticationException("not_authenticated", error_code="NOT_AUTHENTICATED", status_code=401)

    try:
        payload = decode_token(token)
    except ValueError as exc:
        if str(exc) == "expired_token":
            raise ExpiredTokenError("access_token_expired") from exc
        raise _invalid_bearer() from exc
    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise _invalid_bearer()
    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError as exc:
        raise _invalid_bearer() from exc

    user = db.get(User, user_id)
    if not user:
        raise AuthenticationException("user_not_found", error_code="USER_NOT_FOUND", status_code=401)
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.admin:
        raise InsufficientPermissionsError("forbidden")
    return user


def get_token_policy(request: Request) -> TokenPolicy:
    return request.app.state.token_policy


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_token_store(db: Session = Depends(get_db)) -> SqlAlchemyTokenStore:
    return SqlAlchemyTokenStore(db)


def get_token_manager(
    request: Request,
    store: SqlAlchemyTokenStore = Depends(get_token_store),
    notifier: Notifier = Depends(get_notifier),
    policy: TokenPolicy = Depends(get_token_policy),
) -> TokenManager:
    return TokenManager(store, notifier, url_builder=request.app.state.url_builder, policy=policy)


def get_token_maintenance(
    store: SqlAlchemyTokenStore = Depends(get_token_store),
    policy: TokenPolicy = Depends(get_token_policy),
) -> TokenMaintenance:
    return TokenMaintenance(store, policy=policy)
