"""Password reset and email verification endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_token_maintenance, get_token_manager, require_admin
from app.core.exceptions import BadRequestError, InvalidToken, NotifyError, TokenExpired
from app.core.rate_limit import rate_limit
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import (
    EmailVerificationConfirmRequest,
    MessageResponse,
    PasswordResetConfirmRequest,
    PasswordResetRequest,
    TokenStatsResponse,
)
from app.services.tokens import TokenMaintenance, TokenManager
from app.services.users import set_user_password

router = APIRouter(dependencies=[Depends(rate_limit("auth"))])
logger = logging.getLogger(__name__)


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()[:45]
    return request.client.host if request.client else ""


def _user_agent(request: Request) -> str:
    return request.headers.get("user-agent", "")[:512]


@router.post("/password-reset/request", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
def request_password_reset(
    payload: PasswordResetRequest,
    request: Request,
    manager: TokenManager = Depends(get_token_manager),
) -> MessageResponse:
    try:
        manager.request_password_reset(payload.email, request_ip=_client_ip(request), user_agent=_user_agent(request))
    except NotifyError:
        # same answer as success so delivery problems do not reveal the account exists
        logger.error("Password reset code stored but not delivered")
    return MessageResponse(message="password_reset_requested")


@router.post("/password-reset/confirm", response_model=MessageResponse)
def confirm_password_reset(
    payload: PasswordResetConfirmRequest,
    manager: TokenManager = Depends(get_token_manager),
    db: Session = Depends(get_db),
) -> MessageResponse:
    try:
        user_id = manager.verify_password_reset_code(payload.email, payload.code)
    except (InvalidToken, TokenExpired) as exc:
        raise BadRequestError("invalid_or_expired_code") from exc

    if not set_user_password(db, user_id, payload.new_password):
        raise BadRequestError("invalid_or_expired_code")
    return MessageResponse(message="password_reset_success")


@router.post("/verify-email/request", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
def request_email_verification(
    request: Request,
    current_user: User = Depends(get_current_user),
    manager: TokenManager = Depends(get_token_manager),
) -> MessageResponse:
    manager.request_email_verification(
        current_user.id,
        current_user.email,
        name=current_user.name,
        request_ip=_client_ip(request),
        user_agent=_user_agent(request),
    )
    return MessageResponse(message="verification_sent")


@router.post("/verify-email/confirm", response_model=MessageResponse)
def confirm_email_verification(
    payload: EmailVerificationConfirmRequest,
    manager: TokenManager = Depends(get_token_manager),
) -> MessageResponse:
    try:
        manager.verify_email_token(payload.token)
    except (InvalidToken, TokenExpired) as exc:
        raise BadRequestError("invalid_or_expired_token") from exc
    return MessageResponse(message="email_verified")


@router.get("/tokens/stats", response_model=TokenStatsResponse)
def token_stats(
    _: User = Depends(require_admin),
    maintenance: TokenMaintenance = Depends(get_token_maintenance),
) -> TokenStatsResponse:
    stats = maintenance.get_token_stats()
    return TokenStatsResponse(**stats.to_dict())
