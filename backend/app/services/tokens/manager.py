"""Issuance and verification of password-reset codes and email-verification links.

Every flow entry point either returns normally or raises exactly one
:class:`~app.core.exceptions.TokenServiceException` subclass. Nothing is
retried here; the caller decides whether a ``StoreError`` is worth another
attempt.

Password reset
    ``request_password_reset`` validates the address, checks the per-address
    issuance limit, generates a numeric code, stores only its hash against the
    account that owns the address and hands the plaintext code to the
    notifier. Unknown addresses get no record and no message.
    ``verify_password_reset_code`` checks the newest unused code for the
    address and consumes it on success.

Email verification
    ``request_email_verification`` only issues for the address the account
    currently holds; it stores the hash of an opaque token and sends a link.
    ``verify_email_token`` looks the record up by that hash, consumes it and
    stamps the user's ``email_verified_at`` if still unset and the account
    still holds the address the token was sent to.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Callable
from uuid import UUID

from app.core.exceptions import BadRequestError, InvalidToken, NotifyError, TokenExpired
from app.core.logging import mask_email
from app.models.enums import TokenType
from app.services.email import Notifier
from app.services.tokens.generator import generate_numeric_code, generate_opaque_token
from app.services.tokens.hashing import constant_time_equal, hash_secret, secret_matches
from app.services.tokens.policy import TokenPolicy
from app.services.tokens.rate_limiter import IssuanceRateLimiter
from app.services.tokens.records import SecurityContext, TokenRecord, utcnow
from app.services.tokens.store import TokenStore
from app.services.tokens.validation import validate_email_address

logger = logging.getLogger(__name__)

UrlBuilder = Callable[[str], str]
Clock = Callable[[], dt.datetime]


class TokenManager:
    def __init__(
        self,
        store: TokenStore,
        notifier: Notifier,
        *,
        url_builder: UrlBuilder,
        policy: TokenPolicy | None = None,
        rate_limiter: IssuanceRateLimiter | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.url_builder = url_builder
        self.policy = policy or TokenPolicy()
        self.rate_limiter = rate_limiter or IssuanceRateLimiter(
            store,
            max_requests=self.policy.rate_limit_max_requests,
            window=self.policy.rate_limit_window,
        )
        self.clock = clock

    # ----- password reset -----

    def request_password_reset(self, email: str, *, request_ip: str = "", user_agent: str = "") -> None:
        address = validate_email_address(email)
        now = self.clock()
        self.rate_limiter.check(address, TokenType.password_reset, now=now)

        code = generate_numeric_code(self.policy.code_length)
        code_hash = hash_secret(code)

        user_id = self.store.resolve_user_id(address)
        if user_id is None:
            logger.info("Password reset requested for unknown address: %s", mask_email(address))
            return

        self.store.create_token(
            token_hash=code_hash,
            user_id=user_id,
            email=address,
            token_type=TokenType.password_reset,
            expires_at=now + self.policy.password_reset_ttl,
            created_at=now,
            request_ip=request_ip,
            user_agent=user_agent,
        )
        logger.info("Password reset code issued: %s", mask_email(address))

        context = SecurityContext(request_ip=request_ip, user_agent=user_agent, request_time=now)
        self._deliver(
            "password_reset",
            address,
            lambda: self.notifier.send_password_reset_code(address, code, context),
        )

    def verify_password_reset_code(self, email: str, code: str) -> UUID:
        address = validate_email_address(email)
        if not code:
            raise InvalidToken()

        record = self.store.find_latest_unused_for_email(address, TokenType.password_reset)
        if record is None:
            logger.warning("Password reset verification failed: no active code (%s)", mask_email(address))
            raise InvalidToken()
        if record.is_expired(self.clock()):
            logger.warning("Password reset verification failed: expired code (%s)", mask_email(address))
            raise TokenExpired()
        if not secret_matches(code, record.token_hash):
            logger.warning("Password reset verification failed: code mismatch (%s)", mask_email(address))
            raise InvalidToken()

        self._consume(record)
        logger.info("Password reset code verified: %s", mask_email(address))
        return record.user_id

    # ----- email verification -----

    def request_email_verification(
        self,
        user_id: UUID,
        email: str,
        *,
        name: str = "",
        request_ip: str = "",
        user_agent: str = "",
    ) -> None:
        address = validate_email_address(email)
        if user_id is None:
            raise BadRequestError("user_id_required")
        if self.store.resolve_user_id(address) != user_id:
            logger.warning("Email verification refused: address not held by account (%s)", mask_email(address))
            raise BadRequestError("email_not_owned")

        now = self.clock()
        token = generate_opaque_token()
        self.store.create_token(
            token_hash=hash_secret(token),
            user_id=user_id,
            email=address,
            token_type=TokenType.email_verification,
            expires_at=now + self.policy.email_verification_ttl,
            created_at=now,
            request_ip=request_ip,
            user_agent=user_agent,
        )
        logger.info("Email verification token issued: %s", mask_email(address))

        verification_url = self.url_builder(token)
        self._deliver(
            "email_verification",
            address,
            lambda: self.notifier.send_email_verification(address, name, verification_url),
        )

    def verify_email_token(self, token: str) -> UUID:
        if not token:
            raise InvalidToken()

        token_hash = hash_secret(token)
        record = self.store.find_unused_by_hash(token_hash, TokenType.email_verification)
        if record is None or not constant_time_equal(token_hash, record.token_hash):
            logger.warning("Email verification failed: invalid or used token")
            raise InvalidToken()
        now = self.clock()
        if record.is_expired(now):
            logger.warning("Email verification failed: expired token (%s)", mask_email(record.email))
            raise TokenExpired()

        self._consume(record)
        if self.store.set_email_verified(record.user_id, record.email, now):
            logger.info("Email verified: %s", mask_email(record.email))
        else:
            logger.info("Email verification token consumed; already verified or address changed (%s)", mask_email(record.email))
        return record.user_id

    # ----- helpers -----

    def _consume(self, record: TokenRecord) -> None:
        if not self.store.mark_used(record.id):
            # a concurrent verification flipped it first
            logger.warning("Token %s already consumed", record.id)
            raise InvalidToken()

    def _deliver(self, channel: str, address: str, send: Callable[[], bool]) -> None:
        # the persisted token stays valid whatever happens here
        try:
            delivered = send()
        except Exception as exc:
            logger.exception("Notifier raised while sending %s to %s", channel, mask_email(address))
            raise NotifyError(channel=channel) from exc
        if not delivered:
            logger.warning("Notifier could not send %s to %s", channel, mask_email(address))
            raise NotifyError(channel=channel)
