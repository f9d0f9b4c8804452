"""Custom exceptions for credential token flows and the API layer."""

from __future__ import annotations

from typing import Optional, Dict, Any


class TokenServiceException(Exception):
    """Base exception for all application errors."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


# ===== TOKEN FLOW EXCEPTIONS =====


class InvalidEmail(TokenServiceException):
    """Raised when an address fails syntax checks or targets an internal domain."""

    def __init__(self, message: str = "invalid_email"):
        super().__init__(message, error_code="INVALID_EMAIL", status_code=400)


class InvalidToken(TokenServiceException):
    """Raised when no usable record matches or the secret does not match.

    Both cases share this type so callers cannot tell them apart.
    """

    def __init__(self, message: str = "invalid_token"):
        super().__init__(message, error_code="INVALID_TOKEN", status_code=400)


class TokenExpired(TokenServiceException):
    """Raised when the matching record is past its expiry."""

    def __init__(self, message: str = "token_expired"):
        super().__init__(message, error_code="TOKEN_EXPIRED", status_code=400)


class RateLimitExceeded(TokenServiceException):
    """Raised when an identity exceeds its issuance allowance."""

    def __init__(self, *, retry_after: int, limit: int, window_seconds: int):
        headers = {
            "Retry-After": str(retry_after),
            "X-RateLimit-Limit": str(limit),
            "X-RateLimit-Window": str(window_seconds),
        }
        super().__init__(
            "rate_limit_exceeded",
            error_code="RATE_LIMIT",
            details={"retry_after": retry_after, "limit": limit, "window_seconds": window_seconds},
            status_code=429,
            headers=headers,
        )


class StoreError(TokenServiceException):
    """Raised when the token store fails. Safe for the caller to retry."""

    retryable = True

    def __init__(self, message: str = "store_unavailable", *, operation: Optional[str] = None):
        details = {"operation": operation} if operation else {}
        super().__init__(message, error_code="STORE_ERROR", details=details, status_code=503)


class NotifyError(TokenServiceException):
    """Raised when delivery fails after the token was persisted."""

    def __init__(self, message: str = "notification_failed", *, channel: Optional[str] = None):
        details = {"channel": channel} if channel else {}
        super().__init__(message, error_code="NOTIFY_ERROR", details=details, status_code=502)


class GenerationError(TokenServiceException):
    """Raised on bad generator parameters or an unusable entropy source."""

    def __init__(self, message: str = "generation_failed"):
        super().__init__(message, error_code="GENERATION_ERROR", status_code=500)


# ===== API EXCEPTIONS =====


class BadRequestError(TokenServiceException):
    """Raised when request is invalid."""

    def __init__(self, message: str = "bad_request", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="BAD_REQUEST", details=details, status_code=400)


class AuthenticationException(TokenServiceException):
    """Base exception for authentication errors."""


class ExpiredTokenError(AuthenticationException):
    """Raised when a bearer token has expired."""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message, error_code="EXPIRED_TOKEN", status_code=401)


class InsufficientPermissionsError(AuthenticationException):
    """Raised when user lacks required permissions."""

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, error_code="INSUFFICIENT_PERMISSIONS", status_code=403)
