"""Credential token lifecycle: generation, hashing, limits, issuance and verification."""

from app.services.tokens.generator import generate_numeric_code, generate_opaque_token
from app.services.tokens.hashing import constant_time_equal, hash_secret, secret_matches
from app.services.tokens.maintenance import TokenMaintenance
from app.services.tokens.manager import TokenManager
from app.services.tokens.memory_store import InMemoryTokenStore
from app.services.tokens.policy import TokenPolicy
from app.services.tokens.rate_limiter import IssuanceRateLimiter
from app.services.tokens.records import SecurityContext, TokenRecord, TokenStats
from app.services.tokens.store import SqlAlchemyTokenStore, TokenStore
from app.services.tokens.validation import validate_email_address

__all__ = [
    "InMemoryTokenStore",
    "IssuanceRateLimiter",
    "SecurityContext",
    "SqlAlchemyTokenStore",
    "TokenMaintenance",
    "TokenManager",
    "TokenPolicy",
    "TokenRecord",
    "TokenStats",
    "TokenStore",
    "constant_time_equal",
    "generate_numeric_code",
    "generate_opaque_token",
    "hash_secret",
    "secret_matches",
    "validate_email_address",
]
