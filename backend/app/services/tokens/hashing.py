"""One-way hashing and constant-time comparison of token secrets."""

from __future__ import annotations

import hashlib
import hmac


def hash_secret(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def constant_time_equal(digest_a: str, digest_b: str) -> bool:
    return hmac.compare_digest(digest_a.encode("utf-8"), digest_b.encode("utf-8"))


def secret_matches(secret: str, stored_digest: str) -> bool:
    return constant_time_equal(hash_secret(secret), stored_digest)
