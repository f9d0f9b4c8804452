from __future__ import annotations

from app.services.tokens.hashing import constant_time_equal, hash_secret, secret_matches


def test_hash_is_deterministic_fixed_size_hex() -> None:
    digest = hash_secret("123456")
    assert digest == hash_secret("123456")
    assert len(digest) == 64
    int(digest, 16)


def test_hash_never_contains_the_secret() -> None:
    assert "483920" not in hash_secret("483920")


def test_distinct_secrets_hash_differently() -> None:
    digests = {hash_secret(f"{value:06d}") for value in range(500)}
    assert len(digests) == 500


def test_constant_time_equal_agrees_with_hash_equality() -> None:
    a = hash_secret("alpha")
    b = hash_secret("alpha")
    c = hash_secret("beta")
    assert constant_time_equal(a, b) is True
    assert constant_time_equal(a, c) is False
    assert constant_time_equal(a, a[:-1]) is False


def test_secret_matches_uses_stored_digest() -> None:
    stored = hash_secret("654321")
    assert secret_matches("654321", stored)
    assert not secret_matches("654320", stored)
