from __future__ import annotations

import datetime as dt

from app.models.enums import TokenType
from app.services.tokens import InMemoryTokenStore, TokenMaintenance
from app.services.tokens.hashing import hash_secret


def _seed(store: InMemoryTokenStore, now: dt.datetime) -> dict[str, int]:
    user_id = store.add_user("user@example.com")

    def make(name: str, token_type: TokenType, created_at: dt.datetime, ttl: dt.timedelta) -> int:
        record = store.create_token(
            token_hash=hash_secret(name),
            user_id=user_id,
            email="user@example.com",
            token_type=token_type,
            expires_at=created_at + ttl,
            created_at=created_at,
        )
        return record.id

    ids = {
        "active_reset": make("active_reset", TokenType.password_reset, now - dt.timedelta(minutes=5), dt.timedelta(minutes=15)),
        "active_verify": make("active_verify", TokenType.email_verification, now - dt.timedelta(hours=1), dt.timedelta(hours=48)),
        "expired_reset": make("expired_reset", TokenType.password_reset, now - dt.timedelta(hours=1), dt.timedelta(minutes=15)),
        "recent_used": make("recent_used", TokenType.email_verification, now - dt.timedelta(days=2), dt.timedelta(hours=48, minutes=30)),
        "stale_used": make("stale_used", TokenType.email_verification, now - dt.timedelta(days=8), dt.timedelta(days=30)),
    }
    store.mark_used(ids["recent_used"])
    store.mark_used(ids["stale_used"])
    return ids


def test_cleanup_removes_only_expired_and_stale_used(clock) -> None:  # noqa: ANN001
    store = InMemoryTokenStore()
    ids = _seed(store, clock())
    maintenance = TokenMaintenance(store, clock=clock)

    assert maintenance.cleanup_expired_tokens() == 2

    remaining = {record.id for record in store.all_tokens()}
    assert remaining == {ids["active_reset"], ids["active_verify"], ids["recent_used"]}
    assert maintenance.cleanup_expired_tokens() == 0


def test_stats_are_read_only_counts(clock) -> None:  # noqa: ANN001
    store = InMemoryTokenStore()
    _seed(store, clock())
    maintenance = TokenMaintenance(store, clock=clock)

    stats = maintenance.get_token_stats()

    assert stats.active_tokens == {"password_reset": 1, "email_verification": 1}
    assert stats.expired_tokens == 1
    assert stats.to_dict() == {
        "active_tokens": {"password_reset": 1, "email_verification": 1},
        "expired_tokens": 1,
    }
    assert len(store.all_tokens()) == 5
