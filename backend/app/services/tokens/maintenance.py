"""Periodic cleanup and read-only reporting over stored tokens."""

from __future__ import annotations

import logging

from app.services.tokens.manager import Clock
from app.services.tokens.policy import TokenPolicy
from app.services.tokens.records import TokenStats, utcnow
from app.services.tokens.store import TokenStore

logger = logging.getLogger(__name__)


class TokenMaintenance:
    def __init__(self, store: TokenStore, *, policy: TokenPolicy | None = None, clock: Clock = utcnow) -> None:
        self.store = store
        self.policy = policy or TokenPolicy()
        self.clock = clock

    def cleanup_expired_tokens(self) -> int:
        """Delete expired records and used records older than the retention window."""
        now = self.clock()
        deleted = self.store.delete_stale(now=now, used_before=now - self.policy.used_retention)
        logger.info("Token cleanup removed %s records", deleted)
        return deleted

    def get_token_stats(self) -> TokenStats:
        now = self.clock()
        return TokenStats(
            active_tokens=self.store.count_active_by_type(now),
            expired_tokens=self.store.count_expired(now),
        )
