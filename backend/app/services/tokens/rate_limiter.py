"""Per-identity issuance limits counted from persisted token history."""

from __future__ import annotations

import datetime as dt
import logging

from app.core.exceptions import RateLimitExceeded
from app.core.logging import mask_email
from app.models.enums import TokenType
from app.services.tokens.store import TokenStore

logger = logging.getLogger(__name__)


class IssuanceRateLimiter:
    """Sliding window over the store's issuance records.

    The count is read back from the store instead of kept in process memory,
    so every service instance sees the same history. The insert that follows
    a successful check is what advances the count.
    """

    def __init__(self, store: TokenStore, *, max_requests: int, window: dt.timedelta) -> None:
        self.store = store
        self.max_requests = max_requests
        self.window = window

    def check(self, identity: str, token_type: TokenType, *, now: dt.datetime) -> None:
        since = now - self.window
        count = self.store.count_since(identity, token_type, since)
        if count < self.max_requests:
            return
        window_seconds = int(self.window.total_seconds())
        logger.warning(
            "Token issuance rate limited: %s (%s, %s in window)",
            mask_email(identity),
            token_type.value,
            count,
        )
        raise RateLimitExceeded(
            retry_after=window_seconds,
            limit=self.max_requests,
            window_seconds=window_seconds,
        )
