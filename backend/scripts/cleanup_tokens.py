"""Delete expired and stale used credential tokens, or print token stats.

Meant to run from cron or a scheduler, e.g. nightly:

    python scripts/cleanup_tokens.py
    python scripts/cleanup_tokens.py --stats
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(BASE_DIR))

from app.core.config import settings  # noqa: E402
from app.core.exceptions import StoreError  # noqa: E402
from app.core.logging import setup_logging  # noqa: E402
from app.db.session import SessionLocal  # noqa: E402
from app.services.tokens import SqlAlchemyTokenStore, TokenMaintenance, TokenPolicy  # noqa: E402

logger = logging.getLogger("cleanup_tokens")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Maintain the email_tokens table")
    parser.add_argument("--stats", action="store_true", help="Print active/expired counts instead of deleting")
    return parser.parse_args(argv)


def run(maintenance: TokenMaintenance, *, stats_only: bool) -> dict:
    if stats_only:
        return maintenance.get_token_stats().to_dict()
    return {"deleted": maintenance.cleanup_expired_tokens()}


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(settings.LOG_LEVEL)

    db = SessionLocal()
    try:
        maintenance = TokenMaintenance(SqlAlchemyTokenStore(db), policy=TokenPolicy.from_settings(settings))
        result = run(maintenance, stats_only=args.stats)
    except StoreError:
        logger.error("Token maintenance failed; database unavailable")
        return 1
    finally:
        db.close()

    print(json.dumps(result, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
