from __future__ import annotations

import datetime as dt
import os
import sys
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
os.environ.setdefault("DATABASE_URL", "sqlite://")
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from app.db.base import Base  # noqa: E402
from app.db.session import build_engine  # noqa: E402
from app.models import EmailToken, User  # noqa: E402,F401

START = dt.datetime(2026, 3, 2, 9, 0, tzinfo=dt.timezone.utc)


class FakeClock:
    def __init__(self, start: dt.datetime = START) -> None:
        self.now = start

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs) -> dt.datetime:  # noqa: ANN003
        self.now = self.now + dt.timedelta(**kwargs)
        return self.now


class RecordingNotifier:
    def __init__(self, *, deliver: bool = True, error: Exception | None = None) -> None:
        self.deliver = deliver
        self.error = error
        self.reset_codes: list[dict] = []
        self.verification_links: list[dict] = []

    def send_password_reset_code(self, to, code, security_context):  # noqa: ANN001
        if self.error is not None:
            raise self.error
        self.reset_codes.append({"to": to, "code": code, "context": security_context})
        return self.deliver

    def send_email_verification(self, to, name, verification_url):  # noqa: ANN001
        if self.error is not None:
            raise self.error
        self.verification_links.append({"to": to, "name": name, "url": verification_url})
        return self.deliver

    @property
    def last_code(self) -> str:
        return self.reset_codes[-1]["code"]

    @property
    def last_token(self) -> str:
        url = self.verification_links[-1]["url"]
        return url.split("token=", 1)[1]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def sqlite_engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()
