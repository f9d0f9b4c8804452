from __future__ import annotations

import datetime as dt
import uuid
from urllib.parse import parse_qs, urlsplit

import pytest

from app.core.exceptions import BadRequestError, InvalidEmail, InvalidToken, NotifyError, StoreError, TokenExpired
from app.models.enums import TokenType
from app.services.email import VerificationUrlBuilder
from app.services.tokens import InMemoryTokenStore, TokenManager
from app.services.tokens.hashing import hash_secret

EMAIL = "new.member@example.com"


def _manager(store, notifier, clock) -> TokenManager:  # noqa: ANN001
    return TokenManager(
        store,
        notifier,
        url_builder=VerificationUrlBuilder("https://app.example.com/verify"),
        clock=clock,
    )


def test_issue_stores_hash_and_sends_link(clock, notifier) -> None:  # noqa: ANN001
    store = InMemoryTokenStore()
    user_id = store.add_user(EMAIL, name="New Member")
    manager = _manager(store, notifier, clock)

    manager.request_email_verification(user_id, EMAIL, name="New Member", request_ip="198.51.100.4")

    sent = notifier.verification_links[-1]
    assert sent["to"] == EMAIL
    assert sent["name"] == "New Member"
    parts = urlsplit(sent["url"])
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://app.example.com/verify"
    token = parse_qs(parts.query)["token"][0]

    record = store.all_tokens()[0]
    assert record.token_type == TokenType.email_verification
    assert record.token_hash == hash_secret(token)
    assert token not in record.token_hash
    assert record.expires_at - record.created_at == dt.timedelta(hours=48)
    assert record.request_ip == "198.51.100.4"


def test_verify_marks_user_verified_exactly_once(clock, notifier) -> None:  # noqa: ANN001
    store = InMemoryTokenStore()
    user_id = store.add_user(EMAIL)
    manager = _manager(store, notifier, clock)
    manager.request_email_verification(user_id, EMAIL)
    token = notifier.last_token

    clock.advance(hours=1)
    assert manager.verify_email_token(token) == user_id
    verified_at = store.get_user(user_id).email_verified_at
    assert verified_at == clock()
    assert store.all_tokens()[0].used is True

    clock.advance(hours=1)
    with pytest.raises(InvalidToken):
        manager.verify_email_token(token)
    assert store.get_user(user_id).email_verified_at == verified_at


def test_second_token_does_not_reset_verified_timestamp(clock, notifier) -> None:  # noqa: ANN001
    store = InMemoryTokenStore()
    user_id = store.add_user(EMAIL)
    manager = _manager(store, notifier, clock)

    manager.request_email_verification(user_id, EMAIL)
    first = notifier.last_token
    manager.request_email_verification(user_id, EMAIL)
    second = notifier.last_token

    manager.verify_email_token(first)
    verified_at = store.get_user(user_id).email_verified_at

    clock.advance(minutes=30)
    assert manager.verify_email_token(second) == user_id
    assert store.get_user(user_id).email_verified_at == verified_at


def test_expired_token_fails_and_leaves_user_unverified(clock, notifier) -> None:  # noqa: ANN001
    store = InMemoryTokenStore()
    user_id = store.add_user(EMAIL)
    manager = _manager(store, notifier, clock)
    manager.request_email_verification(user_id, EMAIL)

    clock.advance(hours=48, seconds=1)
    with pytest.raises(TokenExpired):
        manager.verify_email_token(notifier.last_token)
    assert store.get_user(user_id).email_verified_at is None
    assert store.all_tokens()[0].used is False


def test_unknown_or_empty_token_is_invalid(clock, notifier) -> None:  # noqa: ANN001
    manager = _manager(InMemoryTokenStore(), notifier, clock)
    with pytest.raises(InvalidToken):
        manager.verify_email_token("")
    with pytest.raises(InvalidToken):
        manager.verify_email_token("x" * 43)


def test_reset_code_cannot_be_used_as_verification_token(clock, notifier) -> None:  # noqa: ANN001
    store = InMemoryTokenStore()
    store.add_user(EMAIL)
    manager = _manager(store, notifier, clock)
    manager.request_password_reset(EMAIL)

    with pytest.raises(InvalidToken):
        manager.verify_email_token(notifier.last_code)


def test_issue_requires_user_and_valid_address(clock, notifier) -> None:  # noqa: ANN001
    manager = _manager(InMemoryTokenStore(), notifier, clock)
    with pytest.raises(BadRequestError, match="user_id_required"):
        manager.request_email_verification(None, EMAIL)
    with pytest.raises(InvalidEmail):
        manager.request_email_verification(uuid.uuid4(), "dev@localhost")


def test_delivery_failure_keeps_token_usable(clock, notifier) -> None:  # noqa: ANN001
    store = InMemoryTokenStore()
    user_id = store.add_user(EMAIL)
    manager = _manager(store, notifier, clock)
    notifier.deliver = False

    with pytest.raises(NotifyError):
        manager.request_email_verification(user_id, EMAIL)

    assert manager.verify_email_token(notifier.last_token) == user_id


def test_issue_refuses_address_held_by_another_account(clock, notifier) -> None:  # noqa: ANN001
    store = InMemoryTokenStore()
    user_id = store.add_user(EMAIL)
    store.add_user("someone.else@example.com")
    manager = _manager(store, notifier, clock)

    for address in ("someone.else@example.com", "unregistered@example.com"):
        with pytest.raises(BadRequestError, match="email_not_owned"):
            manager.request_email_verification(user_id, address)

    assert store.all_tokens() == []
    assert notifier.verification_links == []


def test_token_for_previous_address_does_not_verify_new_one(clock, notifier) -> None:  # noqa: ANN001
    store = InMemoryTokenStore()
    user_id = store.add_user(EMAIL)
    manager = _manager(store, notifier, clock)
    manager.request_email_verification(user_id, EMAIL)
    store.get_user(user_id).email = "changed@example.com"

    assert manager.verify_email_token(notifier.last_token) == user_id
    assert store.get_user(user_id).email_verified_at is None


def test_store_failure_after_consume_leaves_user_unverified(clock, notifier, monkeypatch) -> None:  # noqa: ANN001
    store = InMemoryTokenStore()
    user_id = store.add_user(EMAIL)
    manager = _manager(store, notifier, clock)
    manager.request_email_verification(user_id, EMAIL)
    first = notifier.last_token

    def unavailable(*args, **kwargs):  # noqa: ANN002, ANN003
        raise StoreError(operation="set_email_verified")

    monkeypatch.setattr(store, "set_email_verified", unavailable)
    with pytest.raises(StoreError):
        manager.verify_email_token(first)
    monkeypatch.undo()

    assert store.get_user(user_id).email_verified_at is None
    with pytest.raises(InvalidToken):
        manager.verify_email_token(first)

    manager.request_email_verification(user_id, EMAIL)
    manager.verify_email_token(notifier.last_token)
    assert store.get_user(user_id).email_verified_at == clock()
