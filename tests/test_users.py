"""Tests for account creation, login verification and lockout."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from conftest import PASSWORD
from pydantic import ValidationError

from neighborwatch.schemas.user import UserCreate
from neighborwatch.services.errors import ConflictError
from neighborwatch.services.users import (
    ACCOUNT_LOCKED,
    INVALID_CREDENTIALS,
    create_user,
    find_user_by_identifier,
    record_login_failure,
    record_login_success,
    verify_login,
)


async def test_email_and_username_are_unique_ignoring_case(session, users):
    with pytest.raises(ConflictError):
        await create_user(session, UserCreate(email="ALICE@example.com", username="someone", password=PASSWORD))
    with pytest.raises(ConflictError):
        await create_user(session, UserCreate(email="new@example.com", username="ALICE", password=PASSWORD))


async def test_lookup_by_email_or_username(session, users):
    assert (await find_user_by_identifier(session, "Bob@Example.com")).id == users[1].id
    assert (await find_user_by_identifier(session, "BOB")).id == users[1].id
    assert await find_user_by_identifier(session, "nobody") is None


async def test_verify_login(session, users):
    ok = await verify_login(session, "alice", PASSWORD)
    assert ok.ok and ok.user.id == users[0].id

    wrong = await verify_login(session, "alice", "wrong-password1")
    assert not wrong.ok and wrong.reason == INVALID_CREDENTIALS and wrong.user is not None

    missing = await verify_login(session, "ghost", PASSWORD)
    assert not missing.ok and missing.user is None


async def test_lockout_after_repeated_failures(session, users):
    alice = users[0]
    for _ in range(4):
        await record_login_failure(session, alice, max_failures=5, lockout_minutes=10)
    assert alice.locked_until is None

    await record_login_failure(session, alice, max_failures=5, lockout_minutes=10)
    assert alice.failed_login_count == 5
    assert alice.locked_until > datetime.now(timezone.utc) + timedelta(minutes=9)

    locked = await verify_login(session, "alice", PASSWORD)
    assert not locked.ok and locked.reason == ACCOUNT_LOCKED and locked.locked

    wrong = await verify_login(session, "bob", "wrong-password1")
    assert not wrong.locked


async def test_success_resets_counters(session, users):
    alice = users[0]
    await record_login_failure(session, alice)
    await record_login_success(session, alice)
    assert alice.failed_login_count == 0
    assert alice.locked_until is None
    assert alice.last_login_at is not None


async def test_expired_lock_allows_login(session, users):
    alice = users[0]
    alice.locked_until = datetime.now(timezone.utc) - timedelta(minutes=1)
    await session.flush()
    assert (await verify_login(session, "alice", PASSWORD)).ok


@pytest.mark.parametrize(
    "payload",
    [
        {"email": "not-an-email", "username": "valid_name", "password": PASSWORD},
        {"email": "a@b.co", "username": "no spaces", "password": PASSWORD},
        {"email": "a@b.co", "username": "ab", "password": PASSWORD},
        {"email": "a@b.co", "username": "valid_name", "password": "lettersonly"},
        {"email": "a@b.co", "username": "valid_name", "password": "1234567890"},
        {"email": "a@b.co", "username": "valid_name", "password": "short1"},
    ],
)
def test_registration_validation(payload):
    with pytest.raises(ValidationError):
        UserCreate(**payload)
