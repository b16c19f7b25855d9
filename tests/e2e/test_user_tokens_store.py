"""End-to-end tests of the user_tokens table against a real Postgres."""

import pytest

from photoevents.db.user_tokens import (
    CredentialRecord,
    delete_user_token,
    get_user_token,
    upsert_user_token,
)
from photoevents.tokens.lifecycle import TokenLifecycleManager

from .._fakes import FakeGoogleProvider, RecordingOperation, make_record

pytestmark = pytest.mark.e2e


def test_upsert_then_get(db_url: str):
    record = make_record(user_id="e2e-upsert")

    upsert_user_token(record)
    stored = get_user_token("e2e-upsert")

    assert stored is not None
    assert stored.access_token == record.access_token
    assert stored.refresh_token == record.refresh_token
    assert stored.expires_at == record.expires_at
    assert stored.updated_at is not None


def test_upsert_keeps_one_row_per_user(db_url: str):
    upsert_user_token(make_record(user_id="e2e-single", access_token="first"))
    upsert_user_token(
        CredentialRecord(
            user_id="e2e-single",
            access_token="second",
            refresh_token=None,
            expires_at=123,
        )
    )

    stored = get_user_token("e2e-single")

    assert stored is not None
    assert stored.access_token == "second"
    assert stored.refresh_token is None
    assert stored.expires_at == 123


def test_delete_is_idempotent(db_url: str):
    upsert_user_token(make_record(user_id="e2e-delete"))

    assert delete_user_token("e2e-delete") is True
    assert delete_user_token("e2e-delete") is False
    assert get_user_token("e2e-delete") is None


@pytest.mark.asyncio
async def test_refresh_is_persisted(db_url: str):
    upsert_user_token(make_record(user_id="e2e-refresh", expires_in_ms=-60_000))
    manager = TokenLifecycleManager(provider=FakeGoogleProvider())

    await manager.with_authorized_client("e2e-refresh", RecordingOperation("ok"))

    stored = get_user_token("e2e-refresh")
    assert stored is not None
    assert stored.access_token == "refreshed-1"
    assert stored.refresh_token == "refresh-0"
    assert manager.get_status("e2e-refresh").token_expired is False
