"""
Tests for the reset-code stores.

The same behaviour is checked against the in-memory store and the
SQLAlchemy store (in-memory SQLite).
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from agro_auth.models.password_reset import PasswordReset
from agro_auth.services.reset_store import InMemoryResetStore, SqlResetStore
from tests.fakes import T0

EMAIL = "user@example.com"
EXPIRES = T0 + timedelta(minutes=10)


@pytest.fixture(params=["memory", "sql"])
async def store(request, db_session):
    if request.param == "memory":
        return InMemoryResetStore()
    return SqlResetStore(db_session)


class TestResetStore:

    async def test_get_missing(self, store):
        assert await store.get(EMAIL) is None

    async def test_save_and_get(self, store):
        saved = await store.save(EMAIL, "004821", T0, EXPIRES)
        loaded = await store.get(EMAIL)

        assert loaded == saved
        assert loaded.code == "004821"
        assert loaded.issued_at == T0
        assert loaded.expires_at == EXPIRES
        assert loaded.consumed is False
        assert loaded.attempt_count == 0
        assert loaded.version == 1

    async def test_save_replaces_record_and_bumps_version(self, store):
        first = await store.save(EMAIL, "111111", T0, EXPIRES)
        await store.record_failed_attempt(EMAIL, first.version)
        assert await store.mark_consumed(EMAIL, first.version) is True

        later = T0 + timedelta(minutes=3)
        second = await store.save(EMAIL, "222222", later, later + timedelta(minutes=10))

        assert second.version == first.version + 1
        loaded = await store.get(EMAIL)
        assert loaded.code == "222222"
        assert loaded.consumed is False
        assert loaded.attempt_count == 0
        assert loaded.issued_at == later

    async def test_mark_consumed_only_once(self, store):
        record = await store.save(EMAIL, "123456", T0, EXPIRES)

        assert await store.mark_consumed(EMAIL, record.version) is True
        assert await store.mark_consumed(EMAIL, record.version) is False
        assert (await store.get(EMAIL)).consumed is True

    async def test_mark_consumed_rejects_superseded_version(self, store):
        old = await store.save(EMAIL, "111111", T0, EXPIRES)
        await store.save(EMAIL, "222222", T0, EXPIRES)

        assert await store.mark_consumed(EMAIL, old.version) is False
        assert (await store.get(EMAIL)).consumed is False

    async def test_release_undoes_claim(self, store):
        record = await store.save(EMAIL, "123456", T0, EXPIRES)
        await store.mark_consumed(EMAIL, record.version)

        await store.release(EMAIL, record.version)

        assert (await store.get(EMAIL)).consumed is False

    async def test_record_failed_attempt(self, store):
        record = await store.save(EMAIL, "123456", T0, EXPIRES)

        await store.record_failed_attempt(EMAIL, record.version)
        await store.record_failed_attempt(EMAIL, record.version)
        await store.record_failed_attempt(EMAIL, record.version + 5)

        assert (await store.get(EMAIL)).attempt_count == 2

    async def test_discard_is_version_guarded(self, store):
        old = await store.save(EMAIL, "111111", T0, EXPIRES)
        await store.save(EMAIL, "222222", T0, EXPIRES)

        await store.discard(EMAIL, old.version)
        assert (await store.get(EMAIL)).code == "222222"

        await store.discard(EMAIL, old.version + 1)
        assert await store.get(EMAIL) is None

    async def test_records_are_per_email(self, store):
        await store.save(EMAIL, "111111", T0, EXPIRES)
        other = await store.save("other@example.com", "222222", T0, EXPIRES)

        await store.mark_consumed("other@example.com", other.version)

        assert (await store.get(EMAIL)).consumed is False
        assert (await store.get("other@example.com")).consumed is True


class TestSqlResetStore:

    async def test_one_row_per_email(self, db_session):
        store = SqlResetStore(db_session)
        await store.save(EMAIL, "111111", T0, EXPIRES)
        await store.save(EMAIL, "222222", T0, EXPIRES)
        await store.save(EMAIL, "333333", T0, EXPIRES)

        result = await db_session.execute(select(PasswordReset).filter(PasswordReset.email == EMAIL))
        rows = result.scalars().all()
        assert len(rows) == 1
        assert rows[0].version == 3

    async def test_consume_visible_to_other_session(self, session_factory):
        async with session_factory() as first, session_factory() as second:
            record = await SqlResetStore(first).save(EMAIL, "123456", T0, EXPIRES)

            assert await SqlResetStore(second).mark_consumed(EMAIL, record.version) is True
            assert await SqlResetStore(first).mark_consumed(EMAIL, record.version) is False
            assert (await SqlResetStore(first).get(EMAIL)).consumed is True

    async def test_returns_utc_aware_datetimes(self, db_session):
        store = SqlResetStore(db_session)
        await store.save(EMAIL, "123456", T0, EXPIRES)

        loaded = await store.get(EMAIL)
        assert loaded.expires_at.tzinfo is not None
        assert loaded.expires_at - loaded.issued_at == timedelta(minutes=10)
