"""Tests for the action record repository's conditional status updates."""

from datetime import datetime, timedelta, timezone

import pytest

from action_relay.core.database.repositories import ActionRecordRepository
from action_relay.core.models import ActionRecord, ActionStatus


def _record(**fields):
    values = dict(
        tool_id="tool-1",
        source_id="src-1",
        tool_name="Delete repo",
        method="DELETE",
        url="https://mock.api/repos/1",
        arguments={"id": 1},
        status=ActionStatus.pending_confirmation,
        requires_confirmation=True,
        requested_by="alice",
    )
    values.update(fields)
    return ActionRecord(**values)


@pytest.fixture
async def stored(session_factory):
    async with session_factory() as session:
        return await ActionRecordRepository(session).create(_record())


class TestApplyTransition:
    async def test_moves_row_in_expected_status(self, session_factory, stored):
        confirmed = stored.model_copy(update={"status": ActionStatus.confirmed, "confirmed_by": "alice"})

        async with session_factory() as session:
            repo = ActionRecordRepository(session)
            assert await repo.apply_transition(stored, confirmed) is True
            reloaded = await repo.get_by_id(stored.id)

        assert reloaded.status is ActionStatus.confirmed
        assert reloaded.confirmed_by == "alice"

    async def test_stale_status_does_not_move(self, session_factory, stored):
        rejected = stored.model_copy(update={"status": ActionStatus.rejected, "confirmed_by": "alice"})
        confirmed = stored.model_copy(update={"status": ActionStatus.confirmed, "confirmed_by": "bob"})

        async with session_factory() as session:
            repo = ActionRecordRepository(session)
            assert await repo.apply_transition(stored, rejected) is True
            assert await repo.apply_transition(stored, confirmed) is False
            reloaded = await repo.get_by_id(stored.id)

        assert reloaded.status is ActionStatus.rejected
        assert reloaded.confirmed_by == "alice"

    async def test_snapshot_columns_are_not_rewritten(self, session_factory, stored):
        tampered = stored.model_copy(
            update={"status": ActionStatus.confirmed, "url": "https://elsewhere", "arguments": {"id": 2}}
        )

        async with session_factory() as session:
            repo = ActionRecordRepository(session)
            await repo.apply_transition(stored, tampered)
            reloaded = await repo.get_by_id(stored.id)

        assert reloaded.url == "https://mock.api/repos/1"
        assert reloaded.arguments == {"id": 1}


class TestQueries:
    async def test_list_newest_first_with_filters(self, session_factory):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        async with session_factory() as session:
            repo = ActionRecordRepository(session)
            first = await repo.create(_record(created_at=base))
            second = await repo.create(_record(created_at=base + timedelta(minutes=1), requested_by="bob"))
            third = await repo.create(
                _record(created_at=base + timedelta(minutes=2), status=ActionStatus.completed)
            )

            everything = await repo.list()
            by_alice = await repo.list(filters={"requested_by": "alice"})
            completed = await repo.list(filters={"status": ActionStatus.completed})
            paged = await repo.list(limit=1, offset=1)

        assert [r.id for r in everything] == [third.id, second.id, first.id]
        assert {r.id for r in by_alice} == {first.id, third.id}
        assert [r.id for r in completed] == [third.id]
        assert [r.id for r in paged] == [second.id]

    async def test_get_missing(self, session_factory):
        async with session_factory() as session:
            assert await ActionRecordRepository(session).get_by_id("nope") is None

    async def test_list_stale_executing(self, session_factory):
        now = datetime.now(timezone.utc)
        async with session_factory() as session:
            repo = ActionRecordRepository(session)
            old = await repo.create(_record(status=ActionStatus.executing, executed_at=now - timedelta(hours=2)))
            await repo.create(_record(status=ActionStatus.executing, executed_at=now))
            await repo.create(_record(status=ActionStatus.completed, executed_at=now - timedelta(hours=2)))

            stale = await repo.list_stale_executing(now - timedelta(hours=1))

        assert [r.id for r in stale] == [old.id]
