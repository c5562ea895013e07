"""Tests for application startup and shutdown."""

from datetime import datetime, timedelta, timezone

import pytest

from action_relay.core.config import settings
from action_relay.core.database import create_all, create_engine, create_sessionmaker
from action_relay.core.database.repositories import ActionRecordRepository
from action_relay.core.models import ActionRecord, ActionStatus
from action_relay.server.container import RelayServices
from action_relay.server.main import create_app, lifespan


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    url = f"sqlite+aiosqlite:///{tmp_path / 'relay.db'}"
    monkeypatch.setattr(settings, "database_url", url)
    return url


async def test_startup_builds_services(database_url):
    app = create_app()

    async with lifespan(app):
        assert isinstance(app.state.services, RelayServices)
        assert await app.state.services.catalog.list_sources() == []


async def test_startup_fails_interrupted_actions(database_url):
    engine = create_engine(database_url)
    await create_all(engine)
    long_ago = datetime.now(timezone.utc) - timedelta(hours=1)
    async with create_sessionmaker(engine)() as session:
        stuck = await ActionRecordRepository(session).create(
            ActionRecord(
                tool_id="tool-1",
                source_id="src-1",
                tool_name="Create invoice",
                method="POST",
                url="https://mock.billing.example/invoices",
                status=ActionStatus.executing,
                requested_by="alice",
                executed_at=long_ago,
            )
        )
    await engine.dispose()

    app = create_app()
    async with lifespan(app):
        record = await app.state.services.actions.get_record(stuck.id)

    assert record.status is ActionStatus.failed
    assert record.error_message == "Execution interrupted before completion"


async def test_supplied_services_are_left_to_their_owner(services):
    app = create_app(services=services)

    async with lifespan(app):
        assert app.state.services is services

    assert app.state.services is services
