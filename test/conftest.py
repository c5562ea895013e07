from __future__ import annotations

from pathlib import Path
from typing import AsyncGenerator, Tuple

import httpx
import pytest
import pytest_asyncio
from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel.pool import StaticPool

from action_relay.core.database import create_all, create_sessionmaker

TEST_ROOT = Path(__file__).resolve().parent
# Optional local overrides for integration runs
load_dotenv(TEST_ROOT / ".env", override=False)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Target systems in tests live under mock hosts or the in-process ASGI app
_REACHABLE_PREFIXES: Tuple[str, ...] = (
    "http://mock",
    "https://mock",
    "http://localhost",
    "http://127.0.0.1",
    "http://testserver",
    "/",
)
_IN_PROCESS_TRANSPORTS = (httpx.MockTransport, httpx.ASGITransport)


def _reachable(client, url: str) -> bool:
    if isinstance(getattr(client, "_transport", None), _IN_PROCESS_TRANSPORTS):
        return True
    return url.startswith(_REACHABLE_PREFIXES)


@pytest.fixture(autouse=True)
def _no_live_target_systems(monkeypatch: pytest.MonkeyPatch):
    """Fail any action that would reach a real target system over HTTP."""
    sync_request = httpx.Client.request
    async_request = httpx.AsyncClient.request

    def guarded_sync(self, method, url, *args, **kwargs):
        if not _reachable(self, str(url)):
            raise RuntimeError(f"Test tried to call a live target system: {method} {url}")
        return sync_request(self, method, url, *args, **kwargs)

    async def guarded_async(self, method, url, *args, **kwargs):
        if not _reachable(self, str(url)):
            raise RuntimeError(f"Test tried to call a live target system: {method} {url}")
        return await async_request(self, method, url, *args, **kwargs)

    monkeypatch.setattr(httpx.Client, "request", guarded_sync)
    monkeypatch.setattr(httpx.AsyncClient, "request", guarded_async)


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with every table created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_sessionmaker(engine)
