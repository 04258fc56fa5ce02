"""集成测试共享 fixture"""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from honeydew.core.store import StoreGroup, create_store_group


class SteppingClock:
    """可手动推进的时钟，用于构造精确的计费时长"""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock(datetime(2024, 5, 1, 9, 0, tzinfo=UTC))


@pytest_asyncio.fixture
async def store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    stores = await create_store_group(str(tmp_path / "test.db"), tmp_path / "media")
    yield stores
    await stores.conn.close()


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path):
    """集成测试用 FastAPI app"""
    os.environ["HONEYDEW_DB_PATH"] = str(tmp_path / "app.db")
    os.environ["HONEYDEW_MEDIA_DIR"] = str(tmp_path / "app-media")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from honeydew.gateway.main import create_app, init_app_state

    app = create_app()
    stores = await create_store_group(str(tmp_path / "app.db"), tmp_path / "app-media")
    init_app_state(app, stores)

    yield app

    await stores.conn.close()
    for key in ("HONEYDEW_DB_PATH", "HONEYDEW_MEDIA_DIR", "LOGFIRE_SEND_TO_LOGFIRE"):
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
