"""apps/gateway 测试配置 -- httpx AsyncClient + 临时数据目录"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from honeydew.core.store import create_store_group

_ENV_KEYS = [
    "HONEYDEW_DB_PATH",
    "HONEYDEW_MEDIA_DIR",
    "HONEYDEW_PAYMENT_MODE",
    "LOGFIRE_SEND_TO_LOGFIRE",
]


def _headers(user_id: str, role: str = "user") -> dict[str, str]:
    return {"X-User-Id": user_id, "X-User-Role": role}


@pytest.fixture
def as_user() -> Callable[..., dict[str, str]]:
    """构造身份请求头"""
    return _headers


@pytest_asyncio.fixture
async def app(tmp_path: Path):
    """创建测试用 FastAPI app 实例（绕过 lifespan 手动初始化 app.state）"""
    os.environ["HONEYDEW_DB_PATH"] = str(tmp_path / "sqlite" / "test.db")
    os.environ["HONEYDEW_MEDIA_DIR"] = str(tmp_path / "media")
    os.environ["HONEYDEW_PAYMENT_MODE"] = "sandbox"
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from honeydew.gateway.main import create_app, init_app_state
    from honeydew.gateway.services.feed_cache import TaskFeedCache
    from honeydew.gateway.services.task_service import TaskService

    application = create_app()
    store_group = await create_store_group(
        str(tmp_path / "sqlite" / "test.db"),
        tmp_path / "media",
    )
    init_app_state(application, store_group)
    # 列表断言需要读到刚写入的数据
    application.state.feed_cache = TaskFeedCache(
        TaskService(store_group).list_tasks_for_viewer,
        ttl_s=0,
    )

    yield application

    await store_group.conn.close()
    for key in _ENV_KEYS:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def signup(client: AsyncClient) -> Callable[..., Awaitable[dict]]:
    """注册资料并返回响应 JSON"""

    async def _signup(user_id: str, role: str = "user", zip_code: str = "94110") -> dict:
        resp = await client.post(
            "/api/profiles",
            json={"role": role, "zip": zip_code, "full_name": user_id, "address": "1 Main St"},
            headers=_headers(user_id, role),
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _signup


@pytest_asyncio.fixture
async def posted_task(client: AsyncClient, signup) -> dict:
    """requester req-1 发布的任务，helper-1 / helper-2 已注册"""
    await signup("req-1")
    await signup("helper-1", role="helper")
    await signup("helper-2", role="helper")
    resp = await client.post(
        "/api/tasks",
        json={"description": "Assemble IKEA shelf", "proposed_rate": "25"},
        headers=_headers("req-1"),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest_asyncio.fixture
async def completed_task(client: AsyncClient, posted_task: dict) -> dict:
    """helper-1 以 30/h 中标并完成的任务（不足 1 小时，账单 30.00）"""
    task_id = posted_task["task_id"]
    steps = [
        ("PUT", f"/api/tasks/{task_id}/bids", {"rate": "30"}, _headers("helper-1", "helper")),
        ("POST", f"/api/tasks/{task_id}/bids/helper-1/accept", None, _headers("req-1")),
        ("POST", f"/api/tasks/{task_id}/start", None, _headers("helper-1", "helper")),
        ("POST", f"/api/tasks/{task_id}/finish", None, _headers("helper-1", "helper")),
    ]
    resp = None
    for method, url, body, headers in steps:
        resp = await client.request(method, url, json=body, headers=headers)
        assert resp.status_code == 200, resp.text
    return resp.json()


@pytest_asyncio.fixture
async def paid_task(client: AsyncClient, completed_task: dict) -> dict:
    """completed_task 且 req-1 已支付成功（沙箱网关）"""
    task_id = completed_task["task_id"]
    created = await client.post(
        f"/api/tasks/{task_id}/payment", json={"tip": "0"}, headers=_headers("req-1")
    )
    assert created.status_code == 201, created.text
    confirmed = await client.post(f"/api/tasks/{task_id}/payment/confirm", headers=_headers("req-1"))
    assert confirmed.json()["status"] == "succeeded", confirmed.text
    return completed_task
