"""packages/core 测试配置 -- 核心层 fixture 与样例数据工厂"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio
from honeydew.core.models import Bid, Payment, PaymentStatus, Profile, Role, Task, TaskStatus
from honeydew.core.store import StoreGroup, create_store_group

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=UTC)


def _make_task(
    task_id: str = "01HTASK0000000000000000001",
    requester_id: str = "req-1",
    zip_code: str = "94110",
    proposed_rate: str = "25",
    **overrides,
) -> Task:
    """构造测试用 Task"""
    fields = {
        "task_id": task_id,
        "created_at": T0,
        "updated_at": T0,
        "requester_id": requester_id,
        "description": "Mow the lawn\nFront and back yard",
        "zip": zip_code,
        "proposed_rate": Decimal(proposed_rate),
    }
    fields.update(overrides)
    return Task(**fields)


def _make_bid(task_id: str, helper_id: str, rate: str = "30", **overrides) -> Bid:
    fields = {
        "task_id": task_id,
        "helper_id": helper_id,
        "rate": Decimal(rate),
        "created_at": T0,
        "updated_at": T0,
    }
    fields.update(overrides)
    return Bid(**fields)


def _make_profile(user_id: str, role: Role = Role.USER, zip_code: str = "94110") -> Profile:
    return Profile(user_id=user_id, created_at=T0, role=role, zip=zip_code, address="1 Main St")


def _make_payment(
    task_id: str,
    status: PaymentStatus = PaymentStatus.SUCCEEDED,
    amount: str = "30.00",
) -> Payment:
    """默认已支付成功的支付记录"""
    return Payment(
        task_id=task_id,
        intent_id=f"pi_{task_id}",
        client_secret=f"pi_{task_id}_secret",
        amount=Decimal(amount),
        tip=Decimal("0.00"),
        total=Decimal(amount),
        status=status,
        created_at=T0,
        updated_at=T0,
    )


def _confirmed_task(helper_id: str = "helper-1", rate: str = "30", **overrides) -> Task:
    """已接受出价的任务"""
    fields = {
        "status": TaskStatus.CONFIRMED,
        "helper_id": helper_id,
        "accepted_rate": Decimal(rate),
    }
    fields.update(overrides)
    return _make_task(**fields)


def _started_task(minutes_ago: int = 0, **overrides) -> Task:
    return _confirmed_task(start_time=T0 - timedelta(minutes=minutes_ago), **overrides)


@pytest_asyncio.fixture
async def core_store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """核心层已初始化的 StoreGroup"""
    store_group = await create_store_group(
        str(tmp_path / "core_test.db"),
        tmp_path / "media",
    )
    yield store_group
    await store_group.conn.close()


@pytest.fixture
def make_task():
    return _make_task


@pytest.fixture
def make_bid():
    return _make_bid


@pytest.fixture
def make_profile():
    return _make_profile


@pytest.fixture
def make_payment():
    return _make_payment


@pytest.fixture
def confirmed_task():
    return _confirmed_task


@pytest.fixture
def started_task():
    return _started_task
