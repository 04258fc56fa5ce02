"""条件写入 + 审计事件的原子事务封装

所有 Store 共享同一个 aiosqlite 连接，也就共享同一个事务。
任何写操作都必须经 unit_of_work 持有该连接的写锁，从第一条语句一直到提交或回滚，
否则并发请求的 rollback 会抹掉另一个请求尚未提交的写入。

每个生命周期操作都以一条条件写入开头：
- 条件写入未命中时什么也没写，直接返回 False；
- 命中后在同一事务内追加审计事件并提交，任何一步失败则整体回滚。
"""

import asyncio
import weakref
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import aiosqlite

from ..exceptions import ProfileNotFound
from ..models.event import Event
from ..models.review import Review
from ..models.task import Task
from ..rating import RatingSummary, aggregate_ratings
from .event_store import SqliteEventStore
from .profile_store import SqliteProfileStore
from .review_store import SqliteReviewStore
from .task_store import SqliteTaskStore

_write_locks: "weakref.WeakKeyDictionary[aiosqlite.Connection, asyncio.Lock]" = (
    weakref.WeakKeyDictionary()
)


def write_lock(conn: aiosqlite.Connection) -> asyncio.Lock:
    """连接级写锁，同一连接上的写事务依次执行"""
    lock = _write_locks.get(conn)
    if lock is None:
        lock = _write_locks[conn] = asyncio.Lock()
    return lock


@asynccontextmanager
async def unit_of_work(conn: aiosqlite.Connection) -> AsyncIterator[aiosqlite.Connection]:
    """持写锁执行一个事务：正常退出时提交，异常时回滚

    用法::

        async with unit_of_work(conn):
            await store.some_write(...)
    """
    async with write_lock(conn):
        try:
            yield conn
        except BaseException:
            # 请求被取消时也要回滚，否则半截写入会被下一个事务一并提交
            await conn.rollback()
            raise
        await conn.commit()


async def create_task_with_initial_event(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    event_store: SqliteEventStore,
    task: Task,
    event: Event,
) -> None:
    """单事务写入 task 与 TASK_CREATED 事件"""
    async with unit_of_work(conn):
        await task_store.create_task(task)
        await event_store.append_event(event)


async def guarded_write_with_event(
    conn: aiosqlite.Connection,
    event_store: SqliteEventStore,
    guarded_write: Callable[[], Awaitable[bool]],
    event: Event,
) -> bool:
    """执行条件写入，命中后追加事件并提交

    Args:
        conn: 数据库连接（需在同一连接上操作以保证事务性）
        event_store: EventStore 实例
        guarded_write: 返回 rowcount 是否命中的条件写入
        event: 写入成功后追加的审计事件

    Returns:
        True 如果条件写入命中并已提交
    """
    async with unit_of_work(conn):
        if not await guarded_write():
            return False
        await event_store.append_event(event)
    return True


async def record_review_and_refresh_rating(
    conn: aiosqlite.Connection,
    review_store: SqliteReviewStore,
    profile_store: SqliteProfileStore,
    event_store: SqliteEventStore,
    review: Review,
    event_builder: Callable[[RatingSummary], Event],
) -> RatingSummary | None:
    """插入评价并重新聚合 helper 评分，单事务提交

    Returns:
        聚合结果；任务或支付前置条件不满足时返回 None（没有写入）

    Raises:
        aiosqlite.IntegrityError: 该任务已有评价（没有写入）
        ProfileNotFound: helper 没有资料，聚合无处写回（整体回滚）
    """
    async with unit_of_work(conn):
        if not await review_store.insert_review(review):
            return None

        ratings = await review_store.list_ratings_for_helper(review.helper_id)
        summary = aggregate_ratings(ratings)
        stored = await profile_store.set_rating_summary(
            review.helper_id,
            summary.average_rating,
            summary.rating_count,
        )
        if not stored:
            raise ProfileNotFound(review.helper_id)
        await event_store.append_event(event_builder(summary))
    return summary
