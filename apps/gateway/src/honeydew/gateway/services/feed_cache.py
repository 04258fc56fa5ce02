"""TaskFeedCache / FeedPoller -- 任务列表轮询

TaskFeedCache 是按查看者（user_id, role）缓存的只读快照，
陈旧时间上限等于轮询间隔；写路径从不读取缓存，缓存只服务列表展示。
每次未命中时清理已过期的条目，条目数超过 max_entries 时淘汰最旧的快照。
FeedPoller 按同一间隔重新取快照并产出，直到调用方取消（客户端断开）。
"""

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

import structlog
from honeydew.core.config import POLL_INTERVAL_S
from honeydew.core.models import Role, Task

log = structlog.get_logger()

DEFAULT_MAX_ENTRIES = 1024

FeedLoader = Callable[[str, Role], Awaitable[list[Task]]]


@dataclass(frozen=True)
class FeedSnapshot:
    """某一时刻的任务列表快照"""

    tasks: list[Task]
    fetched_at: float


class TaskFeedCache:
    """按查看者缓存任务列表，过期后穿透到 loader 重新加载"""

    def __init__(
        self,
        loader: FeedLoader,
        ttl_s: float = POLL_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        self._loader = loader
        self._ttl_s = ttl_s
        self._clock = clock
        self._max_entries = max_entries
        self._entries: dict[tuple[str, Role], FeedSnapshot] = {}
        self._locks: dict[tuple[str, Role], asyncio.Lock] = {}

    @property
    def ttl_s(self) -> float:
        return self._ttl_s

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, user_id: str, role: Role) -> FeedSnapshot:
        """返回不超过 ttl_s 的快照

        同一查看者的并发请求只触发一次加载。
        """
        key = (user_id, role)
        snapshot = self._fresh(key)
        if snapshot is not None:
            return snapshot

        self._prune()
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            snapshot = self._fresh(key)
            if snapshot is not None:
                return snapshot
            tasks = await self._loader(user_id, role)
            snapshot = FeedSnapshot(tasks=tasks, fetched_at=self._clock())
            self._entries[key] = snapshot
            log.debug("feed_cache_refreshed", user_id=user_id, role=role.value, count=len(tasks))
            return snapshot

    def invalidate(self, user_id: str | None = None) -> None:
        """丢弃缓存；不指定 user_id 时全部丢弃"""
        if user_id is None:
            self._entries.clear()
            return
        for key in [k for k in self._entries if k[0] == user_id]:
            del self._entries[key]

    def _prune(self) -> None:
        now = self._clock()
        for key in [k for k, s in self._entries.items() if now - s.fetched_at >= self._ttl_s]:
            del self._entries[key]
        overflow = len(self._entries) - self._max_entries + 1
        if overflow > 0:
            oldest = sorted(self._entries, key=lambda k: self._entries[k].fetched_at)
            for key in oldest[:overflow]:
                del self._entries[key]
        # 正在加载的查看者保留锁
        idle = [k for k, lock in self._locks.items() if k not in self._entries and not lock.locked()]
        for key in idle:
            del self._locks[key]
        if overflow > 0:
            log.debug("feed_cache_evicted", count=overflow, size=len(self._entries))

    def _fresh(self, key: tuple[str, Role]) -> FeedSnapshot | None:
        snapshot = self._entries.get(key)
        if snapshot is None:
            return None
        if self._clock() - snapshot.fetched_at >= self._ttl_s:
            return None
        return snapshot


class FeedPoller:
    """按固定间隔从 TaskFeedCache 取快照的异步迭代器

    取消（CancelledError）即停止，不再发起查询。
    """

    def __init__(
        self,
        cache: TaskFeedCache,
        user_id: str,
        role: Role,
        interval_s: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._cache = cache
        self._user_id = user_id
        self._role = role
        self._interval_s = cache.ttl_s if interval_s is None else interval_s
        self._sleep = sleep

    async def snapshots(self) -> AsyncIterator[list[Task]]:
        """先立即产出一次，之后每个间隔产出一次"""
        await log.adebug("feed_poller_started", user_id=self._user_id, role=self._role.value)
        try:
            while True:
                snapshot = await self._cache.get(self._user_id, self._role)
                yield snapshot.tasks
                await self._sleep(self._interval_s)
        finally:
            log.debug("feed_poller_stopped", user_id=self._user_id)
