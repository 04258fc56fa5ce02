"""SSEHub -- 任务审计事件的进程内扇出

服务层在事件提交之后调用 broadcast()，订阅者只会收到已落盘的事件。
每个订阅是一个有界队列；队列写满说明客户端读得太慢，直接摘除，
客户端重连时凭 Last-Event-ID 从事件表补齐。
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from honeydew.core.models.event import Event

log = structlog.get_logger()


class SSEHub:
    """按 task_id 分组的订阅表"""

    def __init__(self, queue_maxsize: int = 100) -> None:
        self._queues: dict[str, list[asyncio.Queue[Event]]] = {}
        self._queue_maxsize = queue_maxsize

    def subscriber_count(self, task_id: str | None = None) -> int:
        """指定任务的订阅数；不指定时返回全部订阅数"""
        if task_id is None:
            return sum(len(queues) for queues in self._queues.values())
        return len(self._queues.get(task_id, ()))

    @asynccontextmanager
    async def subscription(self, task_id: str) -> AsyncIterator[asyncio.Queue[Event]]:
        """订阅任务事件，退出上下文即取消订阅"""
        queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=self._queue_maxsize)
        self._queues.setdefault(task_id, []).append(queue)
        try:
            yield queue
        finally:
            self._remove(task_id, queue)

    async def broadcast(self, task_id: str, event: Event) -> int:
        """推送事件，返回成功投递的订阅数"""
        delivered = 0
        for queue in list(self._queues.get(task_id, ())):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                self._remove(task_id, queue)
                await log.awarning(
                    "sse_subscriber_dropped",
                    task_id=task_id,
                    event_id=event.event_id,
                )
                continue
            delivered += 1
        return delivered

    def _remove(self, task_id: str, queue: asyncio.Queue[Event]) -> None:
        queues = self._queues.get(task_id)
        if not queues:
            return
        if queue in queues:
            queues.remove(queue)
        if not queues:
            del self._queues[task_id]
