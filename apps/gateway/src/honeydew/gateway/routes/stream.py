"""SSE 事件流路由

GET /api/stream/task/{task_id}: 任务审计事件流（历史 + 实时，Last-Event-ID 断线重连，心跳保活）
    仅发布者与中标 helper 可订阅。
GET /api/stream/feed: 当前调用者的任务列表快照，每个轮询间隔推送一次

完成后的任务仍会产生支付、评价事件，因此任务流不在终态主动关闭，
由客户端断开结束。
"""

import asyncio
import json

from fastapi import APIRouter, Depends, Request
from honeydew.core.config import SSE_HEARTBEAT_INTERVAL
from honeydew.core.exceptions import PermissionDenied, TaskNotFound
from honeydew.core.models.event import Event
from honeydew.core.store import StoreGroup
from sse_starlette.sse import EventSourceResponse

from ..deps import Identity, get_feed_cache, get_identity, get_sse_hub, get_store_group
from ..services.feed_cache import FeedPoller, TaskFeedCache
from ..services.sse_hub import SSEHub
from .schemas import event_to_dict, task_to_dict

router = APIRouter()


def _event_to_sse(event: Event) -> dict:
    return {
        "id": event.event_id,
        "event": event.type.value,
        "data": json.dumps(event_to_dict(event), ensure_ascii=False),
    }


@router.get("/api/stream/task/{task_id}")
async def stream_task_events(
    task_id: str,
    request: Request,
    identity: Identity = Depends(get_identity),
    store_group: StoreGroup = Depends(get_store_group),
    sse_hub: SSEHub = Depends(get_sse_hub),
):
    """任务事件流

    先订阅再读历史，避免两者之间提交的事件丢失；按 event_id 去重。
    """
    task = await store_group.task_store.get_task(task_id)
    if task is None:
        raise TaskNotFound(task_id)
    if identity.user_id not in (task.requester_id, task.helper_id):
        raise PermissionDenied("Only task participants can stream its events")
    last_event_id = request.headers.get("last-event-id")

    async def event_generator():
        async with sse_hub.subscription(task_id) as queue:
            if last_event_id:
                history = await store_group.event_store.get_events_after(
                    task_id, last_event_id
                )
            else:
                history = await store_group.event_store.get_events_for_task(task_id)

            seen: set[str] = set()
            for event in history:
                seen.add(event.event_id)
                yield _event_to_sse(event)

            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=SSE_HEARTBEAT_INTERVAL)
                except TimeoutError:
                    yield {"comment": "heartbeat"}
                    continue
                if event.event_id in seen:
                    continue
                seen.add(event.event_id)
                yield _event_to_sse(event)

    return EventSourceResponse(event_generator())


@router.get("/api/stream/feed")
async def stream_feed(
    identity: Identity = Depends(get_identity),
    feed_cache: TaskFeedCache = Depends(get_feed_cache),
):
    """任务列表轮询流，客户端断开即取消轮询"""
    poller = FeedPoller(feed_cache, identity.user_id, identity.role)

    async def feed_generator():
        async for tasks in poller.snapshots():
            yield {
                "event": "feed",
                "data": json.dumps(
                    {"tasks": [task_to_dict(t) for t in tasks]},
                    ensure_ascii=False,
                ),
            }

    return EventSourceResponse(feed_generator())
