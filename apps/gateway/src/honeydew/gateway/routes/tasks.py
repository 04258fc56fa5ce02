"""任务发布与查询路由

POST /api/tasks: 发布任务（requester）
GET  /api/tasks: 按调用者身份返回任务列表（requester 自己的任务 / helper 看板）
GET  /api/tasks/{task_id}: 任务详情，含审计事件
"""

from fastapi import APIRouter, Depends
from honeydew.core.exceptions import TaskNotFound

from ..deps import (
    Identity,
    get_feed_cache,
    get_identity,
    get_task_service,
    require_requester,
)
from ..services.feed_cache import TaskFeedCache
from ..services.task_service import TaskService
from .schemas import CreateTaskRequest, event_to_dict, task_to_dict

router = APIRouter()


@router.post("/api/tasks", status_code=201)
async def create_task(
    body: CreateTaskRequest,
    identity: Identity = Depends(require_requester),
    service: TaskService = Depends(get_task_service),
):
    task = await service.create_task(
        identity.user_id,
        description=body.description,
        proposed_rate=body.proposed_rate,
        requires_tools=body.requires_tools,
        photo_reference=body.photo_reference,
        address=body.address,
    )
    return task_to_dict(task)


@router.get("/api/tasks")
async def list_tasks(
    identity: Identity = Depends(get_identity),
    feed_cache: TaskFeedCache = Depends(get_feed_cache),
):
    """任务列表（最多滞后一个轮询间隔），按 created_at 倒序"""
    snapshot = await feed_cache.get(identity.user_id, identity.role)
    return {"tasks": [task_to_dict(t) for t in snapshot.tasks]}


@router.get("/api/tasks/{task_id}")
async def get_task_detail(
    task_id: str,
    identity: Identity = Depends(get_identity),
    service: TaskService = Depends(get_task_service),
):
    """任务详情（权威读取，不经过缓存）"""
    task = await service.get_task(task_id)
    if task is None:
        raise TaskNotFound(task_id)
    events = await service.get_events(task_id)
    return {
        "task": task_to_dict(task),
        "events": [event_to_dict(e) for e in events],
    }
