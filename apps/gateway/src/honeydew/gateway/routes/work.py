"""计时路由

POST /api/tasks/{task_id}/start: 中标 helper 开始计时
POST /api/tasks/{task_id}/finish: 中标 helper 结束计时并结算
"""

from fastapi import APIRouter, Depends

from ..deps import Identity, get_task_service, require_helper
from ..services.task_service import TaskService
from .schemas import task_to_dict

router = APIRouter()


@router.post("/api/tasks/{task_id}/start")
async def start_work(
    task_id: str,
    identity: Identity = Depends(require_helper),
    service: TaskService = Depends(get_task_service),
):
    task = await service.start_work(task_id, identity.user_id)
    return task_to_dict(task)


@router.post("/api/tasks/{task_id}/finish")
async def finish_work(
    task_id: str,
    identity: Identity = Depends(require_helper),
    service: TaskService = Depends(get_task_service),
):
    task = await service.finish_work(task_id, identity.user_id)
    return task_to_dict(task)
