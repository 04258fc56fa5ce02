"""出价台账路由

PUT  /api/tasks/{task_id}/bids: helper 提交或更新出价
GET  /api/tasks/{task_id}/bids: requester 查看全部出价
POST /api/tasks/{task_id}/bids/{helper_id}/accept: requester 接受出价
"""

from fastapi import APIRouter, Depends

from ..deps import Identity, get_task_service, require_helper, require_requester
from ..services.task_service import TaskService
from .schemas import SubmitBidRequest, bid_to_dict, task_to_dict

router = APIRouter()


@router.put("/api/tasks/{task_id}/bids")
async def submit_bid(
    task_id: str,
    body: SubmitBidRequest,
    identity: Identity = Depends(require_helper),
    service: TaskService = Depends(get_task_service),
):
    bid = await service.submit_bid(
        task_id,
        identity.user_id,
        rate=body.rate,
        helper_has_tools=body.helper_has_tools,
    )
    return bid_to_dict(bid)


@router.get("/api/tasks/{task_id}/bids")
async def list_bids(
    task_id: str,
    identity: Identity = Depends(require_requester),
    service: TaskService = Depends(get_task_service),
):
    bids = await service.list_bids(task_id, identity.user_id)
    return {"bids": [bid_to_dict(b) for b in bids]}


@router.post("/api/tasks/{task_id}/bids/{helper_id}/accept")
async def accept_bid(
    task_id: str,
    helper_id: str,
    identity: Identity = Depends(require_requester),
    service: TaskService = Depends(get_task_service),
):
    task = await service.accept_bid(task_id, identity.user_id, helper_id)
    return task_to_dict(task)
