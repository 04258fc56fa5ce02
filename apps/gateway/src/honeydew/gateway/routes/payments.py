"""支付路由

POST /api/tasks/{task_id}/payment: requester 为已完成任务创建支付意图（可附小费）
POST /api/tasks/{task_id}/payment/confirm: 客户端扣款后向网关确认结果
GET  /api/tasks/{task_id}/payment: 查询支付记录
"""

from fastapi import APIRouter, Depends
from honeydew.core.exceptions import PaymentNotFound

from ..deps import Identity, get_identity, get_payment_service, require_requester
from ..services.payment_service import PaymentService
from .schemas import PaymentRequest, payment_to_dict

router = APIRouter()


@router.post("/api/tasks/{task_id}/payment", status_code=201)
async def create_payment(
    task_id: str,
    body: PaymentRequest | None = None,
    identity: Identity = Depends(require_requester),
    service: PaymentService = Depends(get_payment_service),
):
    tip = body.tip if body is not None else None
    payment = await service.create_payment(task_id, identity.user_id, tip=tip)
    return payment_to_dict(payment)


@router.post("/api/tasks/{task_id}/payment/confirm")
async def confirm_payment(
    task_id: str,
    identity: Identity = Depends(require_requester),
    service: PaymentService = Depends(get_payment_service),
):
    payment = await service.confirm_payment(task_id, identity.user_id)
    return payment_to_dict(payment)


@router.get("/api/tasks/{task_id}/payment")
async def get_payment(
    task_id: str,
    identity: Identity = Depends(get_identity),
    service: PaymentService = Depends(get_payment_service),
):
    payment = await service.get_payment(task_id, identity.user_id)
    if payment is None:
        raise PaymentNotFound(task_id)
    return payment_to_dict(payment)
