"""PaymentService -- 账单支付（含小费）

金额固定为 final_amount + tip，按分取整后交给支付网关创建意图；
客户端用 client_secret 完成扣款后，服务端再向网关查询意图状态确认结果。
网关失败一律包装为 ExternalServiceFailure：记录细节日志，对外只返回通用信息。
"""

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

import structlog
from honeydew.core.billing import payment_total, round_cents, to_minor_units
from honeydew.core.exceptions import (
    ExternalServiceFailure,
    InvalidTransition,
    PermissionDenied,
    TaskNotFound,
)
from honeydew.core.models import (
    Event,
    EventType,
    Payment,
    PaymentConfirmedPayload,
    PaymentCreatedPayload,
    PaymentStatus,
    Task,
    TaskStatus,
)
from honeydew.core.store import StoreGroup, guarded_write_with_event
from honeydew.payments import PaymentError, PaymentGateway
from ulid import ULID

from .task_service import utc_now

log = structlog.get_logger()


def _idempotency_key(task_id: str, replaced: Payment | None, total: Decimal) -> str:
    """网关幂等键：同一次尝试的重复请求复用同一意图，失败后的重试换新键"""
    attempt = replaced.intent_id if replaced is not None else "first"
    return f"{task_id}:{attempt}:{to_minor_units(total)}"


class PaymentService:
    """支付业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        gateway: PaymentGateway,
        currency: str = "usd",
        sse_hub=None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._stores = store_group
        self._gateway = gateway
        self._currency = currency
        self._sse_hub = sse_hub
        self._clock = clock

    async def create_payment(
        self,
        task_id: str,
        requester_id: str,
        tip: Decimal | None = None,
    ) -> Payment:
        """为已完成的任务创建支付意图

        已有进行中的支付意图时直接返回它（客户端重复提交），
        已支付成功时拒绝。

        Raises:
            TaskNotFound / PermissionDenied
            InvalidInput: 小费为负数
            InvalidTransition: 任务未完成或已支付
            ExternalServiceFailure: 网关调用失败
        """
        task = await self._require_payable_task(task_id, requester_id)
        amount = round_cents(task.final_amount)
        tip_amount = round_cents(Decimal(tip or 0))
        total = payment_total(amount, tip_amount)

        existing = await self._stores.payment_store.get_payment(task_id)
        if existing is not None:
            if existing.status == PaymentStatus.SUCCEEDED:
                raise InvalidTransition(f"Task {task_id} has already been paid")
            if existing.status == PaymentStatus.REQUIRES_CONFIRMATION:
                return existing

        try:
            intent = await self._gateway.create_payment_intent(
                amount=to_minor_units(total),
                currency=self._currency,
                metadata={"task_id": task_id},
                idempotency_key=_idempotency_key(task_id, existing, total),
            )
        except PaymentError as e:
            await log.aerror(
                "payment_gateway_failed",
                task_id=task_id,
                operation="create_payment_intent",
                error_type=type(e).__name__,
                error=str(e),
            )
            raise ExternalServiceFailure("payment gateway") from e

        now = self._clock()
        payment = Payment(
            task_id=task_id,
            intent_id=intent.intent_id,
            client_secret=intent.client_secret,
            amount=amount,
            tip=tip_amount,
            total=total,
            currency=self._currency,
            status=PaymentStatus.REQUIRES_CONFIRMATION,
            created_at=now,
            updated_at=now,
        )
        event = self._build_event(
            task_id,
            EventType.PAYMENT_CREATED,
            requester_id,
            PaymentCreatedPayload(
                intent_id=intent.intent_id,
                amount=str(amount),
                tip=str(tip_amount),
                total=str(total),
                currency=self._currency,
            ).model_dump(),
        )
        applied = await guarded_write_with_event(
            self._stores.conn,
            self._stores.event_store,
            lambda: self._stores.payment_store.save_payment(payment),
            event,
        )
        if not applied:
            # 并发请求已写入另一个意图
            current = await self._stores.payment_store.get_payment(task_id)
            if current is not None and current.status != PaymentStatus.SUCCEEDED:
                return current
            raise InvalidTransition(f"Task {task_id} has already been paid")

        await log.ainfo(
            "payment_created",
            task_id=task_id,
            intent_id=intent.intent_id,
            total=str(total),
            provider=intent.provider,
        )
        await self._broadcast(event)
        return payment

    async def confirm_payment(self, task_id: str, requester_id: str) -> Payment:
        """向网关查询意图状态并落盘

        意图仍在处理中时保持 requires_confirmation 不变。

        Raises:
            TaskNotFound / PermissionDenied / InvalidTransition
            ExternalServiceFailure: 网关调用失败
        """
        task = await self._get_task(task_id)
        if task.requester_id != requester_id:
            raise PermissionDenied("Only the requester can pay for this task")
        payment = await self._stores.payment_store.get_payment(task_id)
        if payment is None:
            raise InvalidTransition(f"No payment has been started for task {task_id}")
        if payment.status == PaymentStatus.SUCCEEDED:
            return payment

        try:
            intent = await self._gateway.retrieve_payment_intent(payment.intent_id)
        except PaymentError as e:
            await log.aerror(
                "payment_gateway_failed",
                task_id=task_id,
                operation="retrieve_payment_intent",
                error_type=type(e).__name__,
                error=str(e),
            )
            raise ExternalServiceFailure("payment gateway") from e

        if intent.succeeded:
            new_status = PaymentStatus.SUCCEEDED
        elif intent.failed:
            new_status = PaymentStatus.FAILED
        else:
            return payment

        now = self._clock()
        event = self._build_event(
            task_id,
            EventType.PAYMENT_CONFIRMED,
            requester_id,
            PaymentConfirmedPayload(
                intent_id=payment.intent_id,
                status=new_status.value,
            ).model_dump(),
        )
        applied = await guarded_write_with_event(
            self._stores.conn,
            self._stores.event_store,
            lambda: self._stores.payment_store.update_status(
                task_id, payment.intent_id, new_status, now
            ),
            event,
        )
        if applied:
            await log.ainfo(
                "payment_confirmed",
                task_id=task_id,
                intent_id=payment.intent_id,
                status=new_status.value,
            )
            await self._broadcast(event)

        current = await self._stores.payment_store.get_payment(task_id)
        return current if current is not None else payment

    async def get_payment(self, task_id: str, requester_id: str) -> Payment | None:
        """查询任务的支付记录"""
        task = await self._get_task(task_id)
        if requester_id not in (task.requester_id, task.helper_id):
            raise PermissionDenied("Only task participants can view its payment")
        return await self._stores.payment_store.get_payment(task_id)

    async def _get_task(self, task_id: str) -> Task:
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    async def _require_payable_task(self, task_id: str, requester_id: str) -> Task:
        task = await self._get_task(task_id)
        if task.requester_id != requester_id:
            raise PermissionDenied("Only the requester can pay for this task")
        if task.status != TaskStatus.COMPLETED or task.final_amount is None:
            raise InvalidTransition(f"Task {task_id} is not completed yet")
        return task

    def _build_event(
        self,
        task_id: str,
        event_type: EventType,
        actor_id: str,
        payload: dict,
    ) -> Event:
        return Event(
            event_id=str(ULID()),
            task_id=task_id,
            ts=self._clock(),
            type=event_type,
            actor_id=actor_id,
            payload=payload,
            trace_id=f"trace-{task_id}",
        )

    async def _broadcast(self, event: Event) -> None:
        if self._sse_hub:
            await self._sse_hub.broadcast(event.task_id, event)
