"""TaskService -- 任务发布、出价、接受、计时业务逻辑

流程：
1. 读取权威 Task 状态，交给 lifecycle.apply_transition() 集中校验守卫并计算新值
2. 以读取时的状态为条件做单条 compare-and-set 写入，同事务追加审计事件
3. 条件写入未命中（并发下被抢先）时重新读取，抛出对应的领域异常
4. 提交后广播事件给 SSE 订阅者
"""

from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import structlog
from honeydew.core.exceptions import (
    BidNotAllowed,
    InvalidInput,
    InvalidTransition,
    PermissionDenied,
    ProfileNotFound,
    TaskNotFound,
)
from honeydew.core.lifecycle import apply_transition
from honeydew.core.models import (
    Bid,
    BidAcceptedPayload,
    BidSubmittedPayload,
    Event,
    EventType,
    Profile,
    Role,
    Task,
    TaskAction,
    TaskCreatedPayload,
    TaskStatus,
    WorkCompletedPayload,
    WorkStartedPayload,
)
from honeydew.core.store import (
    StoreGroup,
    create_task_with_initial_event,
    guarded_write_with_event,
)
from ulid import ULID

log = structlog.get_logger()


def utc_now() -> datetime:
    return datetime.now(UTC)


class TaskService:
    """任务业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        sse_hub=None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._stores = store_group
        self._sse_hub = sse_hub
        self._clock = clock

    # ---- 发布 ----

    async def create_task(
        self,
        requester_id: str,
        description: str,
        proposed_rate: Decimal,
        requires_tools: bool = False,
        photo_reference: str | None = None,
        address: str | None = None,
    ) -> Task:
        """发布任务

        zip 取自发布者资料；address 优先使用自定义地址，否则取资料中的默认地址。

        Raises:
            ProfileNotFound: 发布者资料不存在
            InvalidInput: 描述为空或时薪非正数
        """
        profile = await self._require_profile(requester_id)
        if profile.role != Role.USER:
            raise PermissionDenied("Only requesters can post tasks")
        if not description.strip():
            raise InvalidInput("Task description is required")
        if proposed_rate <= 0:
            raise InvalidInput(f"Proposed rate must be positive, got {proposed_rate}")

        now = self._clock()
        task = Task(
            task_id=str(ULID()),
            created_at=now,
            updated_at=now,
            requester_id=requester_id,
            description=description.strip(),
            zip=profile.zip,
            proposed_rate=proposed_rate,
            requires_tools=requires_tools,
            photo_reference=photo_reference,
            address=(address or "").strip() or profile.address,
        )
        event = self._build_event(
            task.task_id,
            EventType.TASK_CREATED,
            requester_id,
            TaskCreatedPayload(
                title=task.title,
                zip=task.zip,
                proposed_rate=str(task.proposed_rate),
                requires_tools=task.requires_tools,
            ).model_dump(),
        )
        await create_task_with_initial_event(
            self._stores.conn,
            self._stores.task_store,
            self._stores.event_store,
            task,
            event,
        )
        await log.ainfo(
            "task_created",
            task_id=task.task_id,
            requester_id=requester_id,
            zip=task.zip,
        )
        await self._broadcast(event)
        return task

    # ---- 出价台账 ----

    async def submit_bid(
        self,
        task_id: str,
        helper_id: str,
        rate: Decimal,
        helper_has_tools: bool = True,
    ) -> Bid:
        """提交或更新出价

        Raises:
            TaskNotFound: 任务不存在
            ProfileNotFound: 出价者没有资料
            PermissionDenied: 出价者不是 helper
            InvalidInput: 时薪非正数
            BidNotAllowed: 任务不在 pending 或已分配 helper，或 helper 缺少所需工具
        """
        if rate <= 0:
            raise InvalidInput(f"Bid rate must be positive, got {rate}")
        task = await self._require_task(task_id)
        profile = await self._require_profile(helper_id)
        if profile.role != Role.HELPER:
            raise PermissionDenied("Only helpers can bid on tasks")
        if task.status != TaskStatus.PENDING or task.helper_id is not None:
            raise BidNotAllowed(f"Task {task_id} is no longer accepting bids")
        if task.requires_tools and not helper_has_tools:
            raise BidNotAllowed(
                "You must have the required tools, equipment, and materials to perform this task"
            )

        now = self._clock()
        existing = await self._stores.bid_store.get_bid(task_id, helper_id)
        bid = Bid(
            task_id=task_id,
            helper_id=helper_id,
            rate=rate,
            helper_has_tools=helper_has_tools,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        event = self._build_event(
            task_id,
            EventType.BID_SUBMITTED,
            helper_id,
            BidSubmittedPayload(
                helper_id=helper_id,
                rate=str(rate),
                updated=existing is not None,
            ).model_dump(),
        )
        applied = await guarded_write_with_event(
            self._stores.conn,
            self._stores.event_store,
            lambda: self._stores.bid_store.upsert_bid(bid),
            event,
        )
        if not applied:
            # 读取之后任务被接受
            raise BidNotAllowed(f"Task {task_id} is no longer accepting bids")

        await log.ainfo(
            "bid_submitted",
            task_id=task_id,
            helper_id=helper_id,
            rate=str(rate),
            updated=existing is not None,
        )
        await self._broadcast(event)
        return bid

    async def list_bids(self, task_id: str, requester_id: str) -> list[Bid]:
        """发布者查看任务的全部出价"""
        task = await self._require_task(task_id)
        if task.requester_id != requester_id:
            raise PermissionDenied("Only the requester can view bids for this task")
        return await self._stores.bid_store.list_bids_for_task(task_id)

    async def accept_bid(self, task_id: str, requester_id: str, helper_id: str) -> Task:
        """接受出价：pending -> confirmed

        Raises:
            TaskNotFound: 任务不存在
            PermissionDenied: 不是发布者
            InvalidTransition: 任务已不在 pending 或已有中标 helper
            InvalidInput: 该 helper 没有对此任务出价
        """
        task = await self._require_task(task_id)
        bid = await self._stores.bid_store.get_bid(task_id, helper_id)
        now = self._clock()
        result = apply_transition(task, TaskAction.ACCEPT_BID, requester_id, now, bid=bid)

        event = self._build_event(
            task_id,
            EventType.BID_ACCEPTED,
            requester_id,
            BidAcceptedPayload(
                from_status=result.from_status,
                to_status=result.to_status,
                helper_id=helper_id,
                accepted_rate=str(result.task.accepted_rate),
            ).model_dump(),
        )
        applied = await guarded_write_with_event(
            self._stores.conn,
            self._stores.event_store,
            lambda: self._stores.task_store.confirm_with_bid(task_id, helper_id, now),
            event,
        )
        if not applied:
            raise InvalidTransition(f"Task {task_id} already has an accepted bid")

        await log.ainfo(
            "bid_accepted",
            task_id=task_id,
            helper_id=helper_id,
            accepted_rate=str(result.task.accepted_rate),
        )
        await self._broadcast(event)
        return await self._require_task(task_id)

    # ---- 计时 ----

    async def start_work(self, task_id: str, helper_id: str) -> Task:
        """helper 开始计时

        Raises:
            TaskNotFound / PermissionDenied / InvalidTransition
        """
        task = await self._require_task(task_id)
        now = self._clock()
        result = apply_transition(task, TaskAction.START_WORK, helper_id, now)

        event = self._build_event(
            task_id,
            EventType.WORK_STARTED,
            helper_id,
            WorkStartedPayload(
                from_status=result.from_status,
                to_status=result.to_status,
                start_time=now.isoformat(),
            ).model_dump(),
        )
        applied = await guarded_write_with_event(
            self._stores.conn,
            self._stores.event_store,
            lambda: self._stores.task_store.mark_started(task_id, helper_id, now),
            event,
        )
        if not applied:
            raise InvalidTransition(f"Task {task_id} has already started")

        await log.ainfo("work_started", task_id=task_id, helper_id=helper_id)
        await self._broadcast(event)
        return result.task

    async def finish_work(self, task_id: str, helper_id: str) -> Task:
        """helper 结束计时：confirmed -> completed，同时一次性写入时长与金额

        Raises:
            TaskNotFound / PermissionDenied / InvalidTransition
        """
        task = await self._require_task(task_id)
        now = self._clock()
        result = apply_transition(task, TaskAction.FINISH_WORK, helper_id, now)
        bill = result.bill
        completed = result.task

        event = self._build_event(
            task_id,
            EventType.WORK_COMPLETED,
            helper_id,
            WorkCompletedPayload(
                from_status=result.from_status,
                to_status=result.to_status,
                end_time=now.isoformat(),
                total_duration_seconds=bill.duration_seconds,
                billed_minutes=bill.billed_minutes,
                final_amount=str(bill.billed_amount),
            ).model_dump(),
        )
        applied = await guarded_write_with_event(
            self._stores.conn,
            self._stores.event_store,
            lambda: self._stores.task_store.mark_completed(
                task_id,
                helper_id,
                expected_start_time=task.start_time,
                end_time=now,
                total_duration_seconds=bill.duration_seconds,
                final_amount=bill.billed_amount,
            ),
            event,
        )
        if not applied:
            raise InvalidTransition(f"Task {task_id} has already finished")

        await log.ainfo(
            "task_completed",
            task_id=task_id,
            helper_id=helper_id,
            billed_minutes=bill.billed_minutes,
            final_amount=str(bill.billed_amount),
        )
        await self._broadcast(event)
        return completed

    # ---- 查询 ----

    async def get_task(self, task_id: str) -> Task | None:
        """查询任务详情"""
        return await self._stores.task_store.get_task(task_id)

    async def list_tasks_for_viewer(self, user_id: str, role: Role) -> list[Task]:
        """按身份返回任务列表：发布者看自己的任务，helper 看同邮编看板"""
        if role == Role.HELPER:
            profile = await self._require_profile(user_id)
            return await self._stores.task_store.list_tasks_for_helper(user_id, profile.zip)
        return await self._stores.task_store.list_tasks_for_requester(user_id)

    async def get_events(self, task_id: str) -> list[Event]:
        """查询任务审计事件"""
        await self._require_task(task_id)
        return await self._stores.event_store.get_events_for_task(task_id)

    # ---- 内部工具 ----

    async def _require_task(self, task_id: str) -> Task:
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    async def _require_profile(self, user_id: str) -> Profile:
        profile = await self._stores.profile_store.get_profile(user_id)
        if profile is None:
            raise ProfileNotFound(user_id)
        return profile

    def _build_event(
        self,
        task_id: str,
        event_type: EventType,
        actor_id: str,
        payload: dict[str, Any],
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
