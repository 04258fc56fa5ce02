"""任务生命周期状态机 -- 唯一的流转函数

pending -> confirmed -> completed，只能前进，没有取消状态。
所有守卫条件集中在 apply_transition() 中校验；它只计算新值，不做任何写入。
持久化层再以当前状态为条件做 compare-and-set，保证并发下只有一个调用者成功。
"""

from datetime import datetime

from .billing import Bill, compute_bill
from .exceptions import InvalidInput, InvalidTransition, PermissionDenied
from .models.bid import Bid
from .models.enums import ACTION_TRANSITIONS, TaskAction, TaskStatus
from .models.task import Task


class TransitionResult:
    """流转结果：新 Task 值，以及 finish_work 时的账单"""

    def __init__(self, task: Task, from_status: TaskStatus, bill: Bill | None = None) -> None:
        self.task = task
        self.from_status = from_status
        self.bill = bill

    @property
    def to_status(self) -> TaskStatus:
        return self.task.status


def apply_transition(
    task: Task,
    action: TaskAction,
    actor_id: str,
    now: datetime,
    bid: Bid | None = None,
) -> TransitionResult:
    """对 task 应用一个动作，返回流转后的新值

    Args:
        task: 当前 Task（权威状态）
        action: 要执行的动作
        actor_id: 执行者用户 ID
        now: 动作发生时间
        bid: accept_bid 时被接受的出价

    Returns:
        TransitionResult

    Raises:
        InvalidTransition: 状态或字段守卫不满足
        PermissionDenied: 执行者不是该动作的合法角色
    """
    from_status, to_status = ACTION_TRANSITIONS[action]
    if task.status != from_status:
        raise InvalidTransition(
            f"Cannot {action.value} task {task.task_id} in status {task.status.value}"
        )

    if action == TaskAction.ACCEPT_BID:
        return _accept_bid(task, actor_id, now, bid, to_status)
    if action == TaskAction.START_WORK:
        return _start_work(task, actor_id, now)
    return _finish_work(task, actor_id, now, to_status)


def _accept_bid(
    task: Task,
    actor_id: str,
    now: datetime,
    bid: Bid | None,
    to_status: TaskStatus,
) -> TransitionResult:
    if actor_id != task.requester_id:
        raise PermissionDenied("Only the requester can accept a bid")
    if task.helper_id is not None:
        raise InvalidTransition(f"Task {task.task_id} already has an accepted bid")
    if bid is None or bid.task_id != task.task_id:
        raise InvalidInput(f"No bid found for task {task.task_id}")

    updated = task.model_copy(
        update={
            "status": to_status,
            "helper_id": bid.helper_id,
            "accepted_rate": bid.rate,
            "updated_at": now,
        }
    )
    return TransitionResult(updated, task.status)


def _require_assigned_helper(task: Task, actor_id: str) -> None:
    if actor_id != task.helper_id:
        raise PermissionDenied("Only the assigned helper can track time on this task")


def _start_work(task: Task, actor_id: str, now: datetime) -> TransitionResult:
    _require_assigned_helper(task, actor_id)
    if task.start_time is not None:
        raise InvalidTransition(f"Task {task.task_id} has already started")

    updated = task.model_copy(update={"start_time": now, "updated_at": now})
    return TransitionResult(updated, task.status)


def _finish_work(
    task: Task,
    actor_id: str,
    now: datetime,
    to_status: TaskStatus,
) -> TransitionResult:
    _require_assigned_helper(task, actor_id)
    if task.start_time is None:
        raise InvalidTransition(f"Task {task.task_id} has not started yet")
    if task.end_time is not None:
        raise InvalidTransition(f"Task {task.task_id} has already finished")

    bill = compute_bill(task.start_time, now, task.billing_rate)
    updated = task.model_copy(
        update={
            "status": to_status,
            "end_time": now,
            "total_duration_seconds": bill.duration_seconds,
            "final_amount": bill.billed_amount,
            "updated_at": now,
        }
    )
    return TransitionResult(updated, task.status, bill)
