"""枚举定义

包含 TaskStatus 状态机、TaskAction 流转动作、EventType、Role、PaymentStatus 枚举，
以及 VALID_TRANSITIONS 合法流转映射和 TERMINAL_STATES 终态集合。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态机：pending -> confirmed -> completed，只能前进"""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"


class TaskAction(StrEnum):
    """触发状态机的动作"""

    ACCEPT_BID = "accept_bid"
    START_WORK = "start_work"
    FINISH_WORK = "finish_work"


# 每个动作要求的起始状态与到达状态
ACTION_TRANSITIONS: dict[TaskAction, tuple[TaskStatus, TaskStatus]] = {
    TaskAction.ACCEPT_BID: (TaskStatus.PENDING, TaskStatus.CONFIRMED),
    # start_work 只写 start_time，状态保持 confirmed
    TaskAction.START_WORK: (TaskStatus.CONFIRMED, TaskStatus.CONFIRMED),
    TaskAction.FINISH_WORK: (TaskStatus.CONFIRMED, TaskStatus.COMPLETED),
}

# 合法状态流转（不含自环）
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.CONFIRMED},
    TaskStatus.CONFIRMED: {TaskStatus.COMPLETED},
    # 终态不可再流转
    TaskStatus.COMPLETED: set(),
}

TERMINAL_STATES: set[TaskStatus] = {TaskStatus.COMPLETED}


class Role(StrEnum):
    """身份角色"""

    USER = "user"
    HELPER = "helper"


class EventType(StrEnum):
    """任务审计事件类型"""

    TASK_CREATED = "TASK_CREATED"
    BID_SUBMITTED = "BID_SUBMITTED"
    BID_ACCEPTED = "BID_ACCEPTED"
    WORK_STARTED = "WORK_STARTED"
    WORK_COMPLETED = "WORK_COMPLETED"
    PAYMENT_CREATED = "PAYMENT_CREATED"
    PAYMENT_CONFIRMED = "PAYMENT_CONFIRMED"
    REVIEW_RECORDED = "REVIEW_RECORDED"


class PaymentStatus(StrEnum):
    """支付状态"""

    REQUIRES_CONFIRMATION = "requires_confirmation"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed
