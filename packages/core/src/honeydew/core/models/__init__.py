"""Honeydew Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .bid import Bid
from .enums import (
    ACTION_TRANSITIONS,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    EventType,
    PaymentStatus,
    Role,
    TaskAction,
    TaskStatus,
    validate_transition,
)
from .event import Event
from .payloads import (
    BidAcceptedPayload,
    BidSubmittedPayload,
    PaymentConfirmedPayload,
    PaymentCreatedPayload,
    ReviewRecordedPayload,
    StateTransitionPayload,
    TaskCreatedPayload,
    WorkCompletedPayload,
    WorkStartedPayload,
)
from .payment import Payment
from .profile import Profile
from .review import Review
from .task import Task

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskAction",
    "EventType",
    "Role",
    "PaymentStatus",
    # 状态机
    "ACTION_TRANSITIONS",
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "validate_transition",
    # 实体
    "Task",
    "Bid",
    "Review",
    "Profile",
    "Payment",
    # Event
    "Event",
    # Payloads
    "TaskCreatedPayload",
    "BidSubmittedPayload",
    "StateTransitionPayload",
    "BidAcceptedPayload",
    "WorkStartedPayload",
    "WorkCompletedPayload",
    "PaymentCreatedPayload",
    "PaymentConfirmedPayload",
    "ReviewRecordedPayload",
]
