"""Event Payload 子类型

所有审计事件的结构化 payload 定义。金额字段统一以字符串保存，避免浮点误差。
"""

from pydantic import BaseModel, Field

from .enums import TaskStatus


class TaskCreatedPayload(BaseModel):
    """TASK_CREATED 事件 payload"""

    title: str
    zip: str
    proposed_rate: str
    requires_tools: bool = False


class BidSubmittedPayload(BaseModel):
    """BID_SUBMITTED 事件 payload"""

    helper_id: str
    rate: str
    updated: bool = Field(default=False, description="是否覆盖了已有出价")


class StateTransitionPayload(BaseModel):
    """状态相关事件的公共字段"""

    from_status: TaskStatus
    to_status: TaskStatus


class BidAcceptedPayload(StateTransitionPayload):
    """BID_ACCEPTED 事件 payload"""

    helper_id: str
    accepted_rate: str


class WorkStartedPayload(StateTransitionPayload):
    """WORK_STARTED 事件 payload"""

    start_time: str


class WorkCompletedPayload(StateTransitionPayload):
    """WORK_COMPLETED 事件 payload"""

    end_time: str
    total_duration_seconds: int
    billed_minutes: int
    final_amount: str


class PaymentCreatedPayload(BaseModel):
    """PAYMENT_CREATED 事件 payload"""

    intent_id: str
    amount: str
    tip: str
    total: str
    currency: str


class PaymentConfirmedPayload(BaseModel):
    """PAYMENT_CONFIRMED 事件 payload"""

    intent_id: str
    status: str


class ReviewRecordedPayload(BaseModel):
    """REVIEW_RECORDED 事件 payload"""

    review_id: str
    helper_id: str
    rating: int
    average_rating: str | None = None
    rating_count: int = 0
