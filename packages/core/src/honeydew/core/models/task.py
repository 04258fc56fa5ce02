"""Task Domain Model

tasks 表保存任务的当前状态，所有状态变化都通过条件写入完成，
并在同一事务内追加审计事件。
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from ..config import TASK_TITLE_LENGTH
from .enums import TaskStatus


class Task(BaseModel):
    """Task 数据模型

    final_amount 与 total_duration_seconds 在 confirmed -> completed 时一次性写入，
    此后不可变。
    """

    task_id: str = Field(description="唯一标识，ULID 格式")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
    requester_id: str = Field(description="发布者 ID，不可变")
    description: str = Field(description="任务描述")
    zip: str = Field(description="匹配 helper 用的邮编，不可变")
    proposed_rate: Decimal = Field(gt=0, description="发布时提出的时薪")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    helper_id: str | None = Field(default=None, description="中标 helper")
    accepted_rate: Decimal | None = Field(default=None, description="中标时薪")
    requires_tools: bool = Field(default=False, description="是否需要 helper 自带工具")
    photo_reference: str | None = Field(default=None, description="任务照片 URL")
    address: str = Field(default="", description="服务地址")
    start_time: datetime | None = Field(default=None)
    end_time: datetime | None = Field(default=None)
    total_duration_seconds: int | None = Field(default=None)
    final_amount: Decimal | None = Field(default=None)

    @property
    def title(self) -> str:
        """列表展示用标题（描述首行截断）"""
        first_line = self.description.strip().splitlines()[0] if self.description.strip() else ""
        return first_line[:TASK_TITLE_LENGTH]

    @property
    def billing_rate(self) -> Decimal:
        """计费时薪：中标价优先，否则使用发布价"""
        return self.accepted_rate if self.accepted_rate is not None else self.proposed_rate
