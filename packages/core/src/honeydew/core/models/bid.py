"""Bid Domain Model

(task_id, helper_id) 为复合主键：每个 helper 对同一任务最多一条有效出价。
出价被接受后，其 rate 复制到 Task.accepted_rate。
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class Bid(BaseModel):
    """Bid 数据模型"""

    task_id: str = Field(description="关联的 Task ID")
    helper_id: str = Field(description="出价 helper")
    rate: Decimal = Field(gt=0, description="helper 愿意接受的时薪")
    helper_has_tools: bool = Field(default=True, description="helper 是否自带工具")
    created_at: datetime = Field(description="首次出价时间")
    updated_at: datetime = Field(description="最近一次改价时间")
