"""Payment Domain Model

每个任务至多一条支付记录；金额在创建支付意图时按 final_amount + tip 固定。
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from .enums import PaymentStatus


class Payment(BaseModel):
    """Payment 数据模型"""

    task_id: str = Field(description="关联的 Task ID")
    intent_id: str = Field(description="支付网关返回的 intent 标识")
    client_secret: str = Field(description="客户端确认支付用的令牌")
    amount: Decimal = Field(description="账单金额（不含小费）")
    tip: Decimal = Field(default=Decimal("0.00"), description="小费")
    total: Decimal = Field(description="实际扣款金额")
    currency: str = Field(default="usd")
    status: PaymentStatus = Field(default=PaymentStatus.REQUIRES_CONFIRMATION)
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
