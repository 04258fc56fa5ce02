"""数据模型 -- PaymentIntent

所有网关实现（Stripe、Sandbox）统一返回此类型。
"""

from pydantic import BaseModel, Field


class PaymentIntent(BaseModel):
    """支付意图

    amount 为最小货币单位（分）。
    """

    intent_id: str = Field(description="网关侧 intent 标识")
    client_secret: str = Field(default="", description="客户端确认支付用的令牌")
    amount: int = Field(ge=0, description="金额（最小货币单位）")
    currency: str = Field(default="usd")
    status: str = Field(description="网关原始状态，如 requires_payment_method / succeeded")
    provider: str = Field(default="", description="网关名称")
    last_error: str = Field(default="", description="最近一次扣款失败原因")

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"

    @property
    def failed(self) -> bool:
        # 扣款失败后 intent 会退回 requires_payment_method 并带上失败原因
        if self.status == "canceled":
            return True
        return self.status == "requires_payment_method" and bool(self.last_error)
