"""SandboxPaymentAdapter -- 本地沙箱支付网关

与 StripeClient 接口一致，不发起任何网络请求：
意图保存在内存中，客户端“确认”后由 simulate_confirmation() 推进状态。
用于本地开发与测试（HONEYDEW_PAYMENT_MODE=sandbox）。
"""

import asyncio
import secrets

from ulid import ULID

from .exceptions import GatewayResponseError, PaymentError
from .models import PaymentIntent


class SandboxPaymentAdapter:
    """沙箱网关：intent 默认立即视为客户端已确认成功

    auto_succeed=False 时 intent 停留在 requires_payment_method，
    需调用 simulate_confirmation() 手动推进。
    """

    provider_name = "sandbox"

    def __init__(self, auto_succeed: bool = True) -> None:
        self._auto_succeed = auto_succeed
        self._intents: dict[str, PaymentIntent] = {}

    async def create_payment_intent(
        self,
        amount: int,
        currency: str = "usd",
        metadata: dict[str, str] | None = None,
        idempotency_key: str | None = None,
    ) -> PaymentIntent:
        """创建沙箱意图"""
        if amount <= 0:
            raise PaymentError(f"金额必须为正数: {amount}", recoverable=False)

        # 模拟少量延迟
        await asyncio.sleep(0)

        intent_id = f"pi_sandbox_{ULID()}"
        intent = PaymentIntent(
            intent_id=intent_id,
            client_secret=f"{intent_id}_secret_{secrets.token_hex(8)}",
            amount=amount,
            currency=currency,
            status="succeeded" if self._auto_succeed else "requires_payment_method",
            provider=self.provider_name,
        )
        self._intents[intent_id] = intent
        return intent

    async def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        """查询沙箱意图"""
        intent = self._intents.get(intent_id)
        if intent is None:
            raise GatewayResponseError(
                status_code=404,
                error_type="invalid_request_error",
                message=f"No such payment_intent: {intent_id}",
            )
        return intent

    def simulate_confirmation(self, intent_id: str, succeed: bool = True) -> PaymentIntent:
        """模拟客户端确认扣款的结果"""
        intent = self._intents[intent_id]
        if succeed:
            updated = intent.model_copy(update={"status": "succeeded", "last_error": ""})
        else:
            updated = intent.model_copy(
                update={
                    "status": "requires_payment_method",
                    "last_error": "Your card was declined.",
                }
            )
        self._intents[intent_id] = updated
        return updated

    async def health_check(self) -> bool:
        """沙箱始终可用"""
        return True
