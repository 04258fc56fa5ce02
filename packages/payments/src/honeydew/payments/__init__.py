"""Honeydew Payments -- 支付网关抽象层

packages/payments 的公开接口导出。
"""

from typing import Protocol

from .client import StripeClient
from .config import PaymentConfig, load_payment_config
from .exceptions import GatewayResponseError, GatewayUnreachableError, PaymentError
from .models import PaymentIntent
from .sandbox_adapter import SandboxPaymentAdapter


class PaymentGateway(Protocol):
    """支付网关接口 -- StripeClient 与 SandboxPaymentAdapter 均满足"""

    provider_name: str

    async def create_payment_intent(
        self,
        amount: int,
        currency: str = "usd",
        metadata: dict[str, str] | None = None,
        idempotency_key: str | None = None,
    ) -> PaymentIntent: ...

    async def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent: ...

    async def health_check(self) -> bool: ...


def build_payment_gateway(config: PaymentConfig) -> PaymentGateway:
    """根据配置选择网关实现"""
    if config.payment_mode == "stripe":
        return StripeClient(
            api_base=config.api_base,
            secret_key=config.secret_key.get_secret_value(),
            timeout_s=config.timeout_s,
        )
    return SandboxPaymentAdapter()


__all__ = [
    "PaymentIntent",
    "PaymentGateway",
    "StripeClient",
    "SandboxPaymentAdapter",
    "PaymentConfig",
    "load_payment_config",
    "build_payment_gateway",
    "PaymentError",
    "GatewayUnreachableError",
    "GatewayResponseError",
]
