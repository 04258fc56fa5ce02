"""PaymentConfig -- 支付网关配置加载

从环境变量加载配置，密钥以 SecretStr 保存，不出现在日志中。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()


class PaymentConfig(BaseModel):
    """Payments 包配置 -- 从环境变量加载

    环境变量:
        STRIPE_API_BASE: 网关地址（默认 https://api.stripe.com）
        STRIPE_SECRET_KEY: 服务端密钥
        HONEYDEW_PAYMENT_MODE: 运行模式（stripe/sandbox）
        HONEYDEW_PAYMENT_TIMEOUT_S: 调用超时（秒，默认 15）
        HONEYDEW_CURRENCY: 结算币种（默认 usd）
    """

    api_base: str = Field(
        default="https://api.stripe.com",
        description="支付网关基础 URL",
    )
    secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="网关服务端密钥",
    )
    payment_mode: Literal["stripe", "sandbox"] = Field(
        default="sandbox",
        description="运行模式：stripe / sandbox",
    )
    timeout_s: int = Field(
        default=15,
        ge=1,
        description="网关调用超时（秒）",
    )
    currency: str = Field(
        default="usd",
        min_length=3,
        max_length=3,
        description="ISO 4217 币种代码（小写）",
    )


def load_payment_config() -> PaymentConfig:
    """从环境变量加载 Payment 配置

    环境变量映射:
        STRIPE_API_BASE -> api_base
        STRIPE_SECRET_KEY -> secret_key
        HONEYDEW_PAYMENT_MODE -> payment_mode (默认 "sandbox")
        HONEYDEW_PAYMENT_TIMEOUT_S -> timeout_s (默认 15)
        HONEYDEW_CURRENCY -> currency (默认 "usd")

    Returns:
        PaymentConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("STRIPE_API_BASE"):
        kwargs["api_base"] = val

    if val := os.environ.get("STRIPE_SECRET_KEY"):
        kwargs["secret_key"] = SecretStr(val)

    if val := os.environ.get("HONEYDEW_PAYMENT_MODE"):
        kwargs["payment_mode"] = val

    if val := os.environ.get("HONEYDEW_PAYMENT_TIMEOUT_S"):
        try:
            kwargs["timeout_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="HONEYDEW_PAYMENT_TIMEOUT_S",
                value=val,
                fallback=15,
            )
            # 使用默认值，不阻塞启动

    if val := os.environ.get("HONEYDEW_CURRENCY"):
        kwargs["currency"] = val.lower()

    return PaymentConfig(**kwargs)
