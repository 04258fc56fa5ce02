"""StripeClient -- 支付网关 REST 调用封装

通过 httpx 调用 Stripe PaymentIntents API：
- create_payment_intent(): 创建意图，返回 client_secret 供客户端确认扣款
- retrieve_payment_intent(): 查询意图状态，用于服务端确认支付结果
"""

import time
from typing import Any

import httpx
import structlog

from .exceptions import GatewayResponseError, GatewayUnreachableError, PaymentError
from .models import PaymentIntent

log = structlog.get_logger()

# 健康检查超时（硬编码，应快速响应）
HEALTH_CHECK_TIMEOUT_S = 5

# 连接类异常类型集合（触发 GatewayUnreachableError）
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.TimeoutException,
)


class StripeClient:
    """Stripe PaymentIntents 客户端"""

    provider_name = "stripe"

    def __init__(
        self,
        api_base: str = "https://api.stripe.com",
        secret_key: str = "",
        timeout_s: int = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """初始化支付网关客户端

        Args:
            api_base: 网关基础 URL
            secret_key: 服务端密钥（STRIPE_SECRET_KEY）
            timeout_s: 请求超时（秒）
            transport: 可选的 httpx transport（测试时注入 MockTransport）
        """
        self._api_base = api_base.rstrip("/")
        self._secret_key = secret_key
        self._timeout_s = timeout_s
        self._transport = transport

    async def create_payment_intent(
        self,
        amount: int,
        currency: str = "usd",
        metadata: dict[str, str] | None = None,
        idempotency_key: str | None = None,
    ) -> PaymentIntent:
        """创建支付意图

        Args:
            amount: 金额（最小货币单位），必须 > 0
            currency: 币种
            metadata: 附加到 intent 上的元数据（如 task_id）
            idempotency_key: 网关侧幂等键

        Returns:
            PaymentIntent

        Raises:
            GatewayUnreachableError: 网关连接失败或超时
            GatewayResponseError: 网关返回错误 payload
        """
        if amount <= 0:
            raise PaymentError(f"金额必须为正数: {amount}", recoverable=False)

        form: dict[str, Any] = {
            "amount": str(amount),
            "currency": currency,
            "automatic_payment_methods[enabled]": "true",
        }
        for key, value in (metadata or {}).items():
            form[f"metadata[{key}]"] = value

        headers = {}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        data = await self._request("POST", "/v1/payment_intents", data=form, headers=headers)
        return self._to_intent(data)

    async def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        """查询支付意图当前状态

        Raises:
            GatewayUnreachableError: 网关连接失败或超时
            GatewayResponseError: 网关返回错误 payload
        """
        data = await self._request("GET", f"/v1/payment_intents/{intent_id}")
        return self._to_intent(data)

    async def health_check(self) -> bool:
        """检查网关可达性

        注意: 此方法不抛出异常，所有异常内部捕获并返回 False。
        """
        url = f"{self._api_base}/v1/balance"
        try:
            async with httpx.AsyncClient(transport=self._transport) as http_client:
                resp = await http_client.get(
                    url,
                    headers=self._auth_headers(),
                    timeout=HEALTH_CHECK_TIMEOUT_S,
                )
                return resp.status_code == 200
        except Exception as e:
            log.debug("payment_health_check_failed", url=url, error=str(e))
            return False

    async def _request(
        self,
        method: str,
        path: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """发送请求并解析 JSON，统一异常包装"""
        start_time = time.monotonic()
        url = f"{self._api_base}{path}"
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._timeout_s,
            ) as http_client:
                resp = await http_client.request(
                    method,
                    url,
                    data=data,
                    headers={**self._auth_headers(), **(headers or {})},
                )
        except _CONNECTION_ERROR_TYPES as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            log.error(
                "payment_gateway_unreachable",
                method=method,
                path=path,
                error_type=type(e).__name__,
                duration_ms=duration_ms,
            )
            raise GatewayUnreachableError(api_base=self._api_base, original_error=e) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.status_code >= 400:
            error = body.get("error", {}) if isinstance(body, dict) else {}
            log.error(
                "payment_gateway_error",
                method=method,
                path=path,
                status_code=resp.status_code,
                error_type=error.get("type", ""),
                duration_ms=duration_ms,
            )
            raise GatewayResponseError(
                status_code=resp.status_code,
                error_type=error.get("type", "unknown"),
                message=error.get("message", resp.text[:200]),
            )

        log.info(
            "payment_gateway_call_completed",
            method=method,
            path=path,
            status_code=resp.status_code,
            duration_ms=duration_ms,
        )
        return body

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._secret_key}"}

    def _to_intent(self, data: dict[str, Any]) -> PaymentIntent:
        """将网关 JSON 转换为 PaymentIntent"""
        last_error = data.get("last_payment_error") or {}
        return PaymentIntent(
            intent_id=data.get("id", ""),
            client_secret=data.get("client_secret") or "",
            amount=int(data.get("amount", 0)),
            currency=data.get("currency", "usd"),
            status=data.get("status", ""),
            provider=self.provider_name,
            last_error=last_error.get("message", "") if isinstance(last_error, dict) else "",
        )
