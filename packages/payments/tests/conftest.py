"""Payments 包测试 fixtures"""

import json

import httpx
import pytest


def stripe_intent_payload(
    intent_id: str = "pi_123",
    amount: int = 6250,
    status: str = "requires_payment_method",
    last_error: dict | None = None,
) -> dict:
    """Stripe PaymentIntent JSON 的最小子集"""
    return {
        "id": intent_id,
        "object": "payment_intent",
        "amount": amount,
        "currency": "usd",
        "status": status,
        "client_secret": f"{intent_id}_secret_abc",
        "last_payment_error": last_error,
    }


@pytest.fixture
def intent_payload():
    return stripe_intent_payload


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def mock_transport_factory(recorded_requests):
    """根据 handler 构造记录请求的 MockTransport"""

    def factory(status_code: int, body: dict) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return httpx.Response(status_code, content=json.dumps(body))

        return httpx.MockTransport(handler)

    return factory
