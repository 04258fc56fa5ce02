"""SandboxPaymentAdapter 测试"""

import pytest
from honeydew.payments import PaymentError, SandboxPaymentAdapter
from honeydew.payments.exceptions import GatewayResponseError


class TestSandboxPaymentAdapter:
    async def test_auto_succeed(self):
        adapter = SandboxPaymentAdapter()
        intent = await adapter.create_payment_intent(amount=2500, metadata={"task_id": "T1"})

        assert intent.intent_id.startswith("pi_sandbox_")
        assert intent.client_secret.startswith(f"{intent.intent_id}_secret_")
        assert (await adapter.retrieve_payment_intent(intent.intent_id)).succeeded

    async def test_manual_confirmation(self):
        adapter = SandboxPaymentAdapter(auto_succeed=False)
        intent = await adapter.create_payment_intent(amount=2500)
        assert not intent.succeeded
        assert not intent.failed

        adapter.simulate_confirmation(intent.intent_id, succeed=False)
        declined = await adapter.retrieve_payment_intent(intent.intent_id)
        assert declined.failed

        adapter.simulate_confirmation(intent.intent_id, succeed=True)
        assert (await adapter.retrieve_payment_intent(intent.intent_id)).succeeded

    async def test_unknown_intent(self):
        with pytest.raises(GatewayResponseError) as exc_info:
            await SandboxPaymentAdapter().retrieve_payment_intent("pi_missing")
        assert exc_info.value.status_code == 404

    async def test_non_positive_amount(self):
        with pytest.raises(PaymentError):
            await SandboxPaymentAdapter().create_payment_intent(amount=-1)

    async def test_health_check(self):
        assert await SandboxPaymentAdapter().health_check() is True
