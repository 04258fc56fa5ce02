"""PaymentConfig 加载测试"""

import pytest
from honeydew.payments import (
    SandboxPaymentAdapter,
    StripeClient,
    build_payment_gateway,
    load_payment_config,
)
from pydantic import ValidationError

_ENV_VARS = [
    "STRIPE_API_BASE",
    "STRIPE_SECRET_KEY",
    "HONEYDEW_PAYMENT_MODE",
    "HONEYDEW_PAYMENT_TIMEOUT_S",
    "HONEYDEW_CURRENCY",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestLoadPaymentConfig:
    def test_defaults(self):
        config = load_payment_config()
        assert config.payment_mode == "sandbox"
        assert config.api_base == "https://api.stripe.com"
        assert config.timeout_s == 15
        assert config.currency == "usd"
        assert config.secret_key.get_secret_value() == ""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("STRIPE_API_BASE", "https://stripe.test")
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_live_xyz")
        monkeypatch.setenv("HONEYDEW_PAYMENT_MODE", "stripe")
        monkeypatch.setenv("HONEYDEW_PAYMENT_TIMEOUT_S", "30")
        monkeypatch.setenv("HONEYDEW_CURRENCY", "EUR")

        config = load_payment_config()

        assert config.api_base == "https://stripe.test"
        assert config.payment_mode == "stripe"
        assert config.timeout_s == 30
        assert config.currency == "eur"
        # 密钥不出现在 repr 中
        assert "sk_live_xyz" not in repr(config)

    def test_invalid_timeout_falls_back(self, monkeypatch):
        monkeypatch.setenv("HONEYDEW_PAYMENT_TIMEOUT_S", "abc")
        assert load_payment_config().timeout_s == 15

    def test_invalid_mode_rejected(self, monkeypatch):
        monkeypatch.setenv("HONEYDEW_PAYMENT_MODE", "paypal")
        with pytest.raises(ValidationError):
            load_payment_config()


class TestBuildPaymentGateway:
    def test_sandbox(self):
        assert isinstance(build_payment_gateway(load_payment_config()), SandboxPaymentAdapter)

    def test_stripe(self, monkeypatch):
        monkeypatch.setenv("HONEYDEW_PAYMENT_MODE", "stripe")
        gateway = build_payment_gateway(load_payment_config())
        assert isinstance(gateway, StripeClient)
        assert gateway.provider_name == "stripe"
