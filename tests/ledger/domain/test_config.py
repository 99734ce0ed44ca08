"""Tests for LedgerConfig."""

import pytest

from ledger.config import COMPLETED_EVENT_TYPES, LedgerConfig
from ledger.errors import InvalidInput


class TestLedgerConfig:
    def test_defaults_use_fake_adapters(self):
        config = LedgerConfig()
        assert config.gateway_adapter == "fake"
        assert config.mail_adapter == "fake"
        assert config.completed_event_types == COMPLETED_EVENT_TYPES

    def test_redirect_urls(self):
        config = LedgerConfig(redirect_base_url="https://shop.example.com/")
        assert config.success_url == "https://shop.example.com/order-status?session_id={CHECKOUT_SESSION_ID}"
        assert config.cancel_url == "https://shop.example.com/checkout"

    def test_admin_token_not_in_repr(self):
        assert "s3cret" not in repr(LedgerConfig(admin_token="s3cret"))

    def test_stripe_requires_secrets(self):
        with pytest.raises(InvalidInput):
            LedgerConfig(gateway_adapter="stripe")

    def test_unknown_adapter_rejected(self):
        with pytest.raises(InvalidInput):
            LedgerConfig(mail_adapter="carrier-pigeon")

    def test_lease_ttl_must_be_positive(self):
        with pytest.raises(InvalidInput):
            LedgerConfig(lease_ttl_seconds=0)


class TestLedgerConfigFromEnv:
    def test_empty_environment_gives_defaults(self):
        assert LedgerConfig.from_env({}) == LedgerConfig()

    def test_reads_variables(self):
        config = LedgerConfig.from_env(
            {
                "LEDGER_GATEWAY_ADAPTER": "stripe",
                "STRIPE_API_KEY": "sk_test_123",
                "STRIPE_WEBHOOK_SECRET": "whsec_123",
                "LEDGER_REDIRECT_BASE_URL": "https://shop.example.com",
                "LEDGER_MAIL_ADAPTER": "smtp",
                "SMTP_HOST": "mail.example.com",
                "SMTP_PORT": "2525",
                "SMTP_USE_TLS": "false",
                "LEDGER_LEASE_TTL": "120",
                "LEDGER_COMPLETED_EVENT_TYPES": "checkout.session.completed, checkout.session.async_payment_succeeded",
                "LEDGER_ADMIN_TOKEN": "token",
            }
        )
        assert config.gateway_adapter == "stripe"
        assert config.stripe_api_key == "sk_test_123"
        assert config.smtp_port == 2525
        assert config.smtp_use_tls is False
        assert config.lease_ttl_seconds == 120
        assert config.completed_event_types == (
            "checkout.session.completed",
            "checkout.session.async_payment_succeeded",
        )
        assert config.admin_token == "token"
