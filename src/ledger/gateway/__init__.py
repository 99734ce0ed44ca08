"""Payment processor adapters.

build_gateway() picks the implementation named by the configuration:
- FakeGateway for development and testing
- StripeGateway for production
"""

from ledger.config import LedgerConfig
from ledger.gateway.fake_adapter import FakeGateway
from ledger.gateway.port import CheckoutGateway


def build_gateway(config: LedgerConfig) -> CheckoutGateway:
    """Return the payment processor adapter selected by ``config``."""
    if config.gateway_adapter == "stripe":
        from ledger.gateway.stripe_adapter import StripeGateway

        return StripeGateway(
            api_key=config.stripe_api_key,
            webhook_secret=config.stripe_webhook_secret,
            timeout_seconds=config.gateway_timeout_seconds,
        )
    return FakeGateway()
