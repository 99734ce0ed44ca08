"""Stripe payment processor adapter.

Uses stripe-python's ``StripeClient`` with a bounded HTTP timeout and no
automatic network retries: a checkout session must never be re-created
behind the caller's back. Webhook signatures are checked against the
endpoint's signing secret with ``stripe.Webhook.construct_event``.
"""

import structlog
import stripe

from ledger.checkout.payload import parse_line_items
from ledger.errors import GatewayUnavailable, UpstreamRejected
from ledger.gateway.port import CheckoutGateway, CheckoutSessionRequest, CheckoutSessionResult

logger = structlog.get_logger(__name__)

_RETRYABLE_ERRORS = (stripe.APIConnectionError, stripe.RateLimitError)


class StripeGateway(CheckoutGateway):
    """Production Stripe Checkout adapter."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        timeout_seconds: float = 10.0,
        client: stripe.StripeClient | None = None,
    ) -> None:
        self.webhook_secret = webhook_secret
        self.client = client or stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(timeout=timeout_seconds),
            max_network_retries=0,
        )

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        params = {
            "mode": "payment",
            "line_items": [{"price": line.price_ref, "quantity": line.quantity} for line in request.line_items],
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": dict(request.metadata),
        }
        if request.customer_email:
            params["customer_email"] = request.customer_email

        try:
            session = self.client.checkout.sessions.create(
                params=params,
                options={"idempotency_key": request.idempotency_key},
            )
        except _RETRYABLE_ERRORS as e:
            logger.warning("Stripe unreachable creating checkout session", error=str(e))
            return CheckoutSessionResult(
                success=False,
                failure_reason=str(e),
                failure_code=e.code,
                retryable=True,
            )
        except stripe.StripeError as e:
            return CheckoutSessionResult(
                success=False,
                failure_reason=str(e),
                failure_code=e.code,
            )

        return CheckoutSessionResult(success=True, session_id=session.id, redirect_url=session.url)

    def list_line_items(self, session_id: str) -> list[dict]:
        try:
            page = self.client.checkout.sessions.line_items.list(session_id, params={"limit": 100})
        except _RETRYABLE_ERRORS as e:
            raise GatewayUnavailable(f"Stripe unreachable listing line items: {e}") from e
        except stripe.StripeError as e:
            raise UpstreamRejected(str(e), code=e.code) from e

        return parse_line_items(list(page.data))

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        if not signature:
            return False
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.warning("Stripe webhook signature rejected", error=str(e))
            return False
        except ValueError as e:
            logger.warning("Stripe webhook payload is not JSON", error=str(e))
            return False
        return True
