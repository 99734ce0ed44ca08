"""Checkout session creation.

Turns a client cart snapshot into a hosted checkout session at the payment
processor and hands back where to redirect the shopper. Nothing is written
to the ledger here; the order row appears only when the processor reports
the payment as completed.
"""

import json
from dataclasses import dataclass
from uuid import uuid4

import structlog

from ledger.config import LedgerConfig
from ledger.errors import GatewayUnavailable, InvalidCart, UpstreamRejected
from ledger.gateway.port import CheckoutGateway, CheckoutLine, CheckoutSessionRequest
from ledger.order.order import ShippingAddress

logger = structlog.get_logger(__name__)

# Processor metadata values are capped at 500 characters
_METADATA_VALUE_LIMIT = 500


@dataclass(frozen=True)
class CartLine:
    catalog_item_ref: str
    quantity: int


@dataclass(frozen=True)
class CartSnapshot:
    items: list[CartLine]
    cart_reference: str = ""


@dataclass(frozen=True)
class CheckoutSession:
    redirect_url: str
    session_reference: str


def _validate_cart(cart: CartSnapshot) -> list[CheckoutLine]:
    if not cart.items:
        raise InvalidCart("Your cart is empty")

    lines = []
    for position, item in enumerate(cart.items, start=1):
        if not (item.catalog_item_ref or "").strip():
            raise InvalidCart(f"Cart line {position} has no catalog item")
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity <= 0:
            raise InvalidCart(f"Cart line {position} must have a positive quantity")
        lines.append(CheckoutLine(price_ref=item.catalog_item_ref.strip(), quantity=item.quantity))
    return lines


class SessionGateway:
    """Opens processor checkout sessions for cart snapshots."""

    def __init__(self, config: LedgerConfig, gateway: CheckoutGateway) -> None:
        self.config = config
        self.gateway = gateway

    def _metadata(self, cart: CartSnapshot, shipping_address: ShippingAddress | None) -> dict[str, str]:
        metadata = {"cart_reference": cart.cart_reference or ""}
        if shipping_address is not None:
            encoded = json.dumps(shipping_address.as_dict(), separators=(",", ":"))
            if len(encoded) <= _METADATA_VALUE_LIMIT:
                metadata["shipping_address"] = encoded
            else:
                logger.warning(
                    "Shipping address too long for session metadata",
                    cart_reference=cart.cart_reference,
                    length=len(encoded),
                )
        return metadata

    def create_session(
        self,
        cart: CartSnapshot,
        shipping_address: ShippingAddress | dict | None = None,
        customer_email: str | None = None,
    ) -> CheckoutSession:
        lines = _validate_cart(cart)
        if isinstance(shipping_address, dict):
            shipping_address = ShippingAddress(**shipping_address)

        # A fresh key per call: a resubmitted cart is a new session, never a
        # silent replay of an earlier request.
        request = CheckoutSessionRequest(
            line_items=lines,
            success_url=self.config.success_url,
            cancel_url=self.config.cancel_url,
            idempotency_key=f"checkout-{uuid4().hex}",
            metadata=self._metadata(cart, shipping_address),
            customer_email=(customer_email or "").strip() or None,
        )

        result = self.gateway.create_checkout_session(request)

        if not result.success:
            if result.retryable:
                logger.warning(
                    "Payment processor unavailable",
                    cart_reference=cart.cart_reference,
                    reason=result.failure_reason,
                )
                raise GatewayUnavailable(result.failure_reason or "Payment processor unavailable")

            logger.error(
                "Payment processor rejected checkout session",
                cart_reference=cart.cart_reference,
                processor_message=result.failure_reason,
                code=result.failure_code,
            )
            raise UpstreamRejected(result.failure_reason or "Unknown processor error", code=result.failure_code)

        logger.info(
            "Checkout session created",
            cart_reference=cart.cart_reference,
            session_reference=result.session_id,
            lines=len(lines),
        )
        return CheckoutSession(redirect_url=result.redirect_url, session_reference=result.session_id)
