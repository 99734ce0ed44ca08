"""Status reads for client polling after checkout.

The order-status page polls with the session reference it got back from
the processor redirect. That reference is the ledger's transaction id:
the completion event's object is the checkout session itself.
"""

import structlog
from protean.utils.globals import current_domain

from ledger.config import LedgerConfig
from ledger.errors import InvalidInput
from ledger.order.order import OrderRecord
from ledger.order.tracking import detect_carrier, tracking_url

logger = structlog.get_logger(__name__)


class StatusReader:
    """Pure reads of the ledger; safe to call arbitrarily often."""

    def __init__(self, config: LedgerConfig) -> None:
        self.config = config

    def read(self, session_reference: str) -> OrderRecord | None:
        reference = (session_reference or "").strip()
        if not reference:
            raise InvalidInput("Session reference is required")

        return current_domain.repository_for(OrderRecord).find(reference)

    def snapshot(self, session_reference: str) -> dict | None:
        """Client-facing view of the order, with the carrier link when shipped."""
        record = self.read(session_reference)
        if record is None:
            logger.info("Order not found for status read", session_reference=session_reference)
            return None

        order = record.to_row()
        carrier = detect_carrier(record.tracking_number)
        order["subtotal"] = record.subtotal
        order["carrier"] = carrier.value if carrier else None
        order["tracking_url"] = tracking_url(record.tracking_number)
        return order
