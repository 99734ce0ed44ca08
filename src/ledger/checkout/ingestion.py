"""Completion event ingestion, the only writer of new ledger rows.

Processors deliver webhooks at least once and retry on any non-2xx or
timeout, so the same completed session can arrive many times. Each
delivery is verified, routed on its type, and inserted keyed by the
session id; a replay finds the row already there and does nothing else.
"""

import json
from dataclasses import dataclass
from enum import Enum

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from pydantic import ValidationError as PayloadError

from ledger.checkout.payload import CompletedSession, CompletionEvent, EventEnvelope, parse_line_items
from ledger.config import LedgerConfig
from ledger.errors import InvalidInput, Unauthenticated, UpstreamRejected
from ledger.gateway.port import CheckoutGateway
from ledger.order.order import EMAIL_MAX_LENGTH, OrderRecord, ShippingAddress
from ledger.order.repository import InsertOutcome, validation_message

logger = structlog.get_logger(__name__)


class IngestOutcome(Enum):
    RECORDED = "recorded"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"


@dataclass(frozen=True)
class IngestResult:
    outcome: IngestOutcome
    event_type: str
    transaction_id: str | None = None


def _address_from_session(session: CompletedSession) -> ShippingAddress:
    """Shipping address from the event, else from the metadata written at checkout."""
    shipping = session.shipping
    if shipping is not None and (shipping.name or shipping.address):
        address = shipping.address
        line1 = ""
        if address is not None:
            line1 = ", ".join(part for part in (address.line1, address.line2) if part)
        return ShippingAddress.clipped(
            full_name=shipping.name,
            line1=line1,
            city=address.city if address else None,
            state=address.state if address else None,
            postal_code=address.postal_code if address else None,
            country=address.country if address else None,
        )

    encoded = session.metadata.get("shipping_address")
    if encoded:
        try:
            data = json.loads(encoded)
        except (TypeError, ValueError):
            logger.warning("Unreadable shipping address in session metadata", transaction_id=session.id)
        else:
            if isinstance(data, dict):
                return ShippingAddress.clipped(**data)

    return ShippingAddress()


class EventIngestor:
    """Verifies, parses and records processor completion events."""

    def __init__(self, config: LedgerConfig, gateway: CheckoutGateway) -> None:
        self.config = config
        self.gateway = gateway

    def _line_items(self, session: CompletedSession) -> list[dict]:
        items = parse_line_items(session.line_items)
        if items:
            return items

        try:
            return parse_line_items(self.gateway.list_line_items(session.id))
        except UpstreamRejected as e:
            # The payment is complete either way; record the order without lines
            logger.error(
                "Processor refused line items for completed session",
                transaction_id=session.id,
                processor_message=e.processor_message,
            )
            return []

    def ingest(self, payload: bytes, signature: str) -> IngestResult:
        """Handle one webhook delivery.

        Raises:
            Unauthenticated: signature did not verify; nothing was read or written.
            InvalidInput: a completion event without a usable transaction id.
            GatewayUnavailable / StoreUnavailable: retryable; the sender should redeliver.
        """
        if not self.gateway.verify_webhook_signature(payload, signature or ""):
            logger.warning("Completion event failed signature verification")
            raise Unauthenticated("Invalid webhook signature")

        try:
            envelope = EventEnvelope.model_validate_json(payload)
        except PayloadError as e:
            raise InvalidInput("Webhook payload is not a processor event") from e

        if envelope.type not in self.config.completed_event_types:
            logger.info(
                "Processor event acknowledged without ingestion",
                event_type=envelope.type,
                event_id=envelope.id,
            )
            return IngestResult(outcome=IngestOutcome.IGNORED, event_type=envelope.type)

        try:
            event = CompletionEvent.model_validate_json(payload)
        except PayloadError as e:
            logger.warning("Completion event rejected", event_id=envelope.id, error=str(e))
            raise InvalidInput("Completion event carries no transaction id") from e

        session = event.data.session
        repo = current_domain.repository_for(OrderRecord)

        # Replays are the common case; skip the line-item fetch for them.
        if repo.find(session.id) is not None:
            logger.info("Duplicate completion event", transaction_id=session.id, event_id=event.id)
            return IngestResult(outcome=IngestOutcome.DUPLICATE, event_type=event.type, transaction_id=session.id)

        items = self._line_items(session)
        address = _address_from_session(session)
        email = session.email.strip()[:EMAIL_MAX_LENGTH]
        try:
            record = OrderRecord.place(
                transaction_id=session.id,
                customer_email=email,
                items=items,
                shipping_address=address,
            )
        except ValidationError as e:
            # The payment is complete; keep the row and drop what would not fit
            logger.error(
                "Completion event has invalid order data, recording without lines or address",
                transaction_id=session.id,
                error=str(e),
            )
            try:
                record = OrderRecord.place(transaction_id=session.id, customer_email=email)
            except ValidationError as e2:
                raise InvalidInput(validation_message(e2)) from e2

        outcome = repo.insert(record)
        if outcome is InsertOutcome.ALREADY_EXISTS:
            logger.info("Duplicate completion event", transaction_id=session.id, event_id=event.id)
            return IngestResult(outcome=IngestOutcome.DUPLICATE, event_type=event.type, transaction_id=session.id)

        logger.info(
            "Order recorded",
            transaction_id=record.transaction_id,
            items=len(record.line_items),
            has_email=bool(record.customer_email),
        )
        return IngestResult(outcome=IngestOutcome.RECORDED, event_type=event.type, transaction_id=record.transaction_id)
