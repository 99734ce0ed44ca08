"""OrderRecord aggregate (CQRS): one ledger row per completed payment.

The record is created once by the event ingestor and never deleted. Later
changes are narrow column writes: an administrator sets the status and the
tracking number, the notification dispatcher flips ``notified``.

Status is driven externally and is not a state machine:
    Placed, Processing, Shipped, Delivered (any order)

Invariants:
    tracking_number: empty → non-empty, never cleared
    notified:        False → True once, never reverts
    last_updated_at: refreshed by every mutation
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text, ValueObject

from ledger.domain import ledger
from ledger.order.events import OrderPlaced


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PLACED = "Placed"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"


# Persisted column order. Positional consumers (exports, sheet syncs) rely on it.
COLUMNS = (
    "transaction_id",
    "customer_email",
    "placed_at",
    "status",
    "items",
    "shipping_address",
    "tracking_number",
    "notified",
    "last_updated_at",
)

LINE_NAME_MAX_LENGTH = 500
EMAIL_MAX_LENGTH = 254
ADDRESS_MAX_LENGTHS = {
    "full_name": 255,
    "line1": 500,
    "city": 255,
    "state": 255,
    "postal_code": 50,
    "country": 100,
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ledger.value_object(part_of="OrderRecord")
class ShippingAddress:
    """Where the order ships. Every part is optional."""

    full_name = String(max_length=ADDRESS_MAX_LENGTHS["full_name"], default="")
    line1 = String(max_length=ADDRESS_MAX_LENGTHS["line1"], default="")
    city = String(max_length=ADDRESS_MAX_LENGTHS["city"], default="")
    state = String(max_length=ADDRESS_MAX_LENGTHS["state"], default="")
    postal_code = String(max_length=ADDRESS_MAX_LENGTHS["postal_code"], default="")
    country = String(max_length=ADDRESS_MAX_LENGTHS["country"], default="")

    @classmethod
    def clipped(cls, **parts) -> "ShippingAddress":
        """Build from untrusted parts, cutting each to its column width."""
        return cls(**{key: str(parts.get(key) or "")[:limit] for key, limit in ADDRESS_MAX_LENGTHS.items()})

    def as_dict(self) -> dict:
        return {
            "full_name": self.full_name or "",
            "line1": self.line1 or "",
            "city": self.city or "",
            "state": self.state or "",
            "postal_code": self.postal_code or "",
            "country": self.country or "",
        }


@ledger.value_object(part_of="OrderRecord")
class LineItem:
    """A purchased line as reported by the payment processor."""

    name = String(required=True, max_length=LINE_NAME_MAX_LENGTH)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)

    @property
    def total(self) -> float:
        return round(self.quantity * self.unit_price, 2)

    def as_dict(self) -> dict:
        return {"name": self.name, "quantity": self.quantity, "unit_price": self.unit_price}


def _now() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ledger.aggregate
class OrderRecord:
    transaction_id = String(identifier=True, required=True, max_length=255)
    customer_email = String(max_length=EMAIL_MAX_LENGTH, default="")
    placed_at = DateTime()
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PLACED.value,
    )
    items = Text(default="[]")  # JSON list of LineItem dicts
    shipping_address = ValueObject(ShippingAddress)
    tracking_number = String(max_length=100, default="")
    notified = Boolean(default=False)
    last_updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        transaction_id: str,
        customer_email: str | None = None,
        items: list | None = None,
        shipping_address: ShippingAddress | dict | None = None,
        placed_at: datetime | None = None,
    ):
        """Create the ledger row for a completed payment.

        ``items`` accepts ``LineItem`` instances or plain dicts with
        ``name``, ``quantity`` and ``unit_price``.
        """
        if not transaction_id or not str(transaction_id).strip():
            raise ValidationError({"transaction_id": ["Transaction id is required"]})

        now = placed_at or _now()
        line_items = [item if isinstance(item, LineItem) else LineItem(**item) for item in (items or [])]
        if isinstance(shipping_address, dict):
            shipping_address = ShippingAddress(**shipping_address)

        record = cls(
            transaction_id=str(transaction_id).strip(),
            customer_email=(customer_email or "").strip(),
            placed_at=now,
            status=OrderStatus.PLACED.value,
            items=json.dumps([item.as_dict() for item in line_items]),
            shipping_address=shipping_address or ShippingAddress(),
            tracking_number="",
            notified=False,
            last_updated_at=now,
        )

        record.raise_(
            OrderPlaced(
                transaction_id=record.transaction_id,
                customer_email=record.customer_email or "",
                item_count=len(line_items),
                subtotal=record.subtotal,
                placed_at=now,
            )
        )

        return record

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def line_items(self) -> list[LineItem]:
        return [LineItem(**data) for data in json.loads(self.items or "[]")]

    @property
    def address(self) -> ShippingAddress:
        """The shipping address, empty when none was captured."""
        return self.shipping_address or ShippingAddress()

    @property
    def subtotal(self) -> float:
        return round(sum(item.total for item in self.line_items), 2)

    @property
    def has_tracking_number(self) -> bool:
        return bool((self.tracking_number or "").strip())

    @property
    def awaiting_notification(self) -> bool:
        """Shipped with a tracking number, customer not yet told."""
        return self.has_tracking_number and not self.notified

    def to_row(self) -> dict:
        """Plain dict in persisted column order."""
        return {
            "transaction_id": self.transaction_id,
            "customer_email": self.customer_email or "",
            "placed_at": self.placed_at.isoformat() if self.placed_at else None,
            "status": self.status,
            "items": [item.as_dict() for item in self.line_items],
            "shipping_address": self.address.as_dict(),
            "tracking_number": self.tracking_number or "",
            "notified": bool(self.notified),
            "last_updated_at": self.last_updated_at.isoformat() if self.last_updated_at else None,
        }

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def _touch(self) -> datetime:
        now = _now()
        self.last_updated_at = now
        return now

    def change_status(self, status: str) -> None:
        try:
            target = OrderStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {status}"]}) from None

        self.status = target.value
        self._touch()

    def assign_tracking_number(self, tracking_number: str) -> None:
        value = (tracking_number or "").strip()
        if not value:
            raise ValidationError({"tracking_number": ["Tracking number cannot be cleared"]})

        self.tracking_number = value
        self._touch()

    def mark_notified(self) -> None:
        if self.notified:
            raise ValidationError({"notified": ["Shipment notification already recorded"]})
        if not self.has_tracking_number:
            raise ValidationError({"notified": ["No tracking number to notify about"]})

        self.notified = True
        self._touch()
