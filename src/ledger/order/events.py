"""Domain events for the OrderRecord aggregate."""

from protean.fields import DateTime, Float, Integer, String

from ledger.domain import ledger


@ledger.event(part_of="OrderRecord")
class OrderPlaced:
    """A completed payment was recorded in the ledger for the first time."""

    __version__ = "v1"

    transaction_id = String(required=True, max_length=255)
    customer_email = String(max_length=254)
    item_count = Integer(default=0)
    subtotal = Float(default=0.0)
    placed_at = DateTime(required=True)
