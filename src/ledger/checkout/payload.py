"""Pydantic schema for processor completion events.

Only the fields the ledger reads are modelled; everything else in the
processor's payload is ignored. The completed session id is required,
every other field has an explicit empty default.
"""

import math
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ledger.order.order import LINE_NAME_MAX_LENGTH

logger = structlog.get_logger(__name__)


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore")


class EventEnvelope(_Lenient):
    """Outer event shape, enough to route on ``type``."""

    id: str | None = None
    type: str


class EventAddress(_Lenient):
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class EventShippingDetails(_Lenient):
    name: str | None = None
    address: EventAddress | None = None


class EventCustomerDetails(_Lenient):
    email: str | None = None
    name: str | None = None


class EventCollectedInformation(_Lenient):
    shipping_details: EventShippingDetails | None = None


class CompletedSession(_Lenient):
    id: str = Field(min_length=1)
    customer_details: EventCustomerDetails | None = None
    customer_email: str | None = None
    shipping_details: EventShippingDetails | None = None
    # Newer API versions move shipping details here
    collected_information: EventCollectedInformation | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    # Present only when the sender expanded line items into the event
    line_items: Any = None

    @property
    def email(self) -> str:
        if self.customer_details and self.customer_details.email:
            return self.customer_details.email
        return self.customer_email or ""

    @property
    def shipping(self) -> EventShippingDetails | None:
        if self.shipping_details is not None:
            return self.shipping_details
        if self.collected_information is not None:
            return self.collected_information.shipping_details
        return None


class CompletionEventData(_Lenient):
    session: CompletedSession = Field(alias="object")


class CompletionEvent(_Lenient):
    id: str | None = None
    type: str
    data: CompletionEventData


def _quantity(line: dict) -> int | None:
    raw = line.get("quantity")
    if raw is None:
        return 1
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not value.is_integer() or value < 1:
        return None
    return int(value)


def _unit_price(line: dict, quantity: int) -> float | None:
    try:
        if "unit_price" in line:
            unit_price = float(line["unit_price"])
        else:
            price = line.get("price") or {}
            unit_amount = price.get("unit_amount")
            if unit_amount is None:
                unit_amount = float(line.get("amount_total") or 0) / quantity
            unit_price = round(float(unit_amount) / 100, 2)
    except (TypeError, ValueError, AttributeError):
        return None
    if not math.isfinite(unit_price) or unit_price < 0:
        return None
    return unit_price


def parse_line_items(raw: Any) -> list[dict]:
    """Normalise processor line items into ``name/quantity/unit_price`` dicts.

    Accepts a processor list object (``{"data": [...]}``) or a plain list.
    Amounts in minor units (``price.unit_amount``) are converted to major units.
    A line whose quantity or price cannot be read is dropped and logged; the
    rest of the order is still recorded.
    """
    if raw is None:
        return []
    lines = raw.get("data", []) if isinstance(raw, dict) else raw
    if not isinstance(lines, list):
        return []

    items = []
    for position, line in enumerate(lines):
        if not isinstance(line, dict):
            logger.warning("Line item dropped, not an object", position=position)
            continue

        quantity = _quantity(line)
        unit_price = _unit_price(line, quantity) if quantity is not None else None
        if quantity is None or unit_price is None:
            logger.warning(
                "Line item dropped, unusable quantity or price",
                position=position,
                quantity=line.get("quantity"),
                unit_price=line.get("unit_price"),
                price=line.get("price"),
            )
            continue

        name = str(line.get("name") or line.get("description") or "Product")
        items.append({"name": name[:LINE_NAME_MAX_LENGTH], "quantity": quantity, "unit_price": unit_price})
    return items
