"""Pydantic request/response schemas for the Ledger API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands and the checkout dataclasses.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartLineSchema(BaseModel):
    catalog_item_ref: str
    quantity: int


class CartSchema(BaseModel):
    items: list[CartLineSchema] = Field(default_factory=list)
    cart_reference: str = ""


class ShippingAddressSchema(BaseModel):
    full_name: str = ""
    line1: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""


class LineItemSchema(BaseModel):
    name: str
    quantity: int
    unit_price: float


class OrderSchema(BaseModel):
    transaction_id: str
    customer_email: str = ""
    placed_at: str | None = None
    status: str
    items: list[LineItemSchema] = Field(default_factory=list)
    shipping_address: ShippingAddressSchema
    tracking_number: str = ""
    notified: bool = False
    last_updated_at: str | None = None
    subtotal: float = 0.0
    carrier: str | None = None
    tracking_url: str | None = None


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateCheckoutSessionRequest(BaseModel):
    cart: CartSchema
    shipping_address: ShippingAddressSchema | None = None
    customer_email: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "cart": {
                        "items": [{"catalog_item_ref": "price_123", "quantity": 2}],
                        "cart_reference": "cart-001",
                    },
                    "shipping_address": {
                        "full_name": "Ada Lovelace",
                        "line1": "12 Analytical Way",
                        "city": "London",
                        "state": "",
                        "postal_code": "N1 9GU",
                        "country": "GB",
                    },
                    "customer_email": "ada@example.com",
                }
            ]
        }
    }


class RecordTrackingNumberRequest(BaseModel):
    tracking_number: str


class ChangeOrderStatusRequest(BaseModel):
    status: str


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CheckoutSessionResponse(BaseModel):
    redirect_url: str
    session_reference: str


class OrderStatusResponse(BaseModel):
    status: str = "success"
    order: OrderSchema


class StatusResponse(BaseModel):
    status: str


class ErrorResponse(BaseModel):
    error: str
