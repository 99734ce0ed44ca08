"""FastAPI routes for the Order Ledger.

Each route translates between Pydantic schemas (external contract) and the
ledger components. Ledger errors are mapped to HTTP status codes by the
handlers in ``register_error_handlers``.

Store and processor calls block, so handlers are plain functions that
FastAPI runs in its threadpool; the webhook reads the raw body on the
loop and hands ingestion to the threadpool.
"""

import hmac

import structlog
from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidDataError, ValidationError
from protean.utils.globals import current_domain

from ledger.api.schemas import (
    ChangeOrderStatusRequest,
    CheckoutSessionResponse,
    CreateCheckoutSessionRequest,
    OrderStatusResponse,
    RecordTrackingNumberRequest,
    StatusResponse,
)
from ledger.checkout.session import CartLine, CartSnapshot
from ledger.domain import ledger
from ledger.errors import (
    GatewayUnavailable,
    InvalidInput,
    StoreUnavailable,
    Unauthenticated,
    UpstreamRejected,
)
from ledger.order.admin import ChangeOrderStatus, RecordTrackingNumber
from ledger.order.repository import UpdateOutcome, validation_message
from ledger.services import LedgerServices, get_services

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def bind_domain_context(app: FastAPI) -> None:
    """Run every request inside the ledger domain context."""

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with ledger.domain_context():
            response = await call_next(request)
        return response


def register_error_handlers(app: FastAPI) -> None:
    """Translate ledger errors into ``{"error": ...}`` responses."""

    @app.exception_handler(InvalidInput)
    async def invalid_input(request: Request, exc: InvalidInput):
        return _error(400, exc.message)

    @app.exception_handler(ValidationError)
    async def invalid_order_data(request: Request, exc: ValidationError):
        return _error(400, validation_message(exc))

    @app.exception_handler(InvalidDataError)
    async def invalid_command(request: Request, exc: InvalidDataError):
        return _error(400, validation_message(exc))

    @app.exception_handler(Unauthenticated)
    async def unauthenticated(request: Request, exc: Unauthenticated):
        return _error(401, exc.message)

    @app.exception_handler(UpstreamRejected)
    async def upstream_rejected(request: Request, exc: UpstreamRejected):
        # processor_message stays in the logs
        return _error(502, exc.message)

    @app.exception_handler(GatewayUnavailable)
    async def gateway_unavailable(request: Request, exc: GatewayUnavailable):
        return _error(503, "Payment processor unavailable, please try again")

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable(request: Request, exc: StoreUnavailable):
        return _error(503, "Order store unavailable, please try again")

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return _error(exc.status_code, str(exc.detail))


def require_admin(
    x_admin_token: str = Header(default=""),
    services: LedgerServices = Depends(get_services),
) -> None:
    expected = services.config.admin_token
    if not expected or not hmac.compare_digest(x_admin_token.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid admin token")


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/sessions", status_code=201, response_model=CheckoutSessionResponse)
def create_checkout_session(
    body: CreateCheckoutSessionRequest,
    services: LedgerServices = Depends(get_services),
) -> CheckoutSessionResponse:
    """Open a hosted checkout session for a cart snapshot."""
    cart = CartSnapshot(
        items=[CartLine(catalog_item_ref=line.catalog_item_ref, quantity=line.quantity) for line in body.cart.items],
        cart_reference=body.cart.cart_reference,
    )
    session = services.sessions.create_session(
        cart,
        shipping_address=body.shipping_address.model_dump() if body.shipping_address else None,
        customer_email=body.customer_email,
    )
    return CheckoutSessionResponse(redirect_url=session.redirect_url, session_reference=session.session_reference)


@checkout_router.post("/webhook", response_model=StatusResponse)
async def receive_completion_event(
    request: Request,
    stripe_signature: str = Header(default=""),
    services: LedgerServices = Depends(get_services),
) -> StatusResponse:
    """Ingest a processor event. Safe to deliver any number of times."""
    payload = await request.body()
    result = await run_in_threadpool(services.ingestor.ingest, payload, stripe_signature)
    return StatusResponse(status=result.outcome.value)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/status", response_model=OrderStatusResponse)
def order_status(
    session_reference: str | None = Query(default=None, alias="sessionReference"),
    session_id: str | None = Query(default=None),
    services: LedgerServices = Depends(get_services),
):
    """Status read for the order-status page."""
    reference = session_reference or session_id or ""
    order = services.status.snapshot(reference)
    if order is None:
        return _error(404, "Order not found")
    return OrderStatusResponse(status="success", order=order)


def _admin_result(transaction_id: str, outcome: str) -> StatusResponse:
    if outcome == UpdateOutcome.NOT_FOUND.value:
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("Administrative update applied", transaction_id=transaction_id, outcome=outcome)
    return StatusResponse(status=outcome.lower())


@order_router.put(
    "/{transaction_id}/tracking",
    response_model=StatusResponse,
    dependencies=[Depends(require_admin)],
)
def record_tracking_number(transaction_id: str, body: RecordTrackingNumberRequest) -> StatusResponse:
    """Attach a carrier tracking number; the next dispatcher run notifies."""
    command = RecordTrackingNumber(
        transaction_id=transaction_id,
        tracking_number=body.tracking_number,
    )
    outcome = current_domain.process(command, asynchronous=False)
    return _admin_result(transaction_id, outcome)


@order_router.put(
    "/{transaction_id}/status",
    response_model=StatusResponse,
    dependencies=[Depends(require_admin)],
)
def change_order_status(transaction_id: str, body: ChangeOrderStatusRequest) -> StatusResponse:
    """Move an order to another status."""
    command = ChangeOrderStatus(
        transaction_id=transaction_id,
        status=body.status,
    )
    outcome = current_domain.process(command, asynchronous=False)
    return _admin_result(transaction_id, outcome)
