"""Payment processor port (abstract interface).

Defines the contract every processor adapter implements, so the checkout
and ingestion code can run against FakeGateway (dev/test) or StripeGateway
(production) unchanged.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CheckoutLine:
    """One cart line as the processor understands it."""

    price_ref: str
    quantity: int


@dataclass(frozen=True)
class CheckoutSessionRequest:
    """Everything the processor needs to open a hosted checkout page."""

    line_items: list[CheckoutLine]
    success_url: str
    cancel_url: str
    idempotency_key: str
    metadata: dict[str, str] = field(default_factory=dict)
    customer_email: str | None = None


@dataclass(frozen=True)
class CheckoutSessionResult:
    """Result of a session creation attempt."""

    success: bool
    session_id: str | None = None
    redirect_url: str | None = None
    failure_reason: str | None = None
    failure_code: str | None = None
    retryable: bool = False


class CheckoutGateway(ABC):
    """Abstract payment processor interface."""

    @abstractmethod
    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        """Open a hosted checkout session for the given lines."""
        ...

    @abstractmethod
    def list_line_items(self, session_id: str) -> list[dict]:
        """Purchased lines of a completed session.

        Returns:
            list of dicts with keys: name, quantity, unit_price
        """
        ...

    @abstractmethod
    def verify_webhook_signature(
        self,
        payload: bytes,
        signature: str,
    ) -> bool:
        """Verify that a webhook payload is authentically from the processor."""
        ...
