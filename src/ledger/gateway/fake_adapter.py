"""Configurable fake payment processor for development and testing.

Simulates hosted checkout sessions without external calls. It can be
configured at runtime to succeed, reject, or time out, and records every
call for assertions.
"""

from uuid import uuid4

from ledger.gateway.port import CheckoutGateway, CheckoutSessionRequest, CheckoutSessionResult

TEST_SIGNATURE = "test-signature"


class FakeGateway(CheckoutGateway):
    """Configurable fake payment processor."""

    def __init__(self, checkout_base_url: str = "https://checkout.fake-processor.example.com") -> None:
        self.checkout_base_url = checkout_base_url
        self.should_succeed: bool = True
        self.retryable: bool = False
        self.failure_reason: str = "No such price"
        self.calls: list[dict] = []
        self.line_items: dict[str, list[dict]] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "No such price", retryable: bool = False) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.retryable = retryable

    def set_line_items(self, session_id: str, items: list[dict]) -> None:
        """Line items the fake reports for a completed session."""
        self.line_items[session_id] = list(items)

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        self.calls.append(
            {
                "method": "create_checkout_session",
                "line_items": [(line.price_ref, line.quantity) for line in request.line_items],
                "success_url": request.success_url,
                "cancel_url": request.cancel_url,
                "metadata": dict(request.metadata),
                "idempotency_key": request.idempotency_key,
                "customer_email": request.customer_email,
            }
        )

        if not self.should_succeed:
            return CheckoutSessionResult(
                success=False,
                failure_reason=self.failure_reason,
                failure_code="timeout" if self.retryable else "resource_missing",
                retryable=self.retryable,
            )

        session_id = f"cs_fake_{uuid4().hex[:16]}"
        return CheckoutSessionResult(
            success=True,
            session_id=session_id,
            redirect_url=f"{self.checkout_base_url}/pay/{session_id}",
        )

    def list_line_items(self, session_id: str) -> list[dict]:
        self.calls.append({"method": "list_line_items", "session_id": session_id})
        return list(self.line_items.get(session_id, []))

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        return signature == TEST_SIGNATURE

    def reset(self) -> None:
        self.should_succeed = True
        self.retryable = False
        self.failure_reason = "No such price"
        self.calls.clear()
        self.line_items.clear()
