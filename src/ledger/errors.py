"""Error taxonomy for the ledger.

``InvalidInput`` and ``NotFound``-style outcomes are terminal; the
``retryable`` errors tell callers (and webhook senders, via HTTP 503)
that the same request may succeed later.
"""


class LedgerError(Exception):
    """Base class for ledger errors."""

    retryable = False

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(LedgerError):
    """Malformed request: missing required field, bad value."""


class InvalidCart(InvalidInput):
    """Cart snapshot is empty or carries an unusable line."""


class Unauthenticated(LedgerError):
    """Completion event failed signature verification."""


class UpstreamRejected(LedgerError):
    """The payment processor refused the request.

    ``processor_message`` is kept verbatim for operators and must not be
    shown to end users.
    """

    def __init__(self, processor_message: str, code: str | None = None) -> None:
        super().__init__("Payment processor rejected the request")
        self.processor_message = processor_message
        self.code = code


class GatewayUnavailable(LedgerError):
    """The payment processor timed out or could not be reached."""

    retryable = True


class StoreUnavailable(LedgerError):
    """The row store could not serve the request."""

    retryable = True
