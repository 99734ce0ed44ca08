"""Order Ledger bounded context: completed payments, status reads, shipment notices.

Records each completed checkout exactly once keyed by the processor's
transaction id, serves status reads by session reference, and drives the
scheduled shipment-notification run.
"""

from protean.domain import Domain

from ledger.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
ledger = Domain(name="ledger")
