"""Administrative writes: commands and handler.

An operator records the carrier's tracking number once the parcel ships
and moves the status along. Both are single-column writes through the row
store so they never clobber the dispatcher's ``notified`` flag.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ledger.domain import ledger
from ledger.order.order import OrderRecord
from ledger.order.repository import UpdateOutcome

logger = structlog.get_logger(__name__)


@ledger.command(part_of="OrderRecord")
class RecordTrackingNumber:
    """Attach the carrier's tracking number to an order."""

    transaction_id = Identifier(required=True)
    tracking_number = String(required=True, max_length=100)


@ledger.command(part_of="OrderRecord")
class ChangeOrderStatus:
    """Move an order to Placed, Processing, Shipped or Delivered."""

    transaction_id = Identifier(required=True)
    status = String(required=True, max_length=50)


@ledger.command_handler(part_of=OrderRecord)
class OrderAdministrationHandler:
    @handle(RecordTrackingNumber)
    def record_tracking_number(self, command: RecordTrackingNumber) -> str:
        repo = current_domain.repository_for(OrderRecord)
        outcome = repo.update_field(command.transaction_id, "tracking_number", command.tracking_number)

        logger.info(
            "Tracking number recorded",
            transaction_id=command.transaction_id,
            outcome=outcome.value,
        )
        return outcome.value

    @handle(ChangeOrderStatus)
    def change_status(self, command: ChangeOrderStatus) -> str:
        repo = current_domain.repository_for(OrderRecord)
        outcome = repo.update_field(command.transaction_id, "status", command.status)

        if outcome is UpdateOutcome.UPDATED:
            logger.info(
                "Order status changed",
                transaction_id=command.transaction_id,
                status=command.status,
            )
        return outcome.value
