"""Row store for OrderRecord, the only access path to ledger rows.

Every component reads and writes orders through these four operations.
Nothing here caches a record between calls.
"""

import threading
from enum import Enum

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from ledger.domain import ledger
from ledger.errors import InvalidInput, StoreUnavailable
from ledger.order.order import OrderRecord

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = ("status", "tracking_number", "notified")

# Serialises check-and-write for inserts within this process. Across
# processes the primary key on transaction_id settles the race.
_insert_lock = threading.Lock()


class InsertOutcome(Enum):
    INSERTED = "Inserted"
    ALREADY_EXISTS = "AlreadyExists"


class UpdateOutcome(Enum):
    UPDATED = "Updated"
    UNCHANGED = "Unchanged"  # compare-and-set lost: the value was already written
    NOT_FOUND = "NotFound"


def validation_message(exc: ValidationError) -> str:
    """Flatten a Protean ValidationError into one line."""
    messages = getattr(exc, "messages", None) or {}
    if not messages:
        return str(exc)
    return "; ".join(f"{key}: {', '.join(str(m) for m in value)}" for key, value in messages.items())


@ledger.repository(part_of=OrderRecord)
class OrderLedger:
    """Append-only order rows keyed by transaction id."""

    def find(self, transaction_id: str) -> OrderRecord | None:
        """Point lookup. ``None`` when no row carries this id."""
        try:
            return self.get(transaction_id)
        except ObjectNotFoundError:
            return None
        except Exception as exc:
            logger.error("Order lookup failed", transaction_id=transaction_id, error=str(exc))
            raise StoreUnavailable("Order store unavailable") from exc

    def insert(self, record: OrderRecord) -> InsertOutcome:
        """Write a new row unless one with the same transaction id exists."""
        with _insert_lock:
            if self.find(record.transaction_id) is not None:
                return InsertOutcome.ALREADY_EXISTS

            try:
                self.add(record)
            except Exception as exc:
                if self.find(record.transaction_id) is not None:
                    logger.info(
                        "Concurrent insert won the transaction id",
                        transaction_id=record.transaction_id,
                    )
                    return InsertOutcome.ALREADY_EXISTS

                logger.error("Order insert failed", transaction_id=record.transaction_id, error=str(exc))
                raise StoreUnavailable("Order store unavailable") from exc

        return InsertOutcome.INSERTED

    def update_field(self, transaction_id: str, field: str, value) -> UpdateOutcome:
        """Targeted write of one column plus ``last_updated_at``.

        The value is checked against the aggregate's rules on a freshly
        loaded copy, then written as a column update so concurrent writes to
        other columns survive. ``notified`` is written only where it is
        still False.
        """
        if field not in UPDATABLE_FIELDS:
            raise InvalidInput(f"Field '{field}' cannot be updated")

        record = self.find(transaction_id)
        if record is None:
            return UpdateOutcome.NOT_FOUND

        criteria = {"transaction_id": record.transaction_id}
        try:
            if field == "notified":
                if value is not True:
                    raise InvalidInput("notified can only be set to True")
                if record.notified:
                    return UpdateOutcome.UNCHANGED
                record.mark_notified()
                criteria["notified"] = False
            elif field == "tracking_number":
                record.assign_tracking_number(value)
            else:
                record.change_status(value)
        except ValidationError as exc:
            raise InvalidInput(validation_message(exc)) from exc

        changes = {field: getattr(record, field), "last_updated_at": record.last_updated_at}
        try:
            updated = self._dao.query.filter(**criteria).update_all(**changes)
        except Exception as exc:
            logger.error("Order update failed", transaction_id=transaction_id, field=field, error=str(exc))
            raise StoreUnavailable("Order store unavailable") from exc

        return UpdateOutcome.UPDATED if updated else UpdateOutcome.UNCHANGED

    def scan_all(self, page_size: int = 100) -> list[OrderRecord]:
        """Every row as of this call, in transaction id order."""
        records: dict[str, OrderRecord] = {}
        offset = 0
        try:
            while True:
                page = self._dao.query.order_by("transaction_id").offset(offset).limit(page_size).all().items
                for record in page:
                    records.setdefault(record.transaction_id, record)
                if len(page) < page_size:
                    break
                offset += page_size
        except Exception as exc:
            logger.error("Order scan failed", error=str(exc))
            raise StoreUnavailable("Order store unavailable") from exc

        return list(records.values())
