"""Shipment notification dispatcher.

Run periodically (hourly in production) by the ``ledger-dispatch`` job.
Each run takes the execution lease, scans the ledger, and emails every
customer whose order has a tracking number but no notification yet. A
record is marked notified only after the mail transport accepted the
message, and the mark is a compare-and-set, so a customer is notified at
most once across overlapping runs.
"""

import threading
from dataclasses import dataclass
from uuid import uuid4

import structlog
from protean.utils.globals import current_domain

from ledger.channel.email_port import EmailPort
from ledger.config import LedgerConfig
from ledger.errors import LedgerError
from ledger.notification.lease import ExecutionLease
from ledger.notification.template import ShipmentNotificationTemplate
from ledger.order.order import OrderRecord
from ledger.order.repository import UpdateOutcome
from ledger.order.tracking import detect_carrier, normalize_tracking_number, tracking_url
from ledger.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)


@dataclass
class DispatchReport:
    lease_acquired: bool = False
    scanned: int = 0
    eligible: int = 0
    sent: int = 0
    failed: int = 0
    unmarked: int = 0
    cancelled: bool = False


def _context(record: OrderRecord) -> dict:
    carrier = detect_carrier(record.tracking_number)
    address = record.address
    return {
        "order_id": record.transaction_id,
        "full_name": address.full_name or "",
        "carrier": carrier.value if carrier else None,
        "tracking_number": normalize_tracking_number(record.tracking_number),
        "tracking_url": tracking_url(record.tracking_number),
    }


class NotificationDispatcher:
    """One scan of the ledger per ``run`` call."""

    def __init__(self, config: LedgerConfig, email: EmailPort) -> None:
        self.config = config
        self.email = email

    def run(self, cancel: threading.Event | None = None) -> DispatchReport:
        report = DispatchReport()
        holder = f"dispatcher-{uuid4().hex[:12]}"
        leases = current_domain.repository_for(ExecutionLease)
        lease_name = self.config.lease_name
        ttl = self.config.lease_ttl_seconds

        if not leases.acquire(lease_name, holder, ttl):
            logger.info("Notification run skipped, lease held elsewhere", lease=lease_name)
            return report
        report.lease_acquired = True
        add_context(dispatch_run=holder)

        try:
            self._scan(report, leases, holder, cancel)
        finally:
            leases.release(lease_name, holder)
            clear_context()

        logger.info(
            "Notification run finished",
            scanned=report.scanned,
            eligible=report.eligible,
            sent=report.sent,
            failed=report.failed,
            unmarked=report.unmarked,
            cancelled=report.cancelled,
        )
        return report

    def _scan(self, report: DispatchReport, leases, holder: str, cancel: threading.Event | None) -> None:
        orders = current_domain.repository_for(OrderRecord)
        records = orders.scan_all(page_size=self.config.scan_page_size)
        report.scanned = len(records)

        for record in records:
            if cancel is not None and cancel.is_set():
                logger.info("Notification run cancelled", transaction_id=record.transaction_id)
                report.cancelled = True
                return

            if not record.awaiting_notification:
                continue
            report.eligible += 1

            if not leases.renew(self.config.lease_name, holder, self.config.lease_ttl_seconds):
                logger.warning("Lease lost mid-run, stopping", lease=self.config.lease_name)
                report.cancelled = True
                return

            self._notify(record, orders, report)

    def _notify(self, record: OrderRecord, orders, report: DispatchReport) -> None:
        tid = record.transaction_id
        if not (record.customer_email or "").strip():
            logger.warning("Shipment notification skipped, no customer email", transaction_id=tid)
            report.failed += 1
            return

        content = ShipmentNotificationTemplate.render(_context(record))
        try:
            result = self.email.send(
                to=record.customer_email,
                subject=content["subject"],
                body=content["body"],
                html_body=content["html_body"],
            )
        except Exception as e:
            result = {"status": "failed", "error": str(e)}

        if result.get("status") != "sent":
            logger.error(
                "Shipment notification failed",
                transaction_id=tid,
                error=result.get("error", "Unknown dispatch error"),
            )
            report.failed += 1
            return

        try:
            outcome = orders.update_field(tid, "notified", True)
        except LedgerError as e:
            outcome = None
            error = str(e)
        else:
            error = None

        if outcome is UpdateOutcome.UPDATED:
            report.sent += 1
            logger.info("Shipment notification sent", transaction_id=tid, message_id=result.get("message_id"))
            return

        # The customer has the email; only the flag write is missing.
        report.unmarked += 1
        logger.error(
            "Shipment notification sent but not marked",
            transaction_id=tid,
            message_id=result.get("message_id"),
            outcome=outcome.value if outcome else None,
            error=error,
        )
