"""Tests for RecordTrackingNumber and ChangeOrderStatus."""

import pytest
from protean import current_domain
from protean.exceptions import InvalidDataError

from ledger.errors import InvalidInput
from ledger.order.admin import ChangeOrderStatus, RecordTrackingNumber


class TestRecordTrackingNumber:
    def test_records_tracking_number(self, placed_order, order_ledger):
        outcome = current_domain.process(
            RecordTrackingNumber(transaction_id="cs_test_placed", tracking_number="1Z999AA10123456784"),
            asynchronous=False,
        )

        assert outcome == "Updated"
        assert order_ledger.find("cs_test_placed").tracking_number == "1Z999AA10123456784"

    def test_unknown_order(self):
        outcome = current_domain.process(
            RecordTrackingNumber(transaction_id="cs_unknown", tracking_number="123456789012"),
            asynchronous=False,
        )
        assert outcome == "NotFound"

    def test_tracking_number_required(self):
        with pytest.raises(InvalidDataError):
            RecordTrackingNumber(transaction_id="cs_test_placed", tracking_number="")

    def test_blank_tracking_number_rejected(self, placed_order):
        with pytest.raises(InvalidInput):
            current_domain.process(
                RecordTrackingNumber(transaction_id="cs_test_placed", tracking_number="   "),
                asynchronous=False,
            )

    def test_does_not_reset_notified(self, placed_order, order_ledger):
        order_ledger.update_field("cs_test_placed", "tracking_number", "123456789012")
        order_ledger.update_field("cs_test_placed", "notified", True)

        current_domain.process(
            RecordTrackingNumber(transaction_id="cs_test_placed", tracking_number="1Z999AA10123456784"),
            asynchronous=False,
        )

        record = order_ledger.find("cs_test_placed")
        assert record.tracking_number == "1Z999AA10123456784"
        assert record.notified is True


class TestChangeOrderStatus:
    @pytest.mark.parametrize("status", ["Processing", "Shipped", "Delivered", "Placed"])
    def test_changes_status(self, placed_order, order_ledger, status):
        outcome = current_domain.process(
            ChangeOrderStatus(transaction_id="cs_test_placed", status=status),
            asynchronous=False,
        )

        assert outcome == "Updated"
        assert order_ledger.find("cs_test_placed").status == status

    def test_unknown_status_rejected(self, placed_order, order_ledger):
        with pytest.raises(InvalidInput):
            current_domain.process(
                ChangeOrderStatus(transaction_id="cs_test_placed", status="Lost"),
                asynchronous=False,
            )
        assert order_ledger.find("cs_test_placed").status == "Placed"
