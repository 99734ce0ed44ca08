"""Tests for the OrderLedger row store."""

import threading

import pytest
from protean import current_domain

from ledger.domain import ledger
from ledger.errors import InvalidInput, StoreUnavailable
from ledger.order.order import OrderRecord
from ledger.order.repository import InsertOutcome, OrderLedger, UpdateOutcome


def _record(transaction_id="cs_test_001", **overrides):
    defaults = {
        "customer_email": "buyer@example.com",
        "items": [{"name": "Cacao Nibs", "quantity": 1, "unit_price": 12.5}],
    }
    defaults.update(overrides)
    return OrderRecord.place(transaction_id=transaction_id, **defaults)


class TestFindAndInsert:
    def test_find_missing_returns_none(self, order_ledger):
        assert order_ledger.find("cs_missing") is None

    def test_insert_then_find(self, order_ledger):
        assert order_ledger.insert(_record()) is InsertOutcome.INSERTED

        found = order_ledger.find("cs_test_001")
        assert found.customer_email == "buyer@example.com"
        assert found.status == "Placed"
        assert found.line_items[0].name == "Cacao Nibs"

    def test_second_insert_is_a_no_op(self, order_ledger):
        order_ledger.insert(_record(customer_email="first@example.com"))

        outcome = order_ledger.insert(_record(customer_email="second@example.com"))

        assert outcome is InsertOutcome.ALREADY_EXISTS
        assert order_ledger.find("cs_test_001").customer_email == "first@example.com"

    def test_concurrent_inserts_write_one_row(self, order_ledger):
        outcomes = []

        def _insert(n):
            with ledger.domain_context():
                repo = current_domain.repository_for(OrderRecord)
                outcomes.append(repo.insert(_record(customer_email=f"buyer{n}@example.com")))

        threads = [threading.Thread(target=_insert, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count(InsertOutcome.INSERTED) == 1
        assert outcomes.count(InsertOutcome.ALREADY_EXISTS) == 7
        assert len(order_ledger.scan_all()) == 1

    def test_store_failure_is_not_reported_as_missing(self, order_ledger, monkeypatch):
        def _broken(self, identifier):
            raise ConnectionError("database went away")

        monkeypatch.setattr(OrderLedger, "get", _broken)

        with pytest.raises(StoreUnavailable):
            order_ledger.find("cs_test_001")


class TestUpdateField:
    def test_update_missing_row(self, order_ledger):
        assert order_ledger.update_field("cs_missing", "status", "Shipped") is UpdateOutcome.NOT_FOUND

    def test_update_status(self, order_ledger):
        order_ledger.insert(_record())
        before = order_ledger.find("cs_test_001").last_updated_at

        assert order_ledger.update_field("cs_test_001", "status", "Shipped") is UpdateOutcome.UPDATED

        record = order_ledger.find("cs_test_001")
        assert record.status == "Shipped"
        assert record.last_updated_at >= before

    def test_update_unknown_status_rejected(self, order_ledger):
        order_ledger.insert(_record())
        with pytest.raises(InvalidInput):
            order_ledger.update_field("cs_test_001", "status", "Lost")
        assert order_ledger.find("cs_test_001").status == "Placed"

    def test_update_non_updatable_field_rejected(self, order_ledger):
        order_ledger.insert(_record())
        with pytest.raises(InvalidInput):
            order_ledger.update_field("cs_test_001", "customer_email", "other@example.com")

    def test_tracking_number_cannot_be_cleared(self, order_ledger):
        order_ledger.insert(_record())
        order_ledger.update_field("cs_test_001", "tracking_number", "123456789012")

        with pytest.raises(InvalidInput):
            order_ledger.update_field("cs_test_001", "tracking_number", "")
        assert order_ledger.find("cs_test_001").tracking_number == "123456789012"

    def test_column_writes_do_not_overwrite_each_other(self, order_ledger):
        order_ledger.insert(_record())

        order_ledger.update_field("cs_test_001", "tracking_number", "1Z999AA10123456784")
        order_ledger.update_field("cs_test_001", "status", "Shipped")
        order_ledger.update_field("cs_test_001", "notified", True)

        record = order_ledger.find("cs_test_001")
        assert record.tracking_number == "1Z999AA10123456784"
        assert record.status == "Shipped"
        assert record.notified is True

    def test_notified_flips_once(self, order_ledger):
        order_ledger.insert(_record())
        order_ledger.update_field("cs_test_001", "tracking_number", "123456789012")

        assert order_ledger.update_field("cs_test_001", "notified", True) is UpdateOutcome.UPDATED
        assert order_ledger.update_field("cs_test_001", "notified", True) is UpdateOutcome.UNCHANGED

    def test_notified_never_reverts(self, order_ledger):
        order_ledger.insert(_record())
        order_ledger.update_field("cs_test_001", "tracking_number", "123456789012")
        order_ledger.update_field("cs_test_001", "notified", True)

        with pytest.raises(InvalidInput):
            order_ledger.update_field("cs_test_001", "notified", False)
        assert order_ledger.find("cs_test_001").notified is True

    def test_notified_needs_tracking_number(self, order_ledger):
        order_ledger.insert(_record())
        with pytest.raises(InvalidInput):
            order_ledger.update_field("cs_test_001", "notified", True)


class TestScanAll:
    def test_empty_ledger(self, order_ledger):
        assert order_ledger.scan_all() == []

    def test_pages_through_every_row(self, order_ledger):
        for n in range(5):
            order_ledger.insert(_record(transaction_id=f"cs_test_{n:03d}"))

        records = order_ledger.scan_all(page_size=2)

        assert [r.transaction_id for r in records] == [f"cs_test_{n:03d}" for n in range(5)]
