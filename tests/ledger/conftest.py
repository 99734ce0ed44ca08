"""Shared fixtures for the ledger tests: configuration, fake adapters, payloads."""

import json

import pytest

from ledger.channel.fake_email import FakeEmailAdapter
from ledger.config import LedgerConfig
from ledger.gateway.fake_adapter import TEST_SIGNATURE, FakeGateway
from ledger.order.order import OrderRecord
from ledger.services import build_services, set_services

ADMIN_TOKEN = "admin-secret"


def _completion_event(
    session_id="cs_test_001",
    email="buyer@example.com",
    event_type="checkout.session.completed",
    shipping=None,
    line_items=None,
    metadata=None,
) -> bytes:
    """Processor webhook body for a completed checkout session."""
    session = {
        "id": session_id,
        "object": "checkout.session",
        "customer_details": {"email": email, "name": "Ada Lovelace"},
        "metadata": metadata or {},
    }
    if shipping is not None:
        session["shipping_details"] = shipping
    if line_items is not None:
        session["line_items"] = {"object": "list", "data": line_items}

    return json.dumps(
        {
            "id": "evt_test_001",
            "object": "event",
            "type": event_type,
            "data": {"object": session},
        }
    ).encode()


@pytest.fixture()
def config():
    return LedgerConfig(
        redirect_base_url="https://shop.example.com",
        admin_token=ADMIN_TOKEN,
        lease_ttl_seconds=60,
        scan_page_size=2,
    )


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def email():
    return FakeEmailAdapter()


@pytest.fixture()
def services(config, gateway, email):
    services = build_services(config, gateway=gateway, email=email)
    set_services(services)
    return services


@pytest.fixture()
def signature():
    return TEST_SIGNATURE


@pytest.fixture()
def order_ledger():
    from protean import current_domain

    return current_domain.repository_for(OrderRecord)


@pytest.fixture()
def placed_order(order_ledger):
    """A recorded order with one line and a shipping address."""
    record = OrderRecord.place(
        transaction_id="cs_test_placed",
        customer_email="buyer@example.com",
        items=[{"name": "Cacao Nibs", "quantity": 2, "unit_price": 12.5}],
        shipping_address={"full_name": "Ada Lovelace", "line1": "12 Analytical Way", "city": "London"},
    )
    order_ledger.insert(record)
    return order_ledger.find("cs_test_placed")


@pytest.fixture()
def completion_event():
    """Factory for completion webhook bodies."""
    return _completion_event


@pytest.fixture()
def admin_headers():
    return {"X-Admin-Token": ADMIN_TOKEN}
