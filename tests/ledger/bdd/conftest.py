"""Shared BDD fixtures and step definitions for the order lifecycle."""

from protean import current_domain
from pytest_bdd import given, parsers, then, when

from ledger.gateway.fake_adapter import TEST_SIGNATURE
from ledger.order.admin import ChangeOrderStatus, RecordTrackingNumber


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse(
        'the processor reports session "{transaction_id}" completed for "{email}" '
        'with {quantity:d} x "{name}" at {unit_price:f}'
    ),
    target_fixture="delivery",
)
def _completed_session(services, completion_event, transaction_id, email, quantity, name, unit_price):
    payload = completion_event(
        session_id=transaction_id,
        email=email,
        line_items=[{"name": name, "quantity": quantity, "unit_price": unit_price}],
    )
    services.ingestor.ingest(payload, TEST_SIGNATURE)
    return payload


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the processor redelivers the same completion event")
def _redeliver(services, delivery):
    services.ingestor.ingest(delivery, TEST_SIGNATURE)


@when(parsers.cfparse('an administrator records tracking number "{tracking_number}" on order "{transaction_id}"'))
def _record_tracking(tracking_number, transaction_id):
    current_domain.process(
        RecordTrackingNumber(transaction_id=transaction_id, tracking_number=tracking_number),
        asynchronous=False,
    )


@when(parsers.cfparse('an administrator changes order "{transaction_id}" to "{status}"'))
def _change_status(transaction_id, status):
    current_domain.process(ChangeOrderStatus(transaction_id=transaction_id, status=status), asynchronous=False)


@when("the notification dispatcher runs")
def _dispatch(services):
    services.dispatcher.run()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the ledger holds {count:d} order"))
def _ledger_size(order_ledger, count):
    assert len(order_ledger.scan_all()) == count


@then(parsers.cfparse('order "{transaction_id}" has status "{status}"'))
def _has_status(order_ledger, transaction_id, status):
    assert order_ledger.find(transaction_id).status == status


@then(parsers.cfparse('order "{transaction_id}" has no tracking number'))
def _no_tracking(order_ledger, transaction_id):
    assert order_ledger.find(transaction_id).tracking_number == ""


@then(parsers.cfparse('order "{transaction_id}" is not notified'))
def _not_notified(order_ledger, transaction_id):
    assert order_ledger.find(transaction_id).notified is False


@then(parsers.cfparse('order "{transaction_id}" is notified'))
def _notified(order_ledger, transaction_id):
    assert order_ledger.find(transaction_id).notified is True


@then(parsers.cfparse('{count:d} shipment notification was sent to "{email_address}"'))
def _sent_count(email, count, email_address):
    assert [m["to"] for m in email.sent_emails] == [email_address] * count


@then(parsers.cfparse('the notification links to "{url}"'))
def _links_to(email, url):
    assert url in email.sent_emails[-1]["body"]


@then(parsers.cfparse('the status page for "{transaction_id}" shows "{status}"'))
def _status_page(services, transaction_id, status):
    assert services.status.snapshot(transaction_id)["status"] == status
