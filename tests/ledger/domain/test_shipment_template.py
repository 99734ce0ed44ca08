"""Tests for the shipment notification template."""

from ledger.notification.template import ShipmentNotificationTemplate


def _context(**overrides):
    context = {
        "order_id": "cs_test_001",
        "full_name": "Ada Lovelace",
        "carrier": "UPS",
        "tracking_number": "1Z999AA10123456784",
        "tracking_url": "https://www.ups.com/track?tracknum=1Z999AA10123456784",
    }
    context.update(overrides)
    return context


class TestShipmentNotificationTemplate:
    def test_subject(self):
        assert ShipmentNotificationTemplate.render(_context())["subject"] == "Your Order Has Shipped!"

    def test_body_mentions_order_and_tracking(self):
        body = ShipmentNotificationTemplate.render(_context())["body"]
        assert "Hi Ada Lovelace," in body
        assert "cs_test_001" in body
        assert "Carrier: UPS" in body
        assert "Tracking Number: 1Z999AA10123456784" in body
        assert "https://www.ups.com/track?tracknum=1Z999AA10123456784" in body

    def test_html_body_links_tracking_page(self):
        html_body = ShipmentNotificationTemplate.render(_context())["html_body"]
        assert '<a href="https://www.ups.com/track?tracknum=1Z999AA10123456784">' in html_body

    def test_html_body_escapes_values(self):
        html_body = ShipmentNotificationTemplate.render(_context(full_name="<script>"))["html_body"]
        assert "<script>" not in html_body
        assert "&lt;script&gt;" in html_body

    def test_without_name_or_link(self):
        content = ShipmentNotificationTemplate.render(_context(full_name="", tracking_url=None, carrier=None))
        assert content["body"].startswith("Hello,")
        assert "Track your package" not in content["body"]
        assert "the carrier" in content["body"]
        assert "<a " not in content["html_body"]
