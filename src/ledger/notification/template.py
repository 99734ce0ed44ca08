"""Shipment notification template: sent once a tracking number is on file."""

from html import escape


class ShipmentNotificationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        carrier = context.get("carrier") or "the carrier"
        tracking_number = context.get("tracking_number", "N/A")
        tracking_url = context.get("tracking_url")
        full_name = context.get("full_name") or ""
        greeting = f"Hi {full_name}," if full_name else "Hello,"

        track_line = f"Track your package: {tracking_url}\n\n" if tracking_url else ""
        body = (
            f"{greeting}\n\n"
            f"Your order {order_id} has shipped.\n\n"
            f"Carrier: {carrier}\n"
            f"Tracking Number: {tracking_number}\n\n"
            f"{track_line}"
            "Thank you for your order!"
        )

        track_link = (
            f'<p><a href="{escape(tracking_url, quote=True)}">Track Package</a></p>' if tracking_url else ""
        )
        html_body = (
            f"<p>{escape(greeting)}</p>"
            f"<p>Your order <strong>{escape(order_id)}</strong> has shipped.</p>"
            "<ul>"
            f"<li>Carrier: {escape(carrier)}</li>"
            f"<li>Tracking Number: {escape(tracking_number)}</li>"
            "</ul>"
            f"{track_link}"
            "<p>Thank you for your order!</p>"
        )

        return {
            "subject": "Your Order Has Shipped!",
            "body": body,
            "html_body": html_body,
        }
