"""Mail transport port used by the shipment notification dispatcher.

The dispatcher marks an order notified only when ``send`` reports
``"sent"``, so an adapter must return that status only once its transport
has accepted the message.
"""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    @abstractmethod
    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> dict:
        """Hand one shipment email to the transport.

        Transport failures come back as ``{"status": "failed", "error": ...}``
        rather than as exceptions; the dispatcher still guards against an
        adapter that raises.

        Returns:
            dict with ``message_id`` (None on failure), ``status`` and,
            on failure, ``error``.
        """
        ...
