"""Composition root: builds the ledger components once per process.

The API and the dispatcher job both call ``get_services()``; tests call
``reset_services()`` between cases so fake adapters start clean.
"""

from dataclasses import dataclass

from ledger.channel import build_email_channel
from ledger.channel.email_port import EmailPort
from ledger.checkout.ingestion import EventIngestor
from ledger.checkout.session import SessionGateway
from ledger.config import LedgerConfig
from ledger.gateway import build_gateway
from ledger.gateway.port import CheckoutGateway
from ledger.notification.dispatcher import NotificationDispatcher
from ledger.order.status import StatusReader


@dataclass(frozen=True)
class LedgerServices:
    config: LedgerConfig
    gateway: CheckoutGateway
    email: EmailPort
    sessions: SessionGateway
    ingestor: EventIngestor
    status: StatusReader
    dispatcher: NotificationDispatcher


def build_services(
    config: LedgerConfig,
    gateway: CheckoutGateway | None = None,
    email: EmailPort | None = None,
) -> LedgerServices:
    gateway = gateway or build_gateway(config)
    email = email or build_email_channel(config)
    return LedgerServices(
        config=config,
        gateway=gateway,
        email=email,
        sessions=SessionGateway(config, gateway),
        ingestor=EventIngestor(config, gateway),
        status=StatusReader(config),
        dispatcher=NotificationDispatcher(config, email),
    )


_services: LedgerServices | None = None


def get_services() -> LedgerServices:
    """Return the process-wide services, built from the environment on first use."""
    global _services
    if _services is None:
        _services = build_services(LedgerConfig.from_env())
    return _services


def set_services(services: LedgerServices) -> None:
    global _services
    _services = services


def reset_services() -> None:
    """Drop the cached services (useful between tests)."""
    global _services
    _services = None
