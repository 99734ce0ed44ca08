"""Ledger runtime configuration.

A single ``LedgerConfig`` is built at the composition root (API startup or
the dispatcher job) and handed to every component. Components never read
the environment themselves.
"""

import os
from dataclasses import dataclass, field

from ledger.errors import InvalidInput

COMPLETED_EVENT_TYPES = ("checkout.session.completed",)


@dataclass(frozen=True)
class LedgerConfig:
    """Secrets, adapter selection, URLs and timeouts for the ledger."""

    # Payment processor
    gateway_adapter: str = "fake"  # fake, stripe
    stripe_api_key: str = ""
    stripe_webhook_secret: str = ""
    gateway_timeout_seconds: float = 10.0
    completed_event_types: tuple[str, ...] = COMPLETED_EVENT_TYPES

    # Redirect targets handed to the processor
    redirect_base_url: str = "http://127.0.0.1:8000"

    # Mail transport
    mail_adapter: str = "fake"  # fake, smtp
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    mail_sender: str = "orders@example.com"
    mail_timeout_seconds: float = 10.0

    # Notification dispatcher
    lease_name: str = "shipment-notifications"
    lease_ttl_seconds: int = 55 * 60
    scan_page_size: int = 100

    # Administrative routes
    admin_token: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        if self.gateway_adapter not in ("fake", "stripe"):
            raise InvalidInput(f"Unknown gateway adapter: {self.gateway_adapter}")
        if self.mail_adapter not in ("fake", "smtp"):
            raise InvalidInput(f"Unknown mail adapter: {self.mail_adapter}")
        if self.gateway_adapter == "stripe" and not (self.stripe_api_key and self.stripe_webhook_secret):
            raise InvalidInput("Stripe adapter requires STRIPE_API_KEY and STRIPE_WEBHOOK_SECRET")
        if self.lease_ttl_seconds <= 0:
            raise InvalidInput("lease_ttl_seconds must be positive")
        if self.scan_page_size <= 0:
            raise InvalidInput("scan_page_size must be positive")

    @property
    def success_url(self) -> str:
        # {CHECKOUT_SESSION_ID} is substituted by the processor on redirect
        return f"{self.redirect_base_url.rstrip('/')}/order-status?session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def cancel_url(self) -> str:
        return f"{self.redirect_base_url.rstrip('/')}/checkout"

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "LedgerConfig":
        """Build configuration from ``LEDGER_*`` / ``STRIPE_*`` / ``SMTP_*`` variables."""
        env = os.environ if environ is None else environ

        event_types = env.get("LEDGER_COMPLETED_EVENT_TYPES")
        return cls(
            gateway_adapter=env.get("LEDGER_GATEWAY_ADAPTER", "fake"),
            stripe_api_key=env.get("STRIPE_API_KEY", ""),
            stripe_webhook_secret=env.get("STRIPE_WEBHOOK_SECRET", ""),
            gateway_timeout_seconds=float(env.get("LEDGER_GATEWAY_TIMEOUT", "10")),
            completed_event_types=(
                tuple(t.strip() for t in event_types.split(",") if t.strip())
                if event_types
                else COMPLETED_EVENT_TYPES
            ),
            redirect_base_url=env.get("LEDGER_REDIRECT_BASE_URL", "http://127.0.0.1:8000"),
            mail_adapter=env.get("LEDGER_MAIL_ADAPTER", "fake"),
            smtp_host=env.get("SMTP_HOST", "localhost"),
            smtp_port=int(env.get("SMTP_PORT", "587")),
            smtp_username=env.get("SMTP_USERNAME", ""),
            smtp_password=env.get("SMTP_PASSWORD", ""),
            smtp_use_tls=env.get("SMTP_USE_TLS", "true").lower() in ("1", "true", "yes"),
            mail_sender=env.get("LEDGER_MAIL_SENDER", "orders@example.com"),
            mail_timeout_seconds=float(env.get("LEDGER_MAIL_TIMEOUT", "10")),
            lease_name=env.get("LEDGER_LEASE_NAME", "shipment-notifications"),
            lease_ttl_seconds=int(env.get("LEDGER_LEASE_TTL", str(55 * 60))),
            scan_page_size=int(env.get("LEDGER_SCAN_PAGE_SIZE", "100")),
            admin_token=env.get("LEDGER_ADMIN_TOKEN", ""),
        )
