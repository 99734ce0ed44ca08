"""Mail transport adapters for shipment notifications.

build_email_channel() uses the fake adapter by default; the SMTP adapter
is selected with ``LEDGER_MAIL_ADAPTER=smtp``.
"""

from ledger.channel.email_port import EmailPort
from ledger.config import LedgerConfig


def build_email_channel(config: LedgerConfig) -> EmailPort:
    """Return the email adapter selected by ``config``."""
    if config.mail_adapter == "smtp":
        from ledger.channel.smtp_email import SMTPEmailAdapter

        return SMTPEmailAdapter(
            host=config.smtp_host,
            port=config.smtp_port,
            sender=config.mail_sender,
            username=config.smtp_username,
            password=config.smtp_password,
            use_tls=config.smtp_use_tls,
            timeout_seconds=config.mail_timeout_seconds,
        )

    from ledger.channel.fake_email import FakeEmailAdapter

    return FakeEmailAdapter()
