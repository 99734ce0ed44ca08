"""Order Ledger job runner.

Provides the scheduled shipment-notification run and the database schema
commands.

Usage:
    ledger-dispatch run        # One notification run (schedule hourly)
    ledger-dispatch setup-db   # Create the ledger tables
    ledger-dispatch drop-db    # Drop the ledger tables
"""

import argparse
import signal
import sys
import threading

import structlog

logger = structlog.get_logger(__name__)


def install_signal_handlers(cancel: threading.Event) -> None:
    """SIGTERM/SIGINT stop the run after the record in flight."""

    def _request_stop(signum, frame):
        logger.info("Stop requested, finishing current record", signal=signal.Signals(signum).name)
        cancel.set()

    signal.signal(signal.SIGTERM, _request_stop)
    signal.signal(signal.SIGINT, _request_stop)


def run_dispatch(cancel: threading.Event | None = None) -> int:
    """Run the dispatcher once. Exit code 0 even when some sends failed."""
    from ledger.services import get_services

    report = get_services().dispatcher.run(cancel=cancel)

    if not report.lease_acquired:
        print("Another notification run holds the lease; nothing to do.")
        return 0

    print(
        f"Scanned {report.scanned}, eligible {report.eligible}, sent {report.sent}, "
        f"failed {report.failed}, unmarked {report.unmarked}" + (" (cancelled)" if report.cancelled else "")
    )
    return 0


def manage_schema(command: str) -> int:
    from ledger.domain import ledger
    from ledger.utils.db import drop_db, setup_db

    if command == "setup-db":
        count = setup_db(ledger)
        print(f"Ledger schema ready on {count} SQL provider(s).")
    else:
        count = drop_db(ledger)
        print(f"Ledger schema dropped on {count} SQL provider(s).")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Order Ledger jobs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="Send pending shipment notifications once")
    subparsers.add_parser("setup-db", help="Create the ledger tables")
    subparsers.add_parser("drop-db", help="Drop the ledger tables")

    args = parser.parse_args(argv)

    from ledger.domain import ledger

    ledger.init()

    if args.command == "run":
        cancel = threading.Event()
        install_signal_handlers(cancel)
        with ledger.domain_context():
            return run_dispatch(cancel)

    return manage_schema(args.command)


if __name__ == "__main__":
    sys.exit(main())
