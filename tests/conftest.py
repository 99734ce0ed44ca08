import os
from pathlib import Path

import pytest

_SUITE_MARKERS = {"domain": "domain", "application": "application", "integration": "integration", "bdd": "integration"}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Protean overlay from domain.toml: test (memory) or production (PostgreSQL)",
    )


def pytest_sessionstart(session):
    """Initialise the ledger for the chosen overlay and keep its context pushed for the whole run."""
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from ledger.domain import ledger

    ledger.init()
    ledger.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Mark each test by the suite directory it lives in; HTTP suites also count as slow."""
    for item in items:
        suite = Path(item.fspath).parent.name
        marker = _SUITE_MARKERS.get(suite)
        if marker is None:
            continue

        item.add_marker(getattr(pytest.mark, marker))
        if marker == "integration" and not any(m.name == "fast" for m in item.iter_markers()):
            item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def ledger_schema():
    from ledger.domain import ledger
    from ledger.utils.db import drop_db, setup_db

    setup_db(ledger)
    yield
    drop_db(ledger)


@pytest.fixture(autouse=True)
def clean_ledger():
    """Empty order rows, leases and recorded events, and drop the cached services, after every test."""
    yield

    from protean import current_domain

    from ledger.services import reset_services

    for provider in current_domain.providers.values():
        provider._data_reset()
    current_domain.event_store.store._data_reset()

    reset_services()
