import os

import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13", "3.14"]

# psycopg2-binary ships a compiled module; Poetry's wheel cache can hand a
# build for the wrong interpreter to a fresh virtualenv.
_C_EXT_PACKAGES = ["psycopg2-binary"]


def _install(session: nox.Session, *extras: str) -> None:
    """Install the ledger and the requested extras into the nox virtualenv."""
    args = ["poetry", "install"]
    for extra in ("test", *extras):
        args += ["--extras", extra]
    session.run(*args, external=True)

    if "postgresql" in extras:
        session.run("pip", "install", "--force-reinstall", "--no-cache-dir", *_C_EXT_PACKAGES)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Full suite on the memory providers."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_domain(session: nox.Session) -> None:
    """Aggregates, tracking links, templates and payload parsing only."""
    _install(session)
    session.run("pytest", "tests/ledger/domain/", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_http(session: nox.Session) -> None:
    """Routes and the checkout-to-notification scenario."""
    _install(session)
    session.run("pytest", "tests/ledger/integration/", "tests/ledger/bdd/", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_postgresql(session: nox.Session) -> None:
    """Full suite against the production overlay. Needs DATABASE_URL."""
    if not os.environ.get("DATABASE_URL"):
        session.skip("DATABASE_URL is not set")
    _install(session, "postgresql")
    session.run("pytest", "--env", "production", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def lint(session: nox.Session) -> None:
    session.install("ruff")
    session.run("ruff", "check", "src", "tests", "noxfile.py")
