"""ExecutionLease aggregate and repository.

A named row with an expiry. Whoever holds an unexpired lease owns the
job; a crashed holder's lease lapses at ``expires_at`` and the next run
takes over. Every transition is a conditional column update, so two
contenders never both succeed.
"""

import threading
from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, String

from ledger.domain import ledger
from ledger.errors import StoreUnavailable

logger = structlog.get_logger(__name__)

_create_lock = threading.Lock()


def _now() -> datetime:
    return datetime.now(UTC)


@ledger.aggregate
class ExecutionLease:
    name = String(identifier=True, required=True, max_length=100)
    holder = String(max_length=100, default="")
    acquired_at = DateTime()
    expires_at = DateTime()


@ledger.repository(part_of=ExecutionLease)
class LeaseRegistry:
    def _exists(self, name: str) -> bool:
        try:
            self.get(name)
        except ObjectNotFoundError:
            return False
        return True

    def acquire(self, name: str, holder: str, ttl_seconds: int) -> bool:
        """Take the lease if nobody holds it or the holder's lease has lapsed."""
        now = _now()
        expires_at = now + timedelta(seconds=ttl_seconds)
        try:
            with _create_lock:
                if not self._exists(name):
                    try:
                        self.add(ExecutionLease(name=name, holder=holder, acquired_at=now, expires_at=expires_at))
                    except Exception:
                        # Lost a cross-process race for the first row; fall through to the conditional take
                        if not self._exists(name):
                            raise
                    else:
                        return True

            taken = self._dao.query.filter(name=name, expires_at__lt=now).update_all(
                holder=holder, acquired_at=now, expires_at=expires_at
            )
        except Exception as exc:
            logger.error("Lease acquire failed", lease=name, error=str(exc))
            raise StoreUnavailable("Lease store unavailable") from exc

        return bool(taken)

    def renew(self, name: str, holder: str, ttl_seconds: int) -> bool:
        """Push the expiry out. False once another holder has taken over."""
        try:
            renewed = self._dao.query.filter(name=name, holder=holder).update_all(
                expires_at=_now() + timedelta(seconds=ttl_seconds)
            )
        except Exception as exc:
            logger.error("Lease renew failed", lease=name, error=str(exc))
            raise StoreUnavailable("Lease store unavailable") from exc
        return bool(renewed)

    def release(self, name: str, holder: str) -> None:
        """Expire the lease now, if it is still ours."""
        try:
            self._dao.query.filter(name=name, holder=holder).update_all(
                holder="", expires_at=_now() - timedelta(seconds=1)
            )
        except Exception as exc:
            logger.error("Lease release failed", lease=name, error=str(exc))
            raise StoreUnavailable("Lease store unavailable") from exc
