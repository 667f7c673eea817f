"""Per-payment serialization of reconciliation.

The browser redirect and the gateway webhook for one payment routinely land
at the same moment. Each reconciliation holds the lock for its payment key
and the lock for its cart, so the later caller only starts once the earlier
one has committed, and then finds the order instead of the cart.

Locks are process-local and reference counted: an entry lives only while
some caller holds or waits for it. Across processes the unique
``payment_key`` of a relational provider is what keeps one order per payment.
"""

import threading
from contextlib import contextmanager

import structlog

logger = structlog.get_logger(__name__)

_registry_lock = threading.Lock()
_entries: dict[str, "_Entry"] = {}


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


def _checkout(name: str) -> _Entry:
    with _registry_lock:
        entry = _entries.get(name)
        if entry is None:
            entry = _entries[name] = _Entry()
        entry.users += 1
        return entry


def _checkin(name: str) -> None:
    with _registry_lock:
        entry = _entries[name]
        entry.users -= 1
        if entry.users == 0:
            del _entries[name]


@contextmanager
def reconciliation_lock(payment_key: str, cart_id: str | None = None):
    """Hold the payment and cart locks for the duration of the block.

    Locks are always taken in sorted order so two callers sharing a cart but
    not a reference cannot deadlock.
    """
    names = sorted({f"payment:{payment_key}"} | ({f"cart:{cart_id}"} if cart_id else set()))
    entries = [(name, _checkout(name)) for name in names]
    acquired = []
    try:
        for name, entry in entries:
            if not entry.lock.acquire(blocking=False):
                logger.info("reconciliation_waiting", lock=name)
                entry.lock.acquire()
            acquired.append(entry)
        yield
    finally:
        for entry in reversed(acquired):
            entry.lock.release()
        for name, _ in entries:
            _checkin(name)


def held_locks() -> int:
    """Number of lock entries currently in use."""
    with _registry_lock:
        return len(_entries)
