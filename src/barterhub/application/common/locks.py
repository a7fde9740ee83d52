"""
Per-trade write locks.

Every command handler runs "load trade -> validate -> save" while holding
the lock for that trade id, so two actions on the same trade serialize and
each one validates against the state left by the previous one. Actions on
different trades never wait on each other.

The locks are process-local (threading.RLock). Writers in other processes
are caught by the store's version check instead.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from ...domain.shared.exceptions import TradeLockTimeoutError

logger = logging.getLogger(__name__)


class TradeLocks:
    """
    Registry of one re-entrant lock per trade id

    An entry lives only while some thread holds or waits for it; the last
    one out removes it.
    """

    def __init__(self, timeout_seconds: Optional[float] = None):
        """
        Args:
            timeout_seconds: Default acquire timeout; None waits forever
        """
        self._timeout_seconds = timeout_seconds
        self._locks: Dict[int, threading.RLock] = {}
        self._users: Dict[int, int] = {}
        self._registry_lock = threading.Lock()

    def _checkout(self, trade_id: int) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(trade_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[trade_id] = lock
            self._users[trade_id] = self._users.get(trade_id, 0) + 1
            return lock

    def _checkin(self, trade_id: int) -> None:
        with self._registry_lock:
            remaining = self._users[trade_id] - 1
            if remaining:
                self._users[trade_id] = remaining
            else:
                del self._users[trade_id]
                del self._locks[trade_id]

    @contextmanager
    def hold(self, trade_id: int, timeout_seconds: Optional[float] = None) -> Iterator[None]:
        """
        Hold the write lock for a trade.

        Args:
            trade_id: Trade to serialize on
            timeout_seconds: Overrides the registry default for this call

        Raises:
            TradeLockTimeoutError: If the lock was not acquired in time
        """
        timeout = timeout_seconds if timeout_seconds is not None else self._timeout_seconds
        lock = self._checkout(trade_id)

        if timeout is None:
            acquired = lock.acquire()
        else:
            acquired = lock.acquire(timeout=max(float(timeout), 0.0))

        if not acquired:
            self._checkin(trade_id)
            logger.warning(f"Timed out waiting for lock on trade {trade_id}")
            raise TradeLockTimeoutError(
                f"Trade {trade_id} is busy with another action; try again"
            )

        try:
            yield
        finally:
            lock.release()
            self._checkin(trade_id)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)
