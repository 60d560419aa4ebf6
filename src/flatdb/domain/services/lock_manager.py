"""Directory-based table locks.

Mutating operations on a table are serialized across processes with a
lock directory next to the table file (``users.tsv`` -> ``users.tsv.lockdir``).
os.mkdir() either creates the directory or fails because it already exists,
so whoever creates it owns the table until the directory is removed.

A blocked caller retries on a short fixed interval and gives up after a
bounded wait. There is no re-entrancy: each operation takes the lock at
most once.

Usage:
    with locked("users.tsv"):
        ...  # exclusive access to users.tsv

Release runs on every exit path of the with block, including
KeyboardInterrupt and SystemExit (the CLI turns SIGTERM into SystemExit).
"""

from __future__ import annotations

import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Generator

from flatdb.domain.errors import IOFailureError, LockTimeoutError
from flatdb.infrastructure.logging import get_logger

if TYPE_CHECKING:
    from flatdb.infrastructure.metrics import MetricsRegistry


LOCK_SUFFIX = ".lockdir"
DEFAULT_RETRY_INTERVAL = 0.05
DEFAULT_TIMEOUT = 5.0

logger = get_logger(__name__)


def lock_path_for(table_path: str | Path) -> Path:
    """Return the lock directory path for a table file."""
    return Path(f"{os.fspath(table_path)}{LOCK_SUFFIX}")


class TableLock:
    """Exclusive cross-process lock on one table file.

    Attributes:
        path: The lock directory.
        table_path: The table the lock protects.
    """

    def __init__(
        self,
        table_path: str | Path,
        retry_interval: float = DEFAULT_RETRY_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        metrics: MetricsRegistry | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the lock.

        Args:
            table_path: Table file to lock.
            retry_interval: Seconds between attempts while the lock is taken.
            timeout: Seconds to keep retrying before giving up.
            metrics: Optional registry for wait time and timeouts.
            clock: Monotonic clock, replaceable in tests.
            sleep: Sleep function, replaceable in tests.
        """
        self.table_path = Path(table_path)
        self.path = lock_path_for(table_path)
        self._retry_interval = retry_interval
        self._timeout = timeout
        self._metrics = metrics
        self._clock = clock
        self._sleep = sleep
        self._held = False

    @property
    def is_held(self) -> bool:
        """Check if this object currently owns the lock."""
        return self._held

    def acquire(self) -> float:
        """Acquire the lock, waiting up to the timeout.

        Returns:
            Seconds spent waiting.

        Raises:
            RuntimeError: If this object already holds the lock.
            LockTimeoutError: If the lock stays taken past the timeout.
            IOFailureError: If the lock directory cannot be created for any
                reason other than already existing.
        """
        if self._held:
            raise RuntimeError(f"lock already held: {self.path}")

        start = self._clock()
        while True:
            try:
                os.mkdir(self.path)
                break
            except FileExistsError:
                waited = self._clock() - start
                if waited >= self._timeout:
                    if self._metrics is not None:
                        self._metrics.lock_timeouts_total.inc()
                    logger.warning("lock_timeout", lock=str(self.path), waited=waited)
                    raise LockTimeoutError(f"lock: timeout acquiring {self.path}") from None
                self._sleep(self._retry_interval)
            except OSError as e:
                raise IOFailureError(f"lock: cannot create {self.path}: {e}") from e

        waited = self._clock() - start
        self._held = True
        if self._metrics is not None:
            self._metrics.lock_wait_seconds.observe(waited)
        logger.debug("lock_acquired", lock=str(self.path), waited=waited)
        return waited

    def release(self) -> bool:
        """Release the lock.

        A lock directory that has already vanished or cannot be removed is
        logged, not raised, so release never masks the error that is
        unwinding the caller.

        Returns:
            True if the lock directory was removed.
        """
        if not self._held:
            return False
        self._held = False
        try:
            os.rmdir(self.path)
        except OSError as e:
            logger.warning("lock_release_failed", lock=str(self.path), error=str(e))
            return False
        logger.debug("lock_released", lock=str(self.path))
        return True

    def __enter__(self) -> TableLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


@contextmanager
def locked(
    table_path: str | Path,
    retry_interval: float = DEFAULT_RETRY_INTERVAL,
    timeout: float = DEFAULT_TIMEOUT,
    metrics: MetricsRegistry | None = None,
) -> Generator[TableLock, None, None]:
    """Hold a table's lock for the duration of a with block."""
    lock = TableLock(
        table_path,
        retry_interval=retry_interval,
        timeout=timeout,
        metrics=metrics,
    )
    lock.acquire()
    try:
        yield lock
    finally:
        lock.release()
