# src/tracelog/writer/mutex.py
"""Named mutual-exclusion gate with a caller-side deadline.

The critical section runs on a daemon worker thread that holds the gate's
lock; the caller waits for it with a timeout. Whichever finishes first
wins:

- section first: its result is returned (or its exception re-raised)
- deadline first: the caller gets LockTimeoutError and moves on. A section
  that already holds the lock runs to completion; one still waiting for
  the lock gives up at the same deadline and never runs

Liveness over strict exclusivity: a stuck flush can never wedge the
process, and repeated timeouts behind it do not pile up waiting threads.
Re-entrant calls from inside a section time out instead of deadlocking.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

import structlog

from tracelog.errors import LockTimeoutError

logger = structlog.get_logger(__name__)


class _Outcome:
    """Hand-off slot between the waiting caller and the worker thread."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.lock = threading.Lock()
        self.value: Any = None
        self.error: BaseException | None = None
        self.abandoned = False


class Mutex:
    """Gate allowing at most one critical section at a time.

    Each LogWriter owns its own Mutex; there is no process-wide registry,
    so two writers never contend.

    Example:
        mutex = Mutex("tracelog-logs-1234")
        mutex.with_lock(flush_cycle, timeout=30.0)
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    def locked(self) -> bool:
        """Whether a critical section currently holds the gate."""
        return self._lock.locked()

    def with_lock[T](self, critical_section: Callable[[], T], timeout: float) -> T:
        """Run critical_section under the gate, waiting at most timeout seconds.

        Args:
            critical_section: Zero-argument callable to run exclusively
            timeout: Seconds the caller is willing to wait for the section
                to acquire the gate AND finish

        Returns:
            Whatever critical_section returned

        Raises:
            LockTimeoutError: If the deadline elapsed first. A section that
                already started is not cancelled; one that never got the
                gate is skipped.
            Exception: Anything critical_section raised, if it finished in time
        """
        outcome = _Outcome()
        worker = threading.Thread(
            target=self._run,
            args=(critical_section, outcome, timeout),
            name=f"{self._name}-section",
            daemon=True,
        )
        worker.start()

        finished = outcome.done.wait(timeout)
        if not finished:
            with outcome.lock:
                # The worker may have completed between wait() and here
                finished = outcome.done.is_set()
                if not finished:
                    outcome.abandoned = True
        if not finished:
            logger.error(
                "Mutex acquisition timed out - caller moving on",
                mutex=self._name,
                timeout_seconds=timeout,
            )
            raise LockTimeoutError(self._name, timeout)

        if outcome.error is not None:
            raise outcome.error
        return outcome.value  # type: ignore[no-any-return]

    def wait_idle(self, timeout: float) -> bool:
        """Block until no section holds the gate, at most timeout seconds.

        Returns:
            True if the gate was free before the deadline
        """
        if not self._lock.acquire(timeout=timeout):
            return False
        self._lock.release()
        return True

    def _run(self, critical_section: Callable[[], Any], outcome: _Outcome, timeout: float) -> None:
        if not self._lock.acquire(timeout=timeout):
            return
        try:
            with outcome.lock:
                # Caller gave up between our acquire and now
                if outcome.abandoned:
                    return
            value: Any = None
            error: BaseException | None = None
            try:
                value = critical_section()
            except Exception as e:
                error = e
            with outcome.lock:
                outcome.value = value
                outcome.error = error
                outcome.done.set()
                abandoned = outcome.abandoned
        finally:
            self._lock.release()

        # Nobody is waiting any more, so the error would otherwise vanish
        if abandoned and error is not None:
            logger.error(
                "Late critical section failed after its caller timed out",
                mutex=self._name,
                error=str(error),
                error_type=type(error).__name__,
            )
