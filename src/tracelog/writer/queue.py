# src/tracelog/writer/queue.py
"""Bounded FIFO queue used for the writer's main, attachment and storage queues.

Overflow drops the OLDEST items silently. Under sustained backpressure that
is real data loss, accepted in exchange for a hard memory ceiling; drops are
counted and logged in aggregate.
"""

from collections import deque
from collections.abc import Iterable

import structlog

logger = structlog.get_logger(__name__)


class BoundedQueue[T]:
    """FIFO queue with a maximum capacity and oldest-first eviction.

    Thread Safety:
        NOT thread-safe. The owning LogWriter serializes every call
        through its queue lock.

    Attributes:
        dropped_count: Total number of items evicted due to overflow.

    Example:
        queue = BoundedQueue[CommitLog](max_size=1000)
        queue.enqueue(record)
        batch = queue.dequeue_all()
    """

    # Log aggregate drops every N evictions instead of one line per item
    _LOG_INTERVAL = 100

    def __init__(self, max_size: int = 10_000, *, name: str = "queue") -> None:
        """Initialize the queue.

        Args:
            max_size: Maximum number of items held. Defaults to 10,000.
            name: Label used in overflow log events.

        Raises:
            ValueError: If max_size < 1.
        """
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self._name = name
        self._items: deque[T] = deque(maxlen=max_size)
        self._dropped_count: int = 0
        self._last_logged_drop_count: int = 0

    @property
    def max_size(self) -> int:
        # maxlen is always set by __init__
        return self._items.maxlen  # type: ignore[return-value]

    def enqueue(self, item: T) -> None:
        """Append one item, evicting the oldest when full."""
        # Check BEFORE append: deque evicts during append
        was_full = len(self._items) == self._items.maxlen
        self._items.append(item)
        if was_full:
            self._record_drops(1)

    def enqueue_all(self, items: Iterable[T]) -> None:
        """Append many items, evicting only as many oldest items as needed.

        Equivalent to repeated enqueue() but counted and logged once. When
        more items arrive than the queue can hold, only the newest
        max_size of them survive.
        """
        incoming = list(items)
        if not incoming:
            return
        overflow = len(self._items) + len(incoming) - self.max_size
        self._items.extend(incoming)
        if overflow > 0:
            self._record_drops(overflow)

    def requeue(self, items: Iterable[T]) -> None:
        """Put items back at the FRONT, ahead of anything queued since.

        Used for batches that were dequeued but could not be delivered, so
        they keep their place before newer items. On overflow the oldest
        items are still the ones evicted, which here means the head of the
        requeued batch.
        """
        returned = list(items)
        if not returned:
            return
        overflow = len(self._items) + len(returned) - self.max_size
        # A maxlen deque trims from the left on construction, i.e. the oldest
        self._items = deque([*returned, *self._items], maxlen=self.max_size)
        if overflow > 0:
            self._record_drops(overflow)

    def dequeue_all(self) -> list[T]:
        """Remove and return every item in FIFO order (oldest first)."""
        items = list(self._items)
        self._items.clear()
        return items

    @property
    def size(self) -> int:
        return len(self._items)

    @property
    def dropped_count(self) -> int:
        """Number of items evicted due to overflow."""
        return self._dropped_count

    def __len__(self) -> int:
        return len(self._items)

    def _record_drops(self, count: int) -> None:
        self._dropped_count += count
        if self._dropped_count - self._last_logged_drop_count >= self._LOG_INTERVAL:
            logger.warning(
                "Queue overflow - oldest items dropped",
                queue=self._name,
                dropped_since_last_log=self._dropped_count - self._last_logged_drop_count,
                dropped_total=self._dropped_count,
                max_size=self.max_size,
                hint="Consider increasing queue_max_size or flushing more often",
            )
            self._last_logged_drop_count = self._dropped_count
