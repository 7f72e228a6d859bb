# tests/property/test_queue_properties.py
"""Property-based tests for BoundedQueue overflow semantics.

These tests verify:
1. Size never exceeds capacity
2. Survivors are exactly the newest max_size items, in order
3. dropped_count accounts for every evicted item
4. enqueue_all is equivalent to repeated enqueue
"""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from tracelog.writer.queue import BoundedQueue

capacities = st.integers(min_value=1, max_value=50)
item_lists = st.lists(st.integers(), max_size=200)
batches = st.lists(st.lists(st.integers(), max_size=30), max_size=10)


@given(max_size=capacities, items=item_lists)
def test_survivors_are_newest_items(max_size: int, items: list[int]) -> None:
    queue = BoundedQueue[int](max_size=max_size)
    for item in items:
        queue.enqueue(item)

    assert len(queue) <= max_size
    assert queue.dropped_count == max(0, len(items) - max_size)
    assert queue.dequeue_all() == items[-max_size:]


@given(max_size=capacities, batches=batches)
def test_enqueue_all_matches_repeated_enqueue(max_size: int, batches: list[list[int]]) -> None:
    bulk = BoundedQueue[int](max_size=max_size)
    single = BoundedQueue[int](max_size=max_size)

    for batch in batches:
        bulk.enqueue_all(batch)
        for item in batch:
            single.enqueue(item)

    assert bulk.dropped_count == single.dropped_count
    assert bulk.dequeue_all() == single.dequeue_all()


@given(max_size=capacities, first=item_lists, second=item_lists)
def test_drain_resets_size_but_not_drop_count(max_size: int, first: list[int], second: list[int]) -> None:
    queue = BoundedQueue[int](max_size=max_size)
    queue.enqueue_all(first)
    dropped = queue.dropped_count

    queue.dequeue_all()
    assert len(queue) == 0
    assert queue.dropped_count == dropped

    queue.enqueue_all(second)
    assert queue.dropped_count == dropped + max(0, len(second) - max_size)
