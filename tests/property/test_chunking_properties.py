# tests/property/test_chunking_properties.py
"""Property-based tests for push-body chunking and record serialization.

These tests verify:
1. Chunking preserves every record, in order
2. No multi-record chunk exceeds the byte limit
3. Chunk size is the UTF-8 length of its body
4. Serialized records are always single lines
"""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from tracelog.writer.records import Action, CommitLog, Entity
from tracelog.writer.writer import chunk_records

json_values = st.recursive(
    st.none() | st.booleans() | st.integers() | st.text(max_size=40),
    lambda children: st.lists(children, max_size=4) | st.dictionaries(st.text(max_size=8), children, max_size=4),
    max_leaves=10,
)

records = st.builds(
    CommitLog,
    entity=st.sampled_from(list(Entity)),
    entity_id=st.from_regex(r"[A-Za-z0-9_-]{1,20}", fullmatch=True),
    action=st.sampled_from([Action.CREATE, Action.UPDATE, Action.END, Action.ADD_EVENT]),
    data=st.dictionaries(st.text(max_size=10), json_values, max_size=5),
)


@given(batch=st.lists(records, max_size=30), max_bytes=st.integers(min_value=1, max_value=2_000))
def test_chunking_preserves_records_and_bounds(batch: list[CommitLog], max_bytes: int) -> None:
    chunks = chunk_records(batch, max_bytes=max_bytes)

    assert [record for chunk in chunks for record in chunk.records] == batch
    for chunk in chunks:
        assert chunk.records
        assert chunk.size == len(chunk.body.encode("utf-8"))
        if len(chunk.records) > 1:
            assert chunk.size <= max_bytes


@given(batch=st.lists(records, min_size=1, max_size=30))
def test_body_is_one_line_per_record(batch: list[CommitLog]) -> None:
    [chunk] = chunk_records(batch, max_bytes=10_000_000)
    assert chunk.body.split("\n")[:-1] == [record.serialize() for record in batch]


@given(record=records)
def test_serialized_record_is_single_line(record: CommitLog) -> None:
    line = record.serialize()
    assert "\n" not in line
    assert line.startswith(f"{record.entity.value}{{id={record.entity_id},action={record.action},data=")
