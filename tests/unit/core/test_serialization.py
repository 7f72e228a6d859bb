# tests/unit/core/test_serialization.py
"""Tests for payload serialization and identifier helpers."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from pathlib import PurePosixPath

import pytest

from tracelog.core.identifiers import is_valid_entity_id, unique_id
from tracelog.core.serialization import dumps_compact, make_serializable, stringify_metadata


class Color(Enum):
    RED = "red"


@dataclass
class Point:
    x: int
    y: int


class TestMakeSerializable:
    def test_naive_datetime_assumed_utc(self) -> None:
        assert make_serializable(datetime(2026, 3, 1, 9, 30)) == "2026-03-01T09:30:00+00:00"

    def test_enum_decimal_path(self) -> None:
        assert make_serializable({"c": Color.RED, "d": Decimal("1.5"), "p": PurePosixPath("/a/b")}) == {
            "c": "red",
            "d": 1.5,
            "p": "/a/b",
        }

    def test_bytes_base64(self) -> None:
        assert make_serializable(b"hi") == "aGk="

    def test_dataclass(self) -> None:
        assert make_serializable(Point(1, 2)) == {"x": 1, "y": 2}

    def test_non_string_keys_stringified(self) -> None:
        assert make_serializable({1: "a"}) == {"1": "a"}


def test_dumps_compact_has_no_spaces() -> None:
    assert dumps_compact({"a": [1, 2], "b": "c"}) == '{"a":[1,2],"b":"c"}'


def test_stringify_metadata_encodes_each_value() -> None:
    assert stringify_metadata({"n": 1, "s": "x", "l": [1]}) == {"n": "1", "s": '"x"', "l": "[1]"}


class TestIdentifiers:
    @pytest.mark.parametrize("entity_id", ["abc", "abc-def_123", "A1", "-_-"])
    def test_valid(self, entity_id: str) -> None:
        assert is_valid_entity_id(entity_id)

    @pytest.mark.parametrize("entity_id", ["", "abc def", "a.b", "a/b", "a{b}", "a,b", "é"])
    def test_invalid(self, entity_id: str) -> None:
        assert not is_valid_entity_id(entity_id)

    def test_unique_ids_are_valid_and_distinct(self) -> None:
        ids = {unique_id() for _ in range(100)}
        assert len(ids) == 100
        assert all(is_valid_entity_id(i) for i in ids)
