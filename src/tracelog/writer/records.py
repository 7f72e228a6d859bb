# src/tracelog/writer/records.py
"""Mutation records: the unit of change shipped to the collector.

Every logging call becomes exactly one CommitLog describing one change to one
entity. The collector rebuilds the entity tree from the stream by
(entity, entity_id), which is why records never hold references to each
other and why per-entity commit order must survive delivery.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from tracelog.core.serialization import dumps_compact


class Entity(StrEnum):
    """Kinds of entity a record can mutate.

    The value is the wire prefix of the serialized record.
    """

    SESSION = "session"
    TRACE = "trace"
    SPAN = "span"
    GENERATION = "generation"
    FEEDBACK = "feedback"
    RETRIEVAL = "retrieval"
    TOOL_CALL = "tool_call"
    ERROR = "error"
    STORAGE = "storage"


class Action(StrEnum):
    """Record actions.

    The delivery engine routes only on upload-attachment and on payload
    size; every other action, including ones not listed here, is opaque to
    it and travels on the main queue.
    """

    CREATE = "create"
    UPDATE = "update"
    END = "end"
    RESULT = "result"
    ERROR = "error"
    ADD_EVENT = "add-event"
    ADD_FEEDBACK = "add-feedback"
    ADD_ATTACHMENT = "add-attachment"
    UPLOAD_ATTACHMENT = "upload-attachment"
    UPLOAD_STORAGE_LOG = "upload-storage-log"
    PROCESS_LARGE_LOG = "process-large-log"
    EVALUATE = "evaluate"
    ADD_SPAN = "add-span"
    ADD_GENERATION = "add-generation"
    ADD_TOOL_CALL = "add-tool-call"
    ADD_RETRIEVAL = "add-retrieval"
    ADD_ERROR = "add-error"


def _freeze(data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(data) if data else {})


@dataclass(frozen=True, slots=True)
class CommitLog:
    """One immutable change to one entity.

    Attributes:
        entity: Kind of entity being changed
        entity_id: Identifier of the entity (validated by the writer)
        action: What happened (create, update, end, add-attachment, ...)
        data: Payload, opaque to the delivery engine. Stored read-only;
            use with_data() to derive a changed record.
        timestamp: When the record was created (UTC)
    """

    entity: Entity
    entity_id: str
    action: str
    data: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        # frozen dataclass: bypass __setattr__ to store the read-only view
        object.__setattr__(self, "data", _freeze(self.data))

    @property
    def id(self) -> str:
        return self.entity_id

    def serialize(self) -> str:
        """Render the flat single-line wire form.

        Format: ``{entity}{id={entity_id},action={action},data={json}}``
        """
        return f"{self.entity.value}{{id={self.entity_id},action={self.action},data={dumps_compact(dict(self.data))}}}"

    def with_data(self, **updates: Any) -> CommitLog:
        """Return a copy with payload keys added or replaced."""
        return CommitLog(
            entity=self.entity,
            entity_id=self.entity_id,
            action=self.action,
            data={**self.data, **updates},
            timestamp=self.timestamp,
        )

    def without_data(self, *keys: str) -> CommitLog:
        """Return a copy with the given payload keys removed."""
        return CommitLog(
            entity=self.entity,
            entity_id=self.entity_id,
            action=self.action,
            data={key: value for key, value in self.data.items() if key not in keys},
            timestamp=self.timestamp,
        )


@dataclass(frozen=True, slots=True)
class PendingRecord:
    """A record waiting for an upload, with the number of failed attempts so far.

    Retries produce a new PendingRecord instead of mutating the record's
    payload.
    """

    record: CommitLog
    attempt: int = 0

    def retry(self) -> PendingRecord:
        return PendingRecord(record=self.record, attempt=self.attempt + 1)
