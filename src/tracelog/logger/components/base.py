# src/tracelog/logger/components/base.py
"""Entity handle and the operations every entity kind supports.

An entity is represented by a Container: its kind, its id and the writer
its records go to. Containers hold no buffered state; every operation is a
free function that builds one CommitLog and commits it. Entity ids are not
validated here: the writer validates every record centrally.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from tracelog.core.identifiers import unique_id
from tracelog.core.serialization import stringify_metadata
from tracelog.writer.attachments import Attachment
from tracelog.writer.protocols import LogWriterProtocol
from tracelog.writer.records import Action, CommitLog, Entity


def utc_now() -> datetime:
    return datetime.now(UTC)


def compact(data: Mapping[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None; the collector treats absent and null alike."""
    return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True, slots=True, kw_only=True)
class EntityConfig:
    """Fields shared by every entity kind's config.

    Attributes:
        id: Entity id (generated when omitted)
        name: Display name
        tags: String tags attached at creation
    """

    id: str | None = None
    name: str | None = None
    tags: Mapping[str, str] | None = None


@dataclass(frozen=True, slots=True)
class Container:
    """Handle to one entity: where its records go and how they are addressed."""

    entity: Entity
    id: str
    writer: LogWriterProtocol


def container_for(entity: Entity, entity_id: str | None, writer: LogWriterProtocol) -> Container:
    return Container(entity=entity, id=entity_id or unique_id(), writer=writer)


def base_data(config: EntityConfig, **extra: Any) -> dict[str, Any]:
    """Creation payload common to every kind, plus kind-specific fields."""
    return compact(
        {
            "name": config.name,
            "tags": dict(config.tags) if config.tags else None,
            "startTimestamp": utc_now(),
            **extra,
        }
    )


def commit(container: Container, action: str, data: Mapping[str, Any] | None = None) -> None:
    container.writer.commit(CommitLog(container.entity, container.id, action, data or {}))


def add_tag(container: Container, key: str, value: str) -> None:
    commit(container, Action.UPDATE, {"tags": {key: value}})


def add_metadata(container: Container, metadata: Mapping[str, Any]) -> None:
    """Attach metadata. Values are JSON-encoded into strings."""
    commit(container, Action.UPDATE, {"metadata": stringify_metadata(metadata)})


def end(container: Container, data: Mapping[str, Any] | None = None) -> None:
    """Mark the entity as finished, stamping endTimestamp unless given."""
    payload = dict(data or {})
    payload.setdefault("endTimestamp", utc_now())
    commit(container, Action.END, payload)


def add_event(
    container: Container,
    event_id: str,
    name: str,
    tags: Mapping[str, str] | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> None:
    commit(
        container,
        Action.ADD_EVENT,
        compact(
            {
                "id": event_id,
                "name": name,
                "timestamp": utc_now(),
                "tags": dict(tags) if tags else None,
                "metadata": stringify_metadata(metadata) if metadata else None,
            }
        ),
    )


def add_attachment(container: Container, attachment: Attachment) -> None:
    """Queue an attachment for upload; add-attachment follows once uploaded."""
    commit(container, Action.UPLOAD_ATTACHMENT, attachment.to_payload())


def _unique(names: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(names))


def evaluate_with_evaluators(container: Container, *evaluators: str) -> list[str]:
    """Request evaluation of the entity by the named evaluators.

    Returns:
        The de-duplicated evaluator names, for a follow-up
        evaluate_with_variables() call. Nothing is committed when empty.
    """
    names = _unique(evaluators)
    if names:
        commit(
            container,
            Action.EVALUATE,
            {"with": "evaluators", "evaluators": names, "timestamp": utc_now()},
        )
    return names


def evaluate_with_variables(
    container: Container,
    variables: Mapping[str, str],
    evaluators: Iterable[str],
) -> None:
    """Supply variables to the given evaluators. No-op without evaluators."""
    names = _unique(evaluators)
    if not names:
        return
    commit(
        container,
        Action.EVALUATE,
        {"with": "variables", "variables": dict(variables), "evaluators": names, "timestamp": utc_now()},
    )


def add_child(parent: Container, action: str, child: Container, data: Mapping[str, Any]) -> Container:
    """Commit the child's creation payload on its parent and return the child."""
    commit(parent, action, {"id": child.id, **data})
    return child


def add_metric(container: Container, name: str, value: float) -> None:
    commit(container, Action.UPDATE, {"metrics": {name: value}})


@dataclass(frozen=True, slots=True)
class ErrorDetail:
    """Error reported by a generation or tool call."""

    message: str
    code: str | None = None
    type: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return compact({"message": self.message, "code": self.code, "type": self.type})
