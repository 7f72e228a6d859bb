# src/tracelog/logger/components/session.py
"""Sessions: a multi-turn conversation grouping many traces."""

from __future__ import annotations

from dataclasses import dataclass, replace

from tracelog.logger.components.base import (
    Container,
    EntityConfig,
    add_metric,
    base_data,
    commit,
    compact,
    container_for,
)
from tracelog.logger.components.trace import TraceConfig, create_trace
from tracelog.writer.protocols import LogWriterProtocol
from tracelog.writer.records import Action, Entity


@dataclass(frozen=True, slots=True, kw_only=True)
class SessionConfig(EntityConfig):
    pass


def create_session(writer: LogWriterProtocol, config: SessionConfig) -> Container:
    session = container_for(Entity.SESSION, config.id, writer)
    commit(session, Action.CREATE, base_data(config))
    return session


def session_trace(session: Container, config: TraceConfig) -> Container:
    """Create a trace belonging to this session."""
    return create_trace(session.writer, replace(config, session_id=session.id))


def session_feedback(session: Container, score: float, comment: str | None = None) -> None:
    commit(session, Action.ADD_FEEDBACK, compact({"score": score, "comment": comment}))


def session_add_metric(session: Container, name: str, value: float) -> None:
    add_metric(session, name, value)
