# src/tracelog/logger/components/retrieval.py
"""Retrievals: a query against a knowledge source and the documents it returned."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from tracelog.logger.components.base import (
    Container,
    EntityConfig,
    add_metric,
    base_data,
    commit,
    container_for,
    utc_now,
)
from tracelog.writer.protocols import LogWriterProtocol
from tracelog.writer.records import Action, Entity


@dataclass(frozen=True, slots=True, kw_only=True)
class RetrievalConfig(EntityConfig):
    pass


def build_retrieval(writer: LogWriterProtocol, config: RetrievalConfig) -> tuple[Container, dict[str, Any]]:
    return container_for(Entity.RETRIEVAL, config.id, writer), base_data(config)


def retrieval_input(retrieval: Container, query: str) -> None:
    commit(retrieval, Action.UPDATE, {"input": query})


def retrieval_output(retrieval: Container, docs: str | Sequence[str]) -> None:
    """Record the retrieved documents; this also ends the retrieval."""
    documents = [docs] if isinstance(docs, str) else list(docs)
    commit(retrieval, Action.END, {"docs": documents, "endTimestamp": utc_now()})


def retrieval_add_metric(retrieval: Container, name: str, value: float) -> None:
    add_metric(retrieval, name, value)
