# src/tracelog/logger/components/tool_call.py
"""Tool calls: a model-requested function invocation and its outcome."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from tracelog.logger.components.base import (
    Container,
    EntityConfig,
    ErrorDetail,
    base_data,
    commit,
    container_for,
    end,
)
from tracelog.writer.protocols import LogWriterProtocol
from tracelog.writer.records import Action, Entity


@dataclass(frozen=True, slots=True, kw_only=True)
class ToolCallConfig(EntityConfig):
    """Config of a tool call; args holds the serialized arguments the model passed."""

    name: str
    description: str = ""
    args: str = ""


def build_tool_call(writer: LogWriterProtocol, config: ToolCallConfig) -> tuple[Container, dict[str, Any]]:
    container = container_for(Entity.TOOL_CALL, config.id, writer)
    return container, base_data(config, description=config.description, args=config.args)


def tool_call_result(tool_call: Container, result: str) -> None:
    """Record the tool's output and end the call."""
    commit(tool_call, Action.RESULT, {"result": result})
    end(tool_call)


def tool_call_error(tool_call: Container, error: ErrorDetail) -> None:
    commit(tool_call, Action.ERROR, {"error": error.to_payload()})
    end(tool_call)
