# src/tracelog/logger/components/__init__.py
"""Entity emitters: one module per entity kind.

Each entity is addressed by a Container handle; operations are free
functions taking the handle (or the writer, for root entities).
"""

from tracelog.logger.components.base import Container, EntityConfig, ErrorDetail
from tracelog.logger.components.error import ErrorConfig
from tracelog.logger.components.generation import GenerationConfig
from tracelog.logger.components.retrieval import RetrievalConfig
from tracelog.logger.components.session import SessionConfig, create_session
from tracelog.logger.components.span import SpanConfig, create_span
from tracelog.logger.components.tool_call import ToolCallConfig
from tracelog.logger.components.trace import TraceConfig, create_trace

__all__ = [
    "Container",
    "EntityConfig",
    "ErrorConfig",
    "ErrorDetail",
    "GenerationConfig",
    "RetrievalConfig",
    "SessionConfig",
    "SpanConfig",
    "ToolCallConfig",
    "TraceConfig",
    "create_session",
    "create_span",
    "create_trace",
]
