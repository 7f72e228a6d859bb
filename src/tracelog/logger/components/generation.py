# src/tracelog/logger/components/generation.py
"""Generations: one LLM call, its request messages and its result.

Images embedded in multimodal messages are lifted out of the message
content and logged as attachments of the generation instead: data URIs
become in-memory attachments, other URLs become URL attachments.
"""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from tracelog.core.identifiers import unique_id
from tracelog.logger.components.base import (
    Container,
    EntityConfig,
    ErrorDetail,
    add_attachment,
    add_child,
    add_metric,
    base_data,
    commit,
    container_for,
    end,
)
from tracelog.writer.attachments import Attachment, FileDataAttachment, UrlAttachment
from tracelog.writer.protocols import LogWriterProtocol
from tracelog.writer.records import Action, Entity

logger = structlog.get_logger(__name__)

type Message = Mapping[str, Any]

_DATA_URI = re.compile(r"^data:image/(\w+);base64,(.+)$", re.DOTALL)


@dataclass(frozen=True, slots=True, kw_only=True)
class GenerationConfig(EntityConfig):
    """Config of one LLM call.

    Attributes:
        provider: Model provider (openai, anthropic, bedrock, ...)
        model: Model name as sent to the provider
        messages: Request messages in chat-completion shape
        model_parameters: Sampling parameters (temperature, max_tokens, ...)
        prompt_id: Id of the managed prompt the request was built from
    """

    provider: str
    model: str
    messages: Sequence[Message] = ()
    model_parameters: Mapping[str, Any] = field(default_factory=dict)
    prompt_id: str | None = None


def _image_attachment(url: str, attached_to: str) -> Attachment | None:
    tags = {"attachedTo": attached_to}
    if not url.startswith("data:image"):
        return UrlAttachment(url=url, mime_type="image/*", tags=tags)
    match = _DATA_URI.match(url)
    if match is None:
        return None
    extension, encoded = match.groups()
    try:
        data = base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        logger.warning("Could not decode inline image - keeping it in the message", error=str(e))
        return None
    return FileDataAttachment(
        name=f"image.{extension}",
        data=data,
        mime_type=f"image/{extension}",
        tags=tags,
    )


def extract_attachments(messages: Sequence[Message]) -> tuple[list[dict[str, Any]], list[Attachment]]:
    """Split image parts out of multimodal messages.

    Returns:
        The messages without their image parts, and one attachment per
        extracted image. A message left with a single text part collapses
        to plain string content; one left with no parts gets "".
    """
    processed: list[dict[str, Any]] = []
    attachments: list[Attachment] = []
    for message in messages:
        content = message.get("content")
        if not isinstance(content, list):
            processed.append(dict(message))
            continue

        attached_to = "output" if message.get("role") == "assistant" else "input"
        kept: list[Any] = []
        for part in content:
            if isinstance(part, str):
                kept.append({"type": "text", "text": part})
                continue
            if not isinstance(part, Mapping) or part.get("type") != "image_url":
                kept.append(part)
                continue
            image_url = part.get("image_url")
            url = image_url.get("url") if isinstance(image_url, Mapping) else image_url
            attachment = _image_attachment(url, attached_to) if url else None
            if attachment is None:
                kept.append(part)
            else:
                attachments.append(attachment)

        if len(kept) == 1 and isinstance(kept[0], Mapping) and kept[0].get("type") == "text":
            processed.append({**message, "content": kept[0].get("text", "")})
        elif not kept:
            processed.append({**message, "content": ""})
        else:
            processed.append({**message, "content": kept})
    return processed, attachments


def build_generation(
    writer: LogWriterProtocol, config: GenerationConfig
) -> tuple[Container, dict[str, Any], list[Attachment]]:
    """Create a generation handle, its creation payload and its extracted attachments.

    Nothing is committed; see attach_generation().
    """
    container = container_for(Entity.GENERATION, config.id, writer)
    messages, attachments = extract_attachments(config.messages)
    data = base_data(
        config,
        provider=config.provider,
        model=config.model,
        promptId=config.prompt_id,
        modelParameters=dict(config.model_parameters),
        messages=messages,
    )
    return container, data, attachments


def attach_generation(parent: Container, config: GenerationConfig) -> Container:
    """Commit add-generation on parent, then queue the generation's attachments."""
    generation, data, attachments = build_generation(parent.writer, config)
    add_child(parent, Action.ADD_GENERATION, generation, data)
    for attachment in attachments:
        add_attachment(generation, attachment)
    return generation


def generation_set_model(generation: Container, model: str) -> None:
    commit(generation, Action.UPDATE, {"model": model})


def generation_add_messages(generation: Container, messages: Sequence[Message]) -> None:
    processed, attachments = extract_attachments(messages)
    commit(generation, Action.UPDATE, {"messages": processed})
    for attachment in attachments:
        add_attachment(generation, attachment)


def generation_set_model_parameters(generation: Container, model_parameters: Mapping[str, Any]) -> None:
    commit(generation, Action.UPDATE, {"modelParameters": dict(model_parameters)})


def generation_result(generation: Container, result: Mapping[str, Any]) -> None:
    """Record the provider's completion result and end the generation."""
    commit(generation, Action.RESULT, {"result": dict(result)})
    end(generation)


def generation_error(generation: Container, error: ErrorDetail) -> None:
    """Record a failed call as an error result and end the generation."""
    commit(generation, Action.RESULT, {"result": {"error": error.to_payload(), "id": unique_id()}})
    end(generation)


def generation_add_metric(generation: Container, name: str, value: float) -> None:
    add_metric(generation, name, value)
