# tests/unit/logger/test_components.py
"""Tests for entity emitters, captured through CaptureWriter.

Each operation should commit exactly the records its entity kind defines,
in order, addressed to the right entity.
"""

import base64
import json

import pytest

from tracelog.logger.components import base
from tracelog.logger.components.base import Container, ErrorDetail, compact
from tracelog.logger.components.error import ErrorConfig
from tracelog.logger.components.generation import (
    GenerationConfig,
    extract_attachments,
    generation_add_messages,
    generation_error,
    generation_result,
)
from tracelog.logger.components.retrieval import RetrievalConfig, retrieval_output
from tracelog.logger.components.session import SessionConfig, create_session, session_feedback, session_trace
from tracelog.logger.components.span import SpanConfig, create_span, span_generation, span_span
from tracelog.logger.components.tool_call import ToolCallConfig, tool_call_error, tool_call_result
from tracelog.logger.components.trace import (
    TraceConfig,
    create_trace,
    trace_error,
    trace_feedback,
    trace_generation,
    trace_retrieval,
    trace_span,
    trace_tool_call,
)
from tracelog.writer.attachments import FileDataAttachment, UrlAttachment
from tracelog.writer.capture import CaptureWriter
from tracelog.writer.records import Action, Entity

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


def shape(capture: CaptureWriter) -> list[tuple[str, str, str]]:
    """(entity, id, action) of every captured record."""
    return [(str(r.entity), r.entity_id, str(r.action)) for r in capture.drain()]


# =============================================================================
# Root entities
# =============================================================================


class TestRootEntities:
    def test_create_trace(self, capture: CaptureWriter) -> None:
        trace = create_trace(capture, TraceConfig(id="t1", name="chat", tags={"env": "prod"}, session_id="s1"))

        [record] = capture.drain()
        assert trace == Container(Entity.TRACE, "t1", capture)
        assert record.action == Action.CREATE
        assert record.data["name"] == "chat"
        assert record.data["tags"] == {"env": "prod"}
        assert record.data["sessionId"] == "s1"
        assert "startTimestamp" in record.data

    def test_none_fields_omitted(self, capture: CaptureWriter) -> None:
        create_trace(capture, TraceConfig(id="t1"))
        [record] = capture.drain()
        assert set(record.data) == {"startTimestamp"}

    def test_id_generated_when_missing(self, capture: CaptureWriter) -> None:
        trace = create_trace(capture, TraceConfig())
        assert trace.id
        assert capture.drain()[0].entity_id == trace.id

    def test_session_trace_links_session(self, capture: CaptureWriter) -> None:
        session = create_session(capture, SessionConfig(id="s1"))
        session_trace(session, TraceConfig(id="t1"))

        records = capture.drain()
        assert [(r.entity, r.action) for r in records] == [
            (Entity.SESSION, Action.CREATE),
            (Entity.TRACE, Action.CREATE),
        ]
        assert records[1].data["sessionId"] == "s1"

    def test_create_span_standalone(self, capture: CaptureWriter) -> None:
        create_span(capture, SpanConfig(id="sp1", name="step"))
        assert shape(capture) == [("span", "sp1", "create")]


# =============================================================================
# Children
# =============================================================================


class TestChildren:
    def test_trace_span_commits_create_then_add_span(self, capture: CaptureWriter) -> None:
        trace = Container(Entity.TRACE, "t1", capture)

        span = trace_span(trace, SpanConfig(id="sp1", name="plan"))

        records = capture.drain()
        assert [(r.entity, r.entity_id, r.action) for r in records] == [
            (Entity.SPAN, "sp1", Action.CREATE),
            (Entity.TRACE, "t1", Action.ADD_SPAN),
        ]
        assert records[1].data["id"] == "sp1"
        assert records[1].data["name"] == "plan"
        assert records[0].data["startTimestamp"] == records[1].data["startTimestamp"]
        assert span.entity == Entity.SPAN

    def test_nested_spans(self, capture: CaptureWriter) -> None:
        parent = Container(Entity.SPAN, "sp1", capture)
        span_span(parent, SpanConfig(id="sp2"))
        assert shape(capture) == [("span", "sp2", "create"), ("span", "sp1", "add-span")]

    def test_trace_tool_call_payload(self, capture: CaptureWriter) -> None:
        trace = Container(Entity.TRACE, "t1", capture)

        tool_call = trace_tool_call(
            trace, ToolCallConfig(id="tc1", name="search", description="web search", args='{"q": "x"}')
        )

        [record] = capture.drain()
        assert (record.entity, record.action) == (Entity.TRACE, Action.ADD_TOOL_CALL)
        assert record.data["id"] == "tc1"
        assert record.data["name"] == "search"
        assert record.data["args"] == '{"q": "x"}'
        assert tool_call.entity == Entity.TOOL_CALL

    def test_trace_retrieval(self, capture: CaptureWriter) -> None:
        trace_retrieval(Container(Entity.TRACE, "t1", capture), RetrievalConfig(id="r1"))
        assert shape(capture) == [("trace", "t1", "add-retrieval")]

    def test_trace_error_payload(self, capture: CaptureWriter) -> None:
        trace_error(
            Container(Entity.TRACE, "t1", capture),
            ErrorConfig(id="e1", message="boom", code="E42", error_type="RuntimeError", metadata={"n": 1}),
        )

        [record] = capture.drain()
        assert record.action == Action.ADD_ERROR
        assert record.data["message"] == "boom"
        assert record.data["code"] == "E42"
        assert record.data["errorType"] == "RuntimeError"
        assert record.data["metadata"] == {"n": "1"}

    def test_generation_payload(self, capture: CaptureWriter) -> None:
        span = Container(Entity.SPAN, "sp1", capture)
        config = GenerationConfig(
            id="g1",
            provider="openai",
            model="gpt-4o",
            messages=[{"role": "user", "content": "hi"}],
            model_parameters={"temperature": 0.2},
            prompt_id="p1",
        )

        span_generation(span, config)

        [record] = capture.drain()
        assert (record.entity, record.action) == (Entity.SPAN, Action.ADD_GENERATION)
        assert record.data["provider"] == "openai"
        assert record.data["model"] == "gpt-4o"
        assert record.data["promptId"] == "p1"
        assert record.data["modelParameters"] == {"temperature": 0.2}
        assert record.data["messages"] == [{"role": "user", "content": "hi"}]


# =============================================================================
# Generations and multimodal messages
# =============================================================================


class TestExtractAttachments:
    def test_plain_messages_untouched(self) -> None:
        messages = [{"role": "user", "content": "hello"}]
        processed, attachments = extract_attachments(messages)
        assert processed == messages
        assert attachments == []

    def test_data_uri_becomes_buffer_attachment(self) -> None:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "what is this?"},
                    {"type": "image_url", "image_url": {"url": PNG_DATA_URI}},
                ],
            }
        ]

        processed, [attachment] = extract_attachments(messages)

        assert processed == [{"role": "user", "content": "what is this?"}]
        assert isinstance(attachment, FileDataAttachment)
        assert attachment.data == PNG_BYTES
        assert attachment.name == "image.png"
        assert attachment.mime_type == "image/png"
        assert attachment.tags == {"attachedTo": "input"}

    def test_remote_image_becomes_url_attachment(self) -> None:
        messages = [
            {"role": "assistant", "content": [{"type": "image_url", "image_url": "https://example.com/a.jpg"}]}
        ]

        processed, [attachment] = extract_attachments(messages)

        assert processed == [{"role": "assistant", "content": ""}]
        assert isinstance(attachment, UrlAttachment)
        assert attachment.url == "https://example.com/a.jpg"
        assert attachment.tags == {"attachedTo": "output"}

    def test_multiple_text_parts_kept_as_list(self) -> None:
        content = [{"type": "text", "text": "a"}, "b"]
        processed, _ = extract_attachments([{"role": "user", "content": content}])
        assert processed[0]["content"] == [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]

    def test_undecodable_data_uri_left_in_message(self) -> None:
        part = {"type": "image_url", "image_url": {"url": "data:image/png;base64,@@@"}}
        processed, attachments = extract_attachments([{"role": "user", "content": [part]}])
        assert attachments == []
        assert processed[0]["content"] == [part]

    def test_generation_attachments_queued_after_creation(self, capture: CaptureWriter) -> None:
        trace = Container(Entity.TRACE, "t1", capture)
        config = GenerationConfig(
            id="g1",
            provider="openai",
            model="gpt-4o",
            messages=[{"role": "user", "content": [{"type": "image_url", "image_url": {"url": PNG_DATA_URI}}]}],
        )

        trace_generation(trace, config)

        records = capture.drain()
        assert [(r.entity, r.entity_id, r.action) for r in records] == [
            (Entity.TRACE, "t1", Action.ADD_GENERATION),
            (Entity.GENERATION, "g1", Action.UPLOAD_ATTACHMENT),
        ]
        assert records[1].data["type"] == "fileData"

    def test_add_messages_extracts_images(self, capture: CaptureWriter) -> None:
        generation = Container(Entity.GENERATION, "g1", capture)
        generation_add_messages(
            generation,
            [{"role": "user", "content": [{"type": "image_url", "image_url": {"url": "https://x.io/y.png"}}]}],
        )
        assert shape(capture) == [("generation", "g1", "update"), ("generation", "g1", "upload-attachment")]


class TestOutcomes:
    def test_generation_result_then_end(self, capture: CaptureWriter) -> None:
        generation_result(Container(Entity.GENERATION, "g1", capture), {"id": "cmpl-1", "choices": []})

        records = capture.drain()
        assert [r.action for r in records] == [Action.RESULT, Action.END]
        assert records[0].data == {"result": {"id": "cmpl-1", "choices": []}}
        assert "endTimestamp" in records[1].data

    def test_generation_error_is_error_result(self, capture: CaptureWriter) -> None:
        generation_error(Container(Entity.GENERATION, "g1", capture), ErrorDetail("rate limited", code="429"))

        result, ended = capture.drain()
        assert result.data["result"]["error"] == {"message": "rate limited", "code": "429"}
        assert result.data["result"]["id"]
        assert ended.action == Action.END

    def test_tool_call_result_then_end(self, capture: CaptureWriter) -> None:
        tool_call_result(Container(Entity.TOOL_CALL, "tc1", capture), "42")
        assert shape(capture) == [("tool_call", "tc1", "result"), ("tool_call", "tc1", "end")]

    def test_tool_call_error(self, capture: CaptureWriter) -> None:
        tool_call_error(Container(Entity.TOOL_CALL, "tc1", capture), ErrorDetail("timeout", type="TimeoutError"))

        error, _ = capture.drain()
        assert error.action == Action.ERROR
        assert error.data == {"error": {"message": "timeout", "type": "TimeoutError"}}

    @pytest.mark.parametrize(("docs", "expected"), [("one", ["one"]), (("a", "b"), ["a", "b"])])
    def test_retrieval_output_ends(self, capture: CaptureWriter, docs, expected) -> None:
        retrieval_output(Container(Entity.RETRIEVAL, "r1", capture), docs)

        [record] = capture.drain()
        assert record.action == Action.END
        assert record.data["docs"] == expected

    def test_feedback(self, capture: CaptureWriter) -> None:
        trace_feedback(Container(Entity.TRACE, "t1", capture), 0.9, "good")
        session_feedback(Container(Entity.SESSION, "s1", capture), 1.0)

        trace_record, session_record = capture.drain()
        assert trace_record.action == Action.ADD_FEEDBACK
        assert trace_record.data == {"score": 0.9, "comment": "good"}
        assert session_record.data == {"score": 1.0}


# =============================================================================
# Common operations
# =============================================================================


class TestCommonOperations:
    def test_tag_and_metadata(self, capture: CaptureWriter) -> None:
        span = Container(Entity.SPAN, "sp1", capture)
        base.add_tag(span, "env", "prod")
        base.add_metadata(span, {"retries": 2, "model": "x"})

        tag, metadata = capture.drain()
        assert tag.data == {"tags": {"env": "prod"}}
        assert metadata.data == {"metadata": {"retries": "2", "model": '"x"'}}

    def test_end_keeps_explicit_timestamp(self, capture: CaptureWriter) -> None:
        base.end(Container(Entity.TRACE, "t1", capture), {"endTimestamp": "2026-01-01T00:00:00+00:00"})
        [record] = capture.drain()
        assert record.data == {"endTimestamp": "2026-01-01T00:00:00+00:00"}

    def test_event(self, capture: CaptureWriter) -> None:
        base.add_event(Container(Entity.TRACE, "t1", capture), "ev1", "cache-miss", tags={"k": "v"})

        [record] = capture.drain()
        assert record.action == Action.ADD_EVENT
        assert record.data["id"] == "ev1"
        assert record.data["name"] == "cache-miss"
        assert record.data["tags"] == {"k": "v"}
        assert "metadata" not in record.data

    def test_add_attachment_commits_upload_request(self, capture: CaptureWriter) -> None:
        base.add_attachment(Container(Entity.TRACE, "t1", capture), UrlAttachment(id="a1", url="https://x.io/f"))

        [record] = capture.drain()
        assert record.action == Action.UPLOAD_ATTACHMENT
        assert record.data["id"] == "a1"

    def test_evaluators_deduplicated(self, capture: CaptureWriter) -> None:
        trace = Container(Entity.TRACE, "t1", capture)

        names = base.evaluate_with_evaluators(trace, "bias", "toxicity", "bias")

        [record] = capture.drain()
        assert names == ["bias", "toxicity"]
        assert record.data["with"] == "evaluators"
        assert record.data["evaluators"] == ["bias", "toxicity"]

    def test_no_evaluators_commits_nothing(self, capture: CaptureWriter) -> None:
        trace = Container(Entity.TRACE, "t1", capture)
        assert base.evaluate_with_evaluators(trace) == []
        base.evaluate_with_variables(trace, {"context": "x"}, [])
        assert capture.drain() == []

    def test_evaluate_with_variables(self, capture: CaptureWriter) -> None:
        base.evaluate_with_variables(Container(Entity.TRACE, "t1", capture), {"context": "doc"}, ["faithfulness"])

        [record] = capture.drain()
        assert record.data["with"] == "variables"
        assert record.data["variables"] == {"context": "doc"}

    def test_metric(self, capture: CaptureWriter) -> None:
        base.add_metric(Container(Entity.GENERATION, "g1", capture), "latency_ms", 120.5)
        [record] = capture.drain()
        assert record.data == {"metrics": {"latency_ms": 120.5}}

    def test_records_serialize_to_wire_lines(self, capture: CaptureWriter) -> None:
        base.add_tag(Container(Entity.TRACE, "t1", capture), "k", "v")
        [record] = capture.drain()
        line = record.serialize()
        assert line.startswith("trace{id=t1,action=update,data=")
        assert json.loads(line[len("trace{id=t1,action=update,data=") : -1]) == {"tags": {"k": "v"}}

    def test_compact_drops_none_only(self) -> None:
        assert compact({"a": None, "b": 0, "c": "", "d": False}) == {"b": 0, "c": "", "d": False}
