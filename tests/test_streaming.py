"""Tests for the client message stream."""

import json

import pytest

from contract_guard.models.stream import ErrorChunk, FinishChunk, TextDeltaChunk
from contract_guard.services.streaming import UIMessageStream, create_ui_message_stream, encode_sse


async def _collect(chunks):
    return [chunk async for chunk in chunks]


class TestUIMessageStream:
    """Tests for the queue-backed stream."""

    @pytest.mark.asyncio
    async def test_yields_written_chunks_in_order(self):
        """Test that chunks come out in the order they were written."""
        stream = UIMessageStream()
        stream.write(TextDeltaChunk(delta="a"))
        stream.write(TextDeltaChunk(delta="b"))
        stream.close()

        assert [c.delta for c in await _collect(stream)] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_write_after_close_fails(self):
        """Test that a closed stream rejects writes."""
        stream = UIMessageStream()
        stream.close()

        with pytest.raises(RuntimeError):
            stream.write(TextDeltaChunk(delta="late"))


class TestCreateUIMessageStream:
    """Tests for running a producer behind the stream."""

    @pytest.mark.asyncio
    async def test_stream_ends_when_execute_returns(self):
        """Test that the stream closes after the producer finishes."""

        async def execute(stream):
            stream.write(TextDeltaChunk(delta="hello"))
            stream.write(FinishChunk())

        chunks = await _collect(create_ui_message_stream(execute))

        assert chunks == [TextDeltaChunk(delta="hello"), FinishChunk()]

    @pytest.mark.asyncio
    async def test_exception_becomes_error_chunk(self):
        """Test that a failing producer still terminates the stream with an error."""

        async def execute(stream):
            stream.write(TextDeltaChunk(delta="partial"))
            raise RuntimeError("model unavailable")

        chunks = await _collect(create_ui_message_stream(execute))

        assert chunks[0] == TextDeltaChunk(delta="partial")
        assert chunks[-1] == ErrorChunk(error_text="Error: model unavailable")


class TestEncodeSSE:
    """Tests for Server-Sent Events encoding."""

    @pytest.mark.asyncio
    async def test_events_use_camel_case_and_done_marker(self):
        """Test the wire format of encoded chunks."""

        async def chunks():
            yield ErrorChunk(error_text="Error: boom")

        events = await _collect(encode_sse(chunks()))

        assert events[-1] == "data: [DONE]\n\n"
        assert events[0].startswith("data: ")
        assert json.loads(events[0][len("data: ") :]) == {"type": "error", "errorText": "Error: boom"}
