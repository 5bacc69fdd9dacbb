"""Client-facing message stream built on an asyncio queue."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Protocol

from contract_guard.models.stream import ErrorChunk, StreamChunk
from contract_guard.utils.logging import get_logger

logger = get_logger(__name__)


class ResultSink(Protocol):
    """Write-only channel for incremental updates to the client."""

    def write(self, chunk: StreamChunk) -> None: ...


class UIMessageStream:
    """Queue-backed stream: one producer task writes, the response generator reads."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[StreamChunk | None] = asyncio.Queue()
        self._closed = False

    def write(self, chunk: StreamChunk) -> None:
        if self._closed:
            raise RuntimeError("Cannot write to a closed stream")
        self._queue.put_nowait(chunk)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aiter__(self) -> AsyncIterator[StreamChunk]:
        while True:
            chunk = await self._queue.get()
            if chunk is None:
                return
            yield chunk


def _default_error_text(error: Exception) -> str:
    return f"Error: {error}"


async def create_ui_message_stream(
    execute: Callable[[UIMessageStream], Awaitable[None]],
    on_error: Callable[[Exception], str] = _default_error_text,
) -> AsyncIterator[StreamChunk]:
    """Run ``execute`` in a background task and yield whatever it writes.

    The stream always terminates: an exception escaping ``execute`` is
    logged and turned into an error chunk before the stream is closed.
    """
    stream = UIMessageStream()

    async def producer() -> None:
        try:
            await execute(stream)
        except Exception as e:
            logger.error(f"Message stream execution failed: {e}", exc_info=True)
            if not stream.closed:
                stream.write(ErrorChunk(error_text=on_error(e)))
        finally:
            stream.close()

    task = asyncio.create_task(producer())
    try:
        async for chunk in stream:
            yield chunk
    finally:
        if not task.done():
            logger.info("Client went away before the stream finished, cancelling producer")
            task.cancel()


async def encode_sse(chunks: AsyncIterator[StreamChunk]) -> AsyncIterator[str]:
    """Encode stream chunks as Server-Sent Events."""
    async for chunk in chunks:
        yield f"data: {chunk.model_dump_json(by_alias=True)}\n\n"
    yield "data: [DONE]\n\n"
