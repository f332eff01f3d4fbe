"""Streamed answer generation with a buffered fallback."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional, Sequence, Union

from answer_engine.core.errors import GenerationError, StreamInterruptedError
from answer_engine.schemas.answer import ChatMessage
from answer_engine.services.llm.client import GenerationBackend

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 8

# Queued after the last chunk, whether the stream ended cleanly or not
_END = object()


@dataclass
class StreamedAnswer:
    """The stream produced output; chunks must be forwarded as they come.

    Whoever sends the chunks owns the answer and must call aclose() when done,
    including when the chunks were never iterated.
    """
    chunks: AsyncIterator[str]
    _pump: Optional["_ChunkPump"] = field(default=None, repr=False)

    async def aclose(self) -> None:
        """Stop reading from the backend. Safe to call more than once."""
        if self._pump is not None:
            self._pump.cancel()
        aclose = getattr(self.chunks, "aclose", None)
        if aclose is not None:
            await aclose()


@dataclass
class BufferedAnswer:
    """Streaming failed before any output; this is the fallback completion."""
    text: str


Answer = Union[StreamedAnswer, BufferedAnswer]


class _ChunkPump:
    """Reads a backend stream on its own task into a bounded queue.

    A full queue suspends the reader, so a slow consumer slows the backend
    read loop instead of growing memory.
    """

    def __init__(self, stream: AsyncIterator[str], maxsize: int):
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.error: Exception | None = None
        self.chunks_read = 0
        self._task = asyncio.create_task(self._run(stream))

    async def _run(self, stream: AsyncIterator[str]) -> None:
        try:
            async for chunk in stream:
                if chunk:
                    self.chunks_read += 1
                    await self.queue.put(chunk)
        except Exception as e:
            self.error = e
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
        await self.queue.put(_END)

    async def get(self):
        return await self.queue.get()

    def cancel(self) -> None:
        if not self._task.done():
            self._task.cancel()


class AnswerStreamer:
    """
    Deliver a generated answer, streaming when possible.

    The first chunk is the commit point. If the backend stream fails, or ends
    without output, before a chunk has been handed out, the streamer drops
    whatever was read and asks the backend for a single non-streaming
    completion instead. Once a chunk has been handed out there is no fallback:
    a later failure surfaces as StreamInterruptedError from the chunk iterator.
    """

    def __init__(self, backend: GenerationBackend, buffer_size: int = DEFAULT_BUFFER_SIZE):
        self.backend = backend
        self.buffer_size = buffer_size

    async def answer(self, messages: Sequence[ChatMessage]) -> Answer:
        """
        Start generating an answer for the message sequence.

        Returns:
            StreamedAnswer on the primary path, BufferedAnswer after a fallback

        Raises:
            GenerationError: If streaming and the fallback completion both failed
        """
        try:
            stream = self.backend.stream(messages)
        except Exception as e:
            logger.warning(f"Could not open answer stream, falling back: {e!r}")
            return await self._fallback(messages)

        pump = _ChunkPump(stream, self.buffer_size)
        try:
            first = await pump.get()
        except BaseException:
            pump.cancel()
            raise

        if first is _END or pump.error is not None:
            pump.cancel()
            if pump.error is not None:
                logger.warning(
                    f"Answer stream failed after {pump.chunks_read} unsent chunks, "
                    f"falling back: {pump.error!r}"
                )
            else:
                logger.warning("Answer stream ended without output, falling back")
            return await self._fallback(messages)

        return StreamedAnswer(chunks=self._forward(pump, first), _pump=pump)

    async def _forward(self, pump: _ChunkPump, first: str) -> AsyncIterator[str]:
        try:
            yield first
            while True:
                item = await pump.get()
                if item is _END:
                    break
                yield item
            if pump.error is not None:
                logger.error(f"Answer stream interrupted mid-response: {pump.error!r}")
                raise StreamInterruptedError("Answer stream interrupted") from pump.error
        finally:
            # Consumer stopped early (e.g. client disconnected)
            pump.cancel()

    async def _fallback(self, messages: Sequence[ChatMessage]) -> BufferedAnswer:
        try:
            text = await self.backend.complete(messages)
        except Exception as e:
            logger.error(f"Fallback completion failed: {e!r}")
            raise GenerationError("Streaming and fallback completion both failed") from e
        return BufferedAnswer(text=text)
