"""Tests for streamed answer delivery and the buffered fallback."""
import asyncio

import pytest

from answer_engine.core.errors import GenerationError, StreamInterruptedError
from answer_engine.schemas.answer import ChatMessage, Role
from answer_engine.services.answer.streamer import AnswerStreamer, BufferedAnswer, StreamedAnswer

MESSAGES = [
    ChatMessage(role=Role.SYSTEM, content="context"),
    ChatMessage(role=Role.USER, content="What is the capital of France?"),
]


async def collect(chunks) -> list[str]:
    return [chunk async for chunk in chunks]


@pytest.mark.asyncio
async def test_stream_success_forwards_chunks_in_order(make_backend):
    backend = make_backend(chunks=["Par", "is", " is", " is"])
    streamer = AnswerStreamer(backend)

    answer = await streamer.answer(MESSAGES)

    assert isinstance(answer, StreamedAnswer)
    assert await collect(answer.chunks) == ["Par", "is", " is", " is"]
    assert backend.complete_calls == []


@pytest.mark.asyncio
async def test_stream_skips_empty_chunks(make_backend):
    backend = make_backend(chunks=["", "Hello", "", " world"])
    answer = await AnswerStreamer(backend).answer(MESSAGES)

    assert await collect(answer.chunks) == ["Hello", " world"]


@pytest.mark.asyncio
async def test_stream_error_before_output_falls_back(make_backend):
    """Chunks read but never handed out are dropped in favour of the fallback."""
    backend = make_backend(
        chunks=["Par", "is is"],
        stream_error=ConnectionError("connection reset"),
        completion="Paris is the capital of France.",
    )
    streamer = AnswerStreamer(backend)

    answer = await streamer.answer(MESSAGES)

    assert isinstance(answer, BufferedAnswer)
    assert answer.text == "Paris is the capital of France."
    assert backend.complete_calls == [MESSAGES]
    assert backend.stream_calls == [MESSAGES]


@pytest.mark.asyncio
async def test_stream_rejected_immediately_falls_back(make_backend):
    backend = make_backend(stream_error=RuntimeError("model not found"), completion="fallback")

    answer = await AnswerStreamer(backend).answer(MESSAGES)

    assert isinstance(answer, BufferedAnswer)
    assert answer.text == "fallback"


@pytest.mark.asyncio
async def test_empty_stream_falls_back(make_backend):
    """A stream that ends without any text is treated as a failed stream."""
    backend = make_backend(chunks=[], completion="fallback")

    answer = await AnswerStreamer(backend).answer(MESSAGES)

    assert isinstance(answer, BufferedAnswer)
    assert len(backend.complete_calls) == 1


@pytest.mark.asyncio
async def test_stream_that_cannot_be_opened_falls_back():
    """A backend whose stream() raises synchronously still gets the fallback."""

    class Backend:
        def stream(self, messages):
            raise RuntimeError("no streaming support")

        async def complete(self, messages):
            return "buffered"

    answer = await AnswerStreamer(Backend()).answer(MESSAGES)

    assert isinstance(answer, BufferedAnswer)
    assert answer.text == "buffered"


@pytest.mark.asyncio
async def test_stream_and_fallback_both_fail(make_backend):
    backend = make_backend(
        stream_error=ConnectionError("down"),
        complete_error=ConnectionError("still down"),
    )

    with pytest.raises(GenerationError):
        await AnswerStreamer(backend).answer(MESSAGES)


@pytest.mark.asyncio
async def test_failure_after_first_chunk_has_no_fallback(make_backend):
    """Once output has been handed out, a broken stream is fatal."""
    released = asyncio.Event()
    backend = make_backend(
        chunks=["Par"],
        stream_error=ConnectionError("connection dropped"),
        hold_after_first=released,
    )

    answer = await AnswerStreamer(backend).answer(MESSAGES)
    assert isinstance(answer, StreamedAnswer)

    first = await answer.chunks.__anext__()
    assert first == "Par"

    released.set()
    with pytest.raises(StreamInterruptedError) as exc_info:
        await answer.chunks.__anext__()

    assert isinstance(exc_info.value.__cause__, ConnectionError)
    assert backend.complete_calls == []


@pytest.mark.asyncio
async def test_buffer_is_bounded():
    """The reader stops pulling from the backend when the buffer is full."""
    pulled = []

    class Backend:
        async def stream(self, messages):
            for i in range(50):
                pulled.append(i)
                yield str(i)

        async def complete(self, messages):
            return ""

    answer = await AnswerStreamer(Backend(), buffer_size=4).answer(MESSAGES)
    assert await answer.chunks.__anext__() == "0"
    # Let the reader run as far as it can
    for _ in range(10):
        await asyncio.sleep(0)

    assert len(pulled) <= 4 + 2
    assert len(await collect(answer.chunks)) == 49


@pytest.mark.asyncio
async def test_consumer_closing_early_cancels_reader():
    """Closing the chunk iterator (client gone) cancels the backend read."""
    cancelled = asyncio.Event()

    class Backend:
        async def stream(self, messages):
            yield "a"
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            yield "b"

        async def complete(self, messages):
            return ""

    answer = await AnswerStreamer(Backend()).answer(MESSAGES)
    assert await answer.chunks.__anext__() == "a"

    await answer.chunks.aclose()

    await asyncio.wait_for(cancelled.wait(), timeout=1)


@pytest.mark.asyncio
async def test_aclose_before_iteration_cancels_reader():
    """An answer whose chunks are never iterated still releases the backend stream."""
    closed = asyncio.Event()

    class Backend:
        async def stream(self, messages):
            try:
                for i in range(50):
                    yield str(i)
            finally:
                closed.set()

        async def complete(self, messages):
            return ""

    answer = await AnswerStreamer(Backend(), buffer_size=1).answer(MESSAGES)
    assert isinstance(answer, StreamedAnswer)

    await answer.aclose()
    await answer.aclose()

    await asyncio.wait_for(closed.wait(), timeout=1)
    with pytest.raises(StopAsyncIteration):
        await answer.chunks.__anext__()
