from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.types import Receive, Scope, Send

from answer_engine.core.config import Settings, get_settings
from answer_engine.core.deps import get_answer_pipeline, get_rate_limiter
from answer_engine.core.rate_limit import TokenBucket
from answer_engine.schemas.answer import AnswerRequest, ErrorResponse
from answer_engine.services.answer.streamer import BufferedAnswer, StreamedAnswer
from answer_engine.services.pipeline.orchestrator import AnswerPipeline
from answer_engine.utils.sse import sse_text_stream

router = APIRouter(prefix="/answer", tags=["answer"])

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-store",
    "X-Accel-Buffering": "no",
}


class AnswerStreamResponse(StreamingResponse):
    """SSE response that releases the backend stream however sending ends."""

    def __init__(self, answer: StreamedAnswer):
        super().__init__(
            sse_text_stream(answer.chunks),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )
        self.answer = answer

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            # Also covers a client that left before the first chunk was sent
            await self.answer.aclose()


@router.post(
    "",
    responses={
        200: {"content": {"text/event-stream": {}}, "description": "Streamed answer"},
        202: {"content": {"text/plain": {}}, "description": "Buffered fallback answer"},
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
    },
)
async def answer_question(
    data: AnswerRequest,
    limiter: TokenBucket = Depends(get_rate_limiter),
    pipeline: AnswerPipeline = Depends(get_answer_pipeline),
    settings: Settings = Depends(get_settings),
):
    """Answer a question grounded in the given web sources."""
    # Admission runs only after the body validated
    await limiter.acquire(timeout=settings.rate_limit_max_wait_seconds)

    answer = await pipeline.run(data.question, data.sources)

    if isinstance(answer, BufferedAnswer):
        return PlainTextResponse(
            answer.text,
            status_code=status.HTTP_202_ACCEPTED,
            headers={"Cache-Control": "no-store"},
        )

    return AnswerStreamResponse(answer)
