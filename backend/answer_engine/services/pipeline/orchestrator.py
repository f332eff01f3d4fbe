"""Answer pipeline: gather sources, compose the prompt, generate the answer."""
import functools
import logging
from typing import Sequence

from answer_engine.core.config import Settings
from answer_engine.schemas.answer import ChatMessage, Source, SourceResult
from answer_engine.services.answer.streamer import Answer, AnswerStreamer
from answer_engine.services.llm.client import GenerationBackend, LLMClient
from answer_engine.services.pipeline.aggregator import SourceAggregator
from answer_engine.services.pipeline.extractor import MainTextExtractor, extract_main_text
from answer_engine.services.pipeline.prompt import compose_messages
from answer_engine.services.pipeline.url_fetcher import fetch_source

logger = logging.getLogger(__name__)


class AnswerPipeline:
    """
    One request's path from question and sources to an answer.

    The generation backend and the main-text extractor are chosen at
    construction time; the pipeline itself holds no per-request state.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        aggregator: SourceAggregator | None = None,
        buffer_size: int = 8,
    ):
        self.aggregator = aggregator or SourceAggregator()
        self.streamer = AnswerStreamer(backend, buffer_size=buffer_size)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        backend: GenerationBackend | None = None,
        extractor: MainTextExtractor = extract_main_text,
    ) -> "AnswerPipeline":
        fetcher = functools.partial(
            fetch_source,
            user_agent=settings.fetch_user_agent,
            check_urls=settings.block_private_urls,
            max_body_bytes=settings.max_body_bytes,
        )
        aggregator = SourceAggregator(
            fetcher=fetcher,
            extractor=extractor,
            timeout_ms=settings.fetch_timeout_ms,
            max_chars=settings.max_content_chars,
        )
        return cls(
            backend=backend or LLMClient(settings=settings),
            aggregator=aggregator,
            buffer_size=settings.stream_buffer_size,
        )

    async def gather(self, sources: Sequence[Source]) -> list[SourceResult]:
        return await self.aggregator.aggregate(sources)

    async def prepare(self, question: str, sources: Sequence[Source]) -> list[ChatMessage]:
        """Aggregate the sources and build the grounding messages."""
        results = await self.gather(sources)
        return compose_messages(results, question)

    async def run(self, question: str, sources: Sequence[Source]) -> Answer:
        """
        Answer a question grounded in the given sources.

        Raises:
            GenerationError: If both streaming and the fallback completion failed
        """
        messages = await self.prepare(question, sources)
        logger.info(f"Generating answer from {len(sources)} sources")
        return await self.streamer.answer(messages)
