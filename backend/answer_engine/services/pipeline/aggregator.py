"""Concurrent fetch-and-extract over all sources of a request."""

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from answer_engine.core.errors import FetchError, FetchTimeoutError
from answer_engine.schemas.answer import Source, SourceResult, SourceStatus
from answer_engine.services.pipeline.extractor import MainTextExtractor, extract_content, extract_main_text
from answer_engine.services.pipeline.text_cleaner import MAX_CONTENT_CHARS
from answer_engine.services.pipeline.url_fetcher import DEFAULT_TIMEOUT_MS, fetch_source

logger = logging.getLogger(__name__)

# Shown in the prompt in place of a source that could not be processed
FETCH_FAILED = "Failed to extract content"

Fetcher = Callable[[str, int], Awaitable[str]]


class SourceAggregator:
    """
    Fetch and extract every source concurrently.

    Each source runs as an independent task under its own deadline. A failure
    in one source becomes a FAILED SourceResult with placeholder content and
    never affects the others. Results come back in input order.
    """

    def __init__(
        self,
        fetcher: Fetcher = fetch_source,
        extractor: MainTextExtractor = extract_main_text,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_chars: int = MAX_CONTENT_CHARS,
    ):
        self.fetcher = fetcher
        self.extractor = extractor
        self.timeout_ms = timeout_ms
        self.max_chars = max_chars

    async def _process(self, source: Source, timeout_ms: int) -> SourceResult:
        url = str(source.url)
        try:
            # Also enforced here so an injected fetcher cannot outlive the deadline
            html = await asyncio.wait_for(self.fetcher(url, timeout_ms), timeout=timeout_ms / 1000)
            content = extract_content(html, extractor=self.extractor, max_chars=self.max_chars)
        except (FetchTimeoutError, asyncio.TimeoutError):
            logger.warning(f"Timed out fetching {url} after {timeout_ms} ms")
            return self._failed(source, f"timed out after {timeout_ms} ms")
        except FetchError as e:
            logger.warning(f"Failed to fetch {url}: {e.reason}")
            return self._failed(source, e.reason)
        except Exception as e:
            logger.warning(f"Failed to process {url}: {e!r}")
            return self._failed(source, str(e) or type(e).__name__)

        return SourceResult(source=source, content=content, status=SourceStatus.OK)

    @staticmethod
    def _failed(source: Source, reason: str) -> SourceResult:
        return SourceResult(
            source=source,
            content=FETCH_FAILED,
            status=SourceStatus.FAILED,
            failure_reason=reason,
        )

    async def aggregate(
        self,
        sources: Sequence[Source],
        timeout_ms: int | None = None,
    ) -> list[SourceResult]:
        """
        Process all sources and wait for every one to settle.

        Args:
            sources: Sources in caller order
            timeout_ms: Per-source deadline (defaults to the aggregator's)

        Returns:
            One SourceResult per source, in the same order as `sources`
        """
        if not sources:
            return []

        deadline = timeout_ms or self.timeout_ms
        # gather returns results by position, not by completion order
        results = await asyncio.gather(
            *(self._process(source, deadline) for source in sources)
        )

        failed = sum(1 for r in results if not r.ok)
        logger.info(f"Aggregated {len(results)} sources ({len(results) - failed} ok, {failed} failed)")
        return list(results)
