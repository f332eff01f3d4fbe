# backend/answer_engine/core/deps.py
from functools import lru_cache

from fastapi import Depends

from answer_engine.core.config import Settings, get_settings
from answer_engine.core.rate_limit import TokenBucket
from answer_engine.services.llm.client import GenerationBackend, LLMClient
from answer_engine.services.pipeline.orchestrator import AnswerPipeline


@lru_cache
def get_rate_limiter() -> TokenBucket:
    """Process-wide admission bucket shared by all requests."""
    settings = get_settings()
    return TokenBucket(
        capacity=settings.rate_limit_tokens,
        interval_seconds=settings.rate_limit_interval_seconds,
    )


@lru_cache
def get_llm_client() -> LLMClient:
    return LLMClient(settings=get_settings())


def get_answer_pipeline(
    settings: Settings = Depends(get_settings),
    backend: GenerationBackend = Depends(get_llm_client),
) -> AnswerPipeline:
    """Dependency for the answer pipeline."""
    return AnswerPipeline.from_settings(settings, backend=backend)
