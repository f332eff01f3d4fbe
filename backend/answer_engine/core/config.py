# backend/answer_engine/core/config.py
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Answer Engine"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Generation backend
    llm_provider: Literal["ollama", "openai", "anthropic"] = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.1"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    llm_temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    llm_max_tokens: int = Field(default=1024, gt=0)

    # Source fetching
    fetch_timeout_ms: int = Field(default=5000, gt=0)
    fetch_user_agent: str = "Mozilla/5.0 OllamaIntelligentFetcher"
    max_content_chars: int = Field(default=20000, gt=0)
    max_body_bytes: int = Field(default=2_000_000, gt=0)
    block_private_urls: bool = True

    # Admission control (token bucket)
    rate_limit_tokens: int = Field(default=5, gt=0)
    rate_limit_interval_seconds: float = Field(default=60.0, gt=0)
    # 0 rejects at once when the bucket is empty
    rate_limit_max_wait_seconds: float = Field(default=0.0, ge=0)

    # Streaming
    stream_buffer_size: int = Field(default=8, gt=0)

    # Frontend
    frontend_url: str = "http://localhost:3000"

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
