"""LLM client with multi-provider support for streamed and buffered generation."""
import enum
import logging
from contextlib import aclosing
from typing import AsyncIterator, Optional, Protocol, Sequence

from anthropic import AnthropicError, AsyncAnthropic
from anthropic.types import MessageParam
from openai import AsyncOpenAI, OpenAIError
from openai.types.chat import ChatCompletionMessageParam

from answer_engine.core.config import Settings, get_settings
from answer_engine.core.errors import GenerationError
from answer_engine.schemas.answer import ChatMessage, Role

logger = logging.getLogger(__name__)


class LLMProvider(str, enum.Enum):
    """Supported LLM providers."""

    OLLAMA = "ollama"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class GenerationBackend(Protocol):
    """What the answer pipeline needs from a language model."""

    async def complete(self, messages: Sequence[ChatMessage]) -> str: ...

    def stream(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]: ...


class LLMClient:
    """
    Generation backend over Ollama, OpenAI or Anthropic.

    Ollama is reached through its OpenAI-compatible endpoint, so it shares the
    OpenAI code path with a different base URL and model.
    """

    def __init__(
        self,
        provider: LLMProvider | str | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize LLM client.

        Args:
            provider: Provider to use (defaults to settings.llm_provider)
            settings: Settings to read credentials and model options from
        """
        self.settings = settings or get_settings()
        self.provider = LLMProvider(provider or self.settings.llm_provider)
        self._anthropic: Optional[AsyncAnthropic] = None
        self._openai: Optional[AsyncOpenAI] = None

    @property
    def anthropic(self) -> AsyncAnthropic:
        """Lazy-load Anthropic client."""
        if not self._anthropic:
            self._anthropic = AsyncAnthropic(api_key=self.settings.anthropic_api_key)
        return self._anthropic

    @property
    def openai(self) -> AsyncOpenAI:
        """Lazy-load OpenAI client (pointed at Ollama for the Ollama provider)."""
        if not self._openai:
            if self.provider == LLMProvider.OLLAMA:
                base_url = self.settings.ollama_base_url.rstrip("/") + "/v1"
                # Ollama ignores the key but the SDK requires one
                self._openai = AsyncOpenAI(base_url=base_url, api_key="ollama")
            else:
                self._openai = AsyncOpenAI(api_key=self.settings.openai_api_key)
        return self._openai

    @property
    def model(self) -> str:
        if self.provider == LLMProvider.OLLAMA:
            return self.settings.ollama_model
        if self.provider == LLMProvider.OPENAI:
            return self.settings.openai_model
        return self.settings.anthropic_model

    async def aclose(self) -> None:
        """Close any provider clients that were created."""
        if self._openai:
            await self._openai.close()
            self._openai = None
        if self._anthropic:
            await self._anthropic.close()
            self._anthropic = None

    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        """
        Generate a full answer in one request.

        Raises:
            GenerationError: If the provider call fails
        """
        try:
            if self.provider == LLMProvider.ANTHROPIC:
                return await self._complete_anthropic(messages)
            return await self._complete_openai(messages)
        except (OpenAIError, AnthropicError) as e:
            raise GenerationError(f"{self.provider.value} completion failed: {e}") from e

    async def stream(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        """
        Generate an answer incrementally, yielding text chunks as they arrive.

        Raises:
            GenerationError: If the provider call fails or reports an error mid-stream
        """
        if self.provider == LLMProvider.ANTHROPIC:
            chunks = self._stream_anthropic(messages)
        else:
            chunks = self._stream_openai(messages)
        try:
            # Closing this generator early closes the provider stream too
            async with aclosing(chunks):
                async for text in chunks:
                    yield text
        except (OpenAIError, AnthropicError) as e:
            raise GenerationError(f"{self.provider.value} stream failed: {e}") from e

    @staticmethod
    def _openai_messages(messages: Sequence[ChatMessage]) -> list[ChatCompletionMessageParam]:
        return [
            {"role": m.role.value, "content": m.content}  # type: ignore[misc]
            for m in messages
        ]

    @staticmethod
    def _anthropic_messages(messages: Sequence[ChatMessage]) -> tuple[str, list[MessageParam]]:
        """Split out system text; Anthropic takes it as a separate parameter."""
        system = "\n\n".join(m.content for m in messages if m.role == Role.SYSTEM)
        turns: list[MessageParam] = [
            {"role": m.role.value, "content": m.content}  # type: ignore[typeddict-item]
            for m in messages
            if m.role != Role.SYSTEM
        ]
        return system, turns

    async def _complete_openai(self, messages: Sequence[ChatMessage]) -> str:
        response = await self.openai.chat.completions.create(
            model=self.model,
            max_tokens=self.settings.llm_max_tokens,
            temperature=self.settings.llm_temperature,
            messages=self._openai_messages(messages),
        )
        if not response.choices:
            raise GenerationError("Completion returned no choices")
        return response.choices[0].message.content or ""

    async def _stream_openai(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        stream = await self.openai.chat.completions.create(
            model=self.model,
            max_tokens=self.settings.llm_max_tokens,
            temperature=self.settings.llm_temperature,
            messages=self._openai_messages(messages),
            stream=True,
        )
        async with stream:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                if choice.finish_reason == "error":
                    raise GenerationError("Provider reported an error during streaming")
                if choice.delta.content:
                    yield choice.delta.content

    async def _complete_anthropic(self, messages: Sequence[ChatMessage]) -> str:
        system, turns = self._anthropic_messages(messages)
        response = await self.anthropic.messages.create(
            model=self.model,
            max_tokens=self.settings.llm_max_tokens,
            temperature=self.settings.llm_temperature,
            system=system,
            messages=turns,
        )
        return "".join(block.text for block in response.content if block.type == "text")

    async def _stream_anthropic(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        system, turns = self._anthropic_messages(messages)
        async with self.anthropic.messages.stream(
            model=self.model,
            max_tokens=self.settings.llm_max_tokens,
            temperature=self.settings.llm_temperature,
            system=system,
            messages=turns,
        ) as stream:
            async for text in stream.text_stream:
                yield text
