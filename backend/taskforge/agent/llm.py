"""OpenAI-compatible model provider with retry logic.

Wraps the OpenAI SDK, pointed at any endpoint that speaks the
chat-completions protocol. Retries transient failures (429 rate limit, 5xx
server errors, timeouts, connection errors) with exponential backoff. Does
NOT retry mid-stream. Only the initial request is retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

import httpx
from openai import AsyncOpenAI, APIStatusError, APIConnectionError, APITimeoutError

from taskforge.agent.constants import (
    LLM_CONNECT_TIMEOUT_SECONDS,
    LLM_MAX_RETRIES,
    LLM_REQUEST_TIMEOUT_SECONDS,
    LLM_RETRY_BASE_DELAY_SECONDS,
    LLM_RETRY_MAX_DELAY_SECONDS,
    LLM_RETRYABLE_STATUS_CODES,
)
from taskforge.agent.providers import (
    ChatOptions,
    ChatResponse,
    ChatStreamChunk,
    ChatUsage,
    ConnectionTestResult,
    ModelProvider,
)

logger = logging.getLogger(__name__)

_FINISH_REASONS = {
    "stop": "end_turn",
    "length": "max_tokens",
    "content_filter": "stop_sequence",
}


def _is_retryable(exc: Exception) -> bool:
    """Determine if an exception is transient and worth retrying."""
    if isinstance(exc, APITimeoutError):
        return True
    if isinstance(exc, APIConnectionError):
        return True
    if isinstance(exc, APIStatusError) and exc.status_code in LLM_RETRYABLE_STATUS_CODES:
        return True
    return False


def _retry_delay(attempt: int) -> float:
    return min(
        LLM_RETRY_BASE_DELAY_SECONDS * (2 ** (attempt - 1)),
        LLM_RETRY_MAX_DELAY_SECONDS,
    )


class OpenAICompatibleProvider(ModelProvider):
    """ModelProvider backed by ``openai.AsyncOpenAI``."""

    type = "openai-compatible"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        default_model: str,
        temperature: float = 0.2,
        provider_id: str = "openai-compatible",
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.id = provider_id
        self.default_model = default_model
        self.temperature = temperature
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=httpx.Timeout(
                LLM_REQUEST_TIMEOUT_SECONDS, connect=LLM_CONNECT_TIMEOUT_SECONDS
            ),
        )

    @classmethod
    def from_settings(cls) -> OpenAICompatibleProvider:
        from taskforge.config import settings

        return cls(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            default_model=settings.OPENAI_MODEL,
            temperature=settings.LLM_TEMPERATURE,
        )

    def _build_kwargs(
        self, messages: list[dict], options: ChatOptions | None, stream: bool
    ) -> dict:
        options = options or ChatOptions()
        kwargs: dict = {
            "model": options.model or self.default_model,
            "messages": messages,
            "stream": stream,
            "temperature": (
                options.temperature
                if options.temperature is not None
                else self.temperature
            ),
        }
        if options.max_tokens is not None:
            kwargs["max_tokens"] = options.max_tokens
        if options.stop_sequences:
            kwargs["stop"] = options.stop_sequences
        return kwargs

    async def _create(self, kwargs: dict):
        """Create a completion, retrying transient failures."""
        for attempt in range(1, LLM_MAX_RETRIES + 1):
            try:
                return await self.client.chat.completions.create(**kwargs)
            except Exception as exc:
                if attempt < LLM_MAX_RETRIES and _is_retryable(exc):
                    delay = _retry_delay(attempt)
                    logger.warning(
                        "LLM request attempt %d/%d failed (%s), retrying in %.1fs",
                        attempt,
                        LLM_MAX_RETRIES,
                        exc,
                        delay,
                    )
                    await asyncio.sleep(delay)
                else:
                    raise

    async def chat(
        self, messages: list[dict], options: ChatOptions | None = None
    ) -> ChatResponse:
        completion = await self._create(
            self._build_kwargs(messages, options, stream=False)
        )

        choice = completion.choices[0] if completion.choices else None
        content = (choice.message.content or "") if choice else ""

        usage = None
        if completion.usage is not None:
            usage = ChatUsage(
                input_tokens=completion.usage.prompt_tokens or 0,
                output_tokens=completion.usage.completion_tokens or 0,
            )

        return ChatResponse(
            content=content,
            model=completion.model,
            usage=usage,
            stop_reason=_FINISH_REASONS.get(choice.finish_reason) if choice else None,
        )

    async def chat_stream(
        self, messages: list[dict], options: ChatOptions | None = None
    ) -> AsyncIterator[ChatStreamChunk]:
        stream = await self._create(
            self._build_kwargs(messages, options, stream=True)
        )

        # Partial streams are not retried
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            if delta.content:
                yield ChatStreamChunk(content=delta.content)

        yield ChatStreamChunk(content="", done=True)

    async def test_connection(self) -> ConnectionTestResult:
        try:
            page = await self.client.models.list()
        except Exception as e:
            logger.warning("Connection test for provider %s failed: %s", self.id, e)
            return ConnectionTestResult(success=False, error=str(e))
        return ConnectionTestResult(
            success=True, models=[m.id for m in page.data]
        )

    async def close(self) -> None:
        await self.client.close()
