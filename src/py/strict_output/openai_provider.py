"""
Strict Output — OpenAI Provider

Default completion provider backed by the openai SDK. Credentials and
transport retries are the SDK's concern; errors are not caught here.
"""

from __future__ import annotations

import logging
from typing import Any

from ._types import LLMRequest, LLMResponse

__all__ = ["OpenAIProvider"]

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """Calls chat.completions.create and returns the first choice."""

    def __init__(self, client: Any = None, **client_kwargs: Any) -> None:
        self._client = client
        self._client_kwargs = client_kwargs

    @property
    def client(self) -> Any:
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(**self._client_kwargs)
        return self._client

    async def __call__(self, request: LLMRequest) -> LLMResponse:
        kwargs: dict[str, Any] = {
            "model": request.model,
            "messages": [message.to_dict() for message in request.messages],
        }
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature

        response = await self.client.chat.completions.create(**kwargs)

        choice = response.choices[0]
        content = choice.message.content or ""
        usage = getattr(response, "usage", None)

        logger.debug(
            "model=%s chars_in=%d chars_out=%d",
            request.model,
            sum(len(m.content) for m in request.messages),
            len(content),
        )

        return LLMResponse(
            content=content,
            tokens_used=usage.total_tokens if usage is not None else None,
            model=getattr(response, "model", request.model),
            finish_reason=choice.finish_reason,
        )
