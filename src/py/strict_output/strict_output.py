"""
Strict Output — Core Implementation

Prompt -> Request -> Normalize -> Validate -> Retry loop that coerces free-form
LLM completions into a caller-declared shape.

Format failures (parse, shape, missing field) are fed back into the next
prompt. Provider failures are not retried and propagate to the caller.
Exhausting all attempts is a soft failure: the output is an empty list.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Sequence, Union

from ._types import (
    Attempt,
    ChatMessage,
    ExpectedFormat,
    FormatHints,
    GenerationResult,
    LLMProvider,
    LLMRequest,
    StrictOutputConfig,
    ValidationFailure,
)
from .openai_provider import OpenAIProvider
from .prompt_builder import analyze_format, build_prompt, format_error_message
from .validator import normalize_response, strip_markdown_fences, validate_and_format_output

__all__ = [
    "StrictOutputGenerator",
    "generate_structured_output",
    "request_completion",
    "stringify_user_input",
]

logger = logging.getLogger(__name__)

UserInput = Union[str, Sequence[str]]


def _is_list_input(user_input: UserInput) -> bool:
    return isinstance(user_input, (list, tuple))


def stringify_user_input(user_input: UserInput) -> str:
    """List inputs are sent comma-joined in a single user message."""
    if _is_list_input(user_input):
        return ",".join(str(element) for element in user_input)
    return str(user_input)


async def request_completion(
    provider: LLMProvider,
    prompt: str,
    user_input: UserInput,
    model: str,
    temperature: float,
) -> str:
    """
    Send the built prompt as the system message and the user input as the
    user message. Returns the first candidate's text.
    """
    response = await provider(
        LLMRequest(
            model=model,
            temperature=temperature,
            messages=[
                ChatMessage(role="system", content=prompt),
                ChatMessage(role="user", content=stringify_user_input(user_input)),
            ],
        )
    )
    return response.content or ""


class StrictOutputGenerator:
    """
    StrictOutputGenerator — the retry controller.

    Holds an injected provider and a configuration snapshot. Each call to
    execute() owns its own attempt history, so one generator can serve
    concurrent invocations.
    """

    def __init__(self, provider: LLMProvider, config: StrictOutputConfig | None = None) -> None:
        self._provider = provider
        self._config = config or StrictOutputConfig()

    @property
    def config(self) -> StrictOutputConfig:
        return self._config

    async def execute(
        self,
        system_prompt: str,
        user_input: UserInput,
        expected_format: ExpectedFormat,
    ) -> GenerationResult:
        """
        Run up to max_attempts attempts and return the result with metadata.
        Provider exceptions propagate unmodified.
        """
        start_time = time.perf_counter()
        cfg = self._config

        is_list_input = _is_list_input(user_input)
        hints = analyze_format(expected_format)

        history: list[Attempt] = []
        previous: Attempt | None = None

        for number in range(1, cfg.max_attempts + 1):
            if previous is not None and cfg.on_retry:
                cfg.on_retry(previous.error_message, number)

            attempt = await self._run_attempt(
                number, system_prompt, user_input, expected_format, hints, is_list_input, previous
            )
            history.append(attempt)

            if not isinstance(attempt.outcome, ValidationFailure):
                items = attempt.outcome.items
                return GenerationResult(
                    success=True,
                    output=items if is_list_input else items[0],
                    attempts=number,
                    raw=attempt.raw,
                    total_latency_ms=(time.perf_counter() - start_time) * 1000,
                    history=history,
                )

            logger.warning(
                "An exception occurred with error: %s. Invalid JSON format in the result: %s",
                attempt.outcome.error,
                attempt.normalized,
            )
            previous = attempt

        result = GenerationResult(
            success=False,
            output=[],
            attempts=len(history),
            raw=previous.raw if previous else "",
            error_message=previous.error_message if previous else "",
            total_latency_ms=(time.perf_counter() - start_time) * 1000,
            history=history,
        )
        logger.error("No conforming output after %d attempts", result.attempts)

        if cfg.on_exhausted:
            cfg.on_exhausted(result)

        return result

    async def generate(
        self,
        system_prompt: str,
        user_input: UserInput,
        expected_format: ExpectedFormat,
    ) -> Any:
        """Validated output, or [] when no attempt conformed."""
        result = await self.execute(system_prompt, user_input, expected_format)
        return result.output

    async def _run_attempt(
        self,
        number: int,
        system_prompt: str,
        user_input: UserInput,
        expected_format: ExpectedFormat,
        hints: FormatHints,
        is_list_input: bool,
        previous: Attempt | None,
    ) -> Attempt:
        cfg = self._config
        prompt = build_prompt(
            system_prompt,
            expected_format,
            hints,
            is_list_input,
            previous.error_message if previous else "",
        )

        raw = await request_completion(self._provider, prompt, user_input, cfg.ai_model, cfg.temperature)

        text = strip_markdown_fences(raw) if cfg.strip_markdown else raw
        normalized = normalize_response(text)

        if cfg.enable_detailed_logging:
            _log_details(system_prompt, prompt, user_input, normalized)

        outcome = validate_and_format_output(
            normalized,
            is_list_input,
            expected_format,
            cfg.default_response,
            cfg.return_values_only,
        )

        error_message = ""
        if isinstance(outcome, ValidationFailure):
            error_message = format_error_message(normalized, outcome.error)

        return Attempt(
            number=number,
            prompt=prompt,
            raw=raw,
            normalized=normalized,
            outcome=outcome,
            error_message=error_message,
        )


def _log_details(system_prompt: str, prompt: str, user_input: UserInput, result: str) -> None:
    logger.info("--- System Prompt ---\n%s", system_prompt)
    logger.info("--- Additional Prompt ---\n%s", prompt)
    logger.info("--- User Prompt ---\n%s", user_input)
    logger.info("--- GPT Response ---\n%s", result)


async def generate_structured_output(
    system_prompt: str,
    user_input: UserInput,
    expected_format: ExpectedFormat,
    config: StrictOutputConfig | None = None,
    provider: LLMProvider | None = None,
) -> Any:
    """
    Generate output matching expected_format.

    Returns a single item for a string input, a list of items parallel to a
    list input, or [] if every attempt failed validation.
    """
    generator = StrictOutputGenerator(provider or OpenAIProvider(), config)
    return await generator.generate(system_prompt, user_input, expected_format)
