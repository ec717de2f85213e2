"""
Strict Output — Mock LLM Provider

Simulates an LLM provider with configurable output behavior:
- Valid JSON objects or arrays
- Single-quoted pseudo-JSON
- Markdown-wrapped JSON
- Missing fields, broken JSON, plain prose
- List/scalar shape mismatches
- Configurable latency and error injection

No API keys needed. Used for testing.
"""

from __future__ import annotations

import asyncio
import json
import random
from dataclasses import dataclass, field
from typing import Any, Literal

from ._types import LLMRequest, LLMResponse

# What kind of output the mock should produce.
OutputMode = Literal[
    "valid",             # JSON matching the expected shape
    "single_quoted",     # Valid output rendered with single quotes
    "markdown_wrapped",  # Valid JSON inside ```json code fence
    "missing_field",     # Valid JSON but the first key is dropped
    "invalid_json",      # Trailing comma, does not parse
    "non_json",          # Plain text, no JSON at all
    "scalar_for_list",   # A single object where an array is expected
    "array_for_scalar",  # An array where a single object is expected
]

DEFAULT_VALID_OUTPUT: dict[str, Any] = {"sentiment": "positive", "summary": "A sunny day"}


@dataclass
class MockProviderConfig:
    """Configuration for the mock LLM provider."""

    # Simulated response latency in milliseconds.
    latency_ms: float = 10

    # Probability of throwing an error (network/API failure).
    failure_rate: float = 0.0

    # Error message when failure triggers.
    error_message: str = "Provider unavailable"

    # Model name in responses.
    model_name: str = "mock-strict"

    # Output mode controlling what the mock returns.
    # Can be a single mode or a list — if list, cycles through them per call.
    output_mode: OutputMode | list[OutputMode] = "valid"

    # The object (or list of objects) used as the base for responses.
    valid_output: Any = field(default_factory=lambda: dict(DEFAULT_VALID_OUTPUT))


class MockProvider:
    """Mock LLM provider with configurable structured output behavior."""

    def __init__(self, config: MockProviderConfig | None = None) -> None:
        self._config = config or MockProviderConfig()
        modes = self._config.output_mode
        self._output_modes: list[OutputMode] = list(modes) if isinstance(modes, list) else [modes]
        self._requests: list[LLMRequest] = []

    async def __call__(self, request: LLMRequest) -> LLMResponse:
        self._requests.append(request)

        if self._config.latency_ms > 0:
            await asyncio.sleep(self._config.latency_ms / 1000)

        if random.random() < self._config.failure_rate:
            raise RuntimeError(self._config.error_message)

        mode_index = (len(self._requests) - 1) % len(self._output_modes)
        return LLMResponse(
            content=self._generate_output(self._output_modes[mode_index]),
            model=self._config.model_name,
            finish_reason="stop",
        )

    def _generate_output(self, mode: OutputMode) -> str:
        valid = self._config.valid_output
        valid_json = json.dumps(valid)

        if mode == "valid":
            return valid_json

        if mode == "single_quoted":
            return valid_json.replace('"', "'")

        if mode == "markdown_wrapped":
            return f"```json\n{valid_json}\n```"

        if mode == "missing_field":
            return json.dumps(_drop_first_key(valid))

        if mode == "invalid_json":
            inner = valid_json[1:-1]
            return f"{valid_json[0]}{inner},{valid_json[-1]}"

        if mode == "non_json":
            return "I apologize, but I cannot provide the requested information in the specified format."

        if mode == "scalar_for_list":
            return json.dumps(valid[0] if isinstance(valid, list) and valid else valid)

        if mode == "array_for_scalar":
            return json.dumps(valid if isinstance(valid, list) else [valid])

        return valid_json

    @property
    def call_count(self) -> int:
        """Total calls made to this provider instance."""
        return len(self._requests)

    @property
    def requests(self) -> list[LLMRequest]:
        """Every request received, in order."""
        return list(self._requests)

    def system_prompt(self, call_index: int) -> str:
        """The system message of the given call."""
        return self._requests[call_index].messages[0].content


def _drop_first_key(valid: Any) -> Any:
    if isinstance(valid, list):
        return [_drop_first_key(item) for item in valid]
    keys = list(valid.keys())
    return {k: v for k, v in valid.items() if k != keys[0]} if keys else {}
