"""
Strict Output — Type Definitions

Core types for the prompt -> request -> normalize -> validate -> retry loop.
Framework-agnostic. The only provider-specific code lives in openai_provider.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Union

# Field name -> free-text description, list of allowed choices, or nested format.
ExpectedFormat = dict[str, Union[str, list[str], "ExpectedFormat"]]

# One validated record: a dict, or its values when return_values_only is set.
ValidatedOutputItem = Union[dict[str, Any], list[Any]]

# Which check rejected the output.
FailureKind = Literal["parse", "shape", "missing_field"]

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class FormatHints:
    """Structural hints derived from the serialized expected format."""

    # The format contains an array literal (enum/choice or list field).
    has_list_field: bool = False

    # The format contains a <placeholder> in a key or value.
    has_dynamic_field: bool = False


@dataclass
class ChatMessage:
    """A single role-tagged chat message."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class LLMRequest:
    """A chat completion request to an LLM provider."""

    model: str
    messages: list[ChatMessage]
    temperature: float | None = None
    metadata: dict[str, Any] | None = None


@dataclass
class LLMResponse:
    """The first candidate of a provider's completion."""

    content: str | None
    tokens_used: int | None = None
    model: str | None = None
    finish_reason: str | None = None


# An LLM provider callable — any async function matching this signature works.
LLMProvider = Callable[[LLMRequest], Awaitable[LLMResponse]]


# --- Errors ---


class OutputFormatError(Exception):
    """Base class for output the model can be asked to correct."""

    kind: FailureKind


class ParseError(OutputFormatError):
    """Normalized text is not well-formed JSON."""

    kind: FailureKind = "parse"


class ShapeError(OutputFormatError):
    """List-ness of the output does not match the list-ness of the input."""

    kind: FailureKind = "shape"


class MissingFieldError(OutputFormatError):
    """A declared key is absent from an output item."""

    kind: FailureKind = "missing_field"

    def __init__(self, field_name: str) -> None:
        self.field = field_name
        super().__init__(f"{field_name} not in json output")


# --- Validation outcome ---


@dataclass(frozen=True)
class ValidationSuccess:
    """Every item passed; items are fresh copies, defaults already applied."""

    items: list[ValidatedOutputItem]


@dataclass(frozen=True)
class ValidationFailure:
    """The output was rejected; error describes why."""

    error: OutputFormatError

    @property
    def kind(self) -> FailureKind:
        return self.error.kind


ValidationOutcome = Union[ValidationSuccess, ValidationFailure]


@dataclass(frozen=True)
class Attempt:
    """One build -> request -> normalize -> validate cycle."""

    number: int
    prompt: str
    raw: str
    normalized: str
    outcome: ValidationOutcome

    # Error description fed into the next prompt; empty on success.
    error_message: str = ""


@dataclass
class GenerationResult:
    """The result of one generate call."""

    # Whether any attempt produced conforming output.
    success: bool

    # Validated output: a single item for scalar input, a list for list input,
    # or [] when attempts were exhausted.
    output: Any

    # How many attempts were made.
    attempts: int

    # Raw provider text from the final attempt.
    raw: str

    # Total wall-clock time for all attempts in milliseconds.
    total_latency_ms: float

    # Error description from the final failed attempt.
    error_message: str = ""

    # Every attempt made, in order.
    history: list[Attempt] = field(default_factory=list)


@dataclass
class StrictOutputConfig:
    """Configuration snapshot for one invocation."""

    # Substituted for out-of-vocabulary choices. Empty disables substitution.
    default_response: str = ""

    # Return each item as the list of its values instead of a dict.
    return_values_only: bool = False

    ai_model: str = "gpt-3.5-turbo"

    temperature: float = 0.2

    # Total attempts, first call included.
    max_attempts: int = 3

    # Log prompts, input, and model text for every attempt.
    enable_detailed_logging: bool = False

    # Whether to strip markdown code fences before normalizing.
    strip_markdown: bool = True

    # Callback fired before each retry attempt with the error fed back.
    on_retry: Callable[[str, int], None] | None = None

    # Callback fired when all attempts are exhausted.
    on_exhausted: Callable[[GenerationResult], None] | None = None

    def __post_init__(self) -> None:
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise ValueError(f"max_attempts must be an integer, got {self.max_attempts!r}")
        if self.temperature < 0:
            raise ValueError(f"temperature must be non-negative, got {self.temperature}")
