"""
Strict Output

Prompt -> Request -> Normalize -> Validate -> Retry loop that coerces LLM
completions into a caller-declared shape.
Package entry point — re-exports from the component modules.
"""

from .strict_output import (
    StrictOutputGenerator,
    generate_structured_output,
    request_completion,
    stringify_user_input,
)
from .prompt_builder import (
    analyze_format,
    build_prompt,
    format_error_message,
    is_dynamic_key,
    serialize_format,
)
from .validator import (
    normalize_response,
    parse_output,
    process_output_field,
    strip_markdown_fences,
    validate_and_format_output,
    validate_output_item,
)
from ._types import (
    Attempt,
    ChatMessage,
    ExpectedFormat,
    FormatHints,
    GenerationResult,
    LLMProvider,
    LLMRequest,
    LLMResponse,
    MissingFieldError,
    OutputFormatError,
    ParseError,
    ShapeError,
    StrictOutputConfig,
    ValidatedOutputItem,
    ValidationFailure,
    ValidationOutcome,
    ValidationSuccess,
)
from .openai_provider import OpenAIProvider
from .mock_provider import MockProvider, MockProviderConfig

__all__ = [
    "StrictOutputGenerator",
    "generate_structured_output",
    "request_completion",
    "stringify_user_input",
    "analyze_format",
    "build_prompt",
    "format_error_message",
    "is_dynamic_key",
    "serialize_format",
    "normalize_response",
    "parse_output",
    "process_output_field",
    "strip_markdown_fences",
    "validate_and_format_output",
    "validate_output_item",
    "Attempt",
    "ChatMessage",
    "ExpectedFormat",
    "FormatHints",
    "GenerationResult",
    "LLMProvider",
    "LLMRequest",
    "LLMResponse",
    "MissingFieldError",
    "OutputFormatError",
    "ParseError",
    "ShapeError",
    "StrictOutputConfig",
    "ValidatedOutputItem",
    "ValidationFailure",
    "ValidationOutcome",
    "ValidationSuccess",
    "OpenAIProvider",
    "MockProvider",
    "MockProviderConfig",
]
