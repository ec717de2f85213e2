"""
Strict Output — Normalize, Parse, Validate

Turns raw completion text into validated output items. Only top-level keys
and enum-style choice fields are checked; nested formats are not walked.

Validation failures are returned as a ValidationFailure rather than raised,
so the retry loop can feed them back to the model.
"""

from __future__ import annotations

import json
import re
from typing import Any

from ._types import (
    ExpectedFormat,
    MissingFieldError,
    OutputFormatError,
    ParseError,
    ShapeError,
    ValidatedOutputItem,
    ValidationFailure,
    ValidationOutcome,
    ValidationSuccess,
)
from .prompt_builder import is_dynamic_key

__all__ = [
    "strip_markdown_fences",
    "normalize_response",
    "parse_output",
    "validate_and_format_output",
    "validate_output_item",
    "process_output_field",
]

_CONTRACTION_PATTERN = re.compile(r"(\w)\"(\w)")


# --- Normalization ---


def strip_markdown_fences(raw: str) -> str:
    """
    Unwrap a reply fenced as a code block before quote normalization.
    Text without a surrounding fence only loses its outer whitespace.
    """
    trimmed = raw.strip()
    match = re.match(r"^```(?:json|JSON)?\s*\n?([\s\S]*?)\n?\s*```$", trimmed)
    return match.group(1).strip() if match else trimmed


def normalize_response(raw: str | None) -> str:
    """
    Rewrite single-quoted pseudo-JSON into double quotes, then restore
    apostrophes inside words (it's, don't).

    Heuristic: misfires when a structural quote sits between two word
    characters, or when a value legitimately contains a quote.
    """
    text = (raw or "").replace("'", '"')
    return _CONTRACTION_PATTERN.sub(r"\1'\2", text)


# --- Validation ---


def parse_output(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError) as err:
        raise ParseError(f"Invalid JSON: {err}") from err
    except RecursionError as err:
        raise ParseError(f"Invalid JSON: nested too deeply ({err})") from err


def process_output_field(value: Any, choices: list[str], default_response: str = "") -> Any:
    """
    Resolve the value of an enum/choice field.

    A list collapses to its first element. An out-of-vocabulary value is
    replaced by default_response when one is configured. Anything after the
    first colon is dropped ("positive: the tone is upbeat" -> "positive").
    """
    if isinstance(value, list):
        value = value[0] if value else None

    if value not in choices and default_response:
        value = default_response

    if isinstance(value, str) and ":" in value:
        value = value.split(":", 1)[0]

    return value


def validate_output_item(
    item: Any,
    expected_format: ExpectedFormat,
    default_response: str = "",
    return_values_only: bool = False,
) -> ValidatedOutputItem:
    """
    Check one output item against the top-level keys of expected_format.
    Returns a new item; the parsed input is left untouched.

    Raises ShapeError if the item is not an object and MissingFieldError
    if a non-placeholder key is absent.
    """
    if not isinstance(item, dict):
        raise ShapeError(f"Output item is not a json object: {json.dumps(item)}")

    validated = dict(item)

    for key, expected in expected_format.items():
        # <placeholder> keys are generated names, never literally present
        if is_dynamic_key(key):
            continue

        if key not in validated:
            raise MissingFieldError(key)

        if isinstance(expected, list):
            validated[key] = process_output_field(validated[key], expected, default_response)

    if return_values_only:
        return list(validated.values())
    return validated


def validate_and_format_output(
    text: str,
    is_list_input: bool,
    expected_format: ExpectedFormat,
    default_response: str = "",
    return_values_only: bool = False,
) -> ValidationOutcome:
    """
    Parse normalized text and validate every item.

    A list input requires a JSON array; a scalar input's object is wrapped
    into a one-element list so both paths validate the same way.
    """
    try:
        output = parse_output(text)

        if is_list_input and not isinstance(output, list):
            raise ShapeError("Output format not in an array of json")
        if not is_list_input and isinstance(output, list):
            raise ShapeError("Output format is an array but the input was a single prompt")

        items = output if is_list_input else [output]
        validated = [
            validate_output_item(item, expected_format, default_response, return_values_only)
            for item in items
        ]
    except OutputFormatError as err:
        return ValidationFailure(error=err)

    return ValidationSuccess(items=validated)
