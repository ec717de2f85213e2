"""
Strict Output — Prompt Construction

Detects structural hints in the expected format and turns them into
formatting directives for the model. On retry, the previous attempt's
error description is appended so the model can correct itself.
"""

from __future__ import annotations

import json
import re

from ._types import ExpectedFormat, FormatHints

__all__ = [
    "serialize_format",
    "analyze_format",
    "is_dynamic_key",
    "build_prompt",
    "format_error_message",
]

_LIST_PATTERN = re.compile(r"\[.*?\]")
_DYNAMIC_PATTERN = re.compile(r"<.*?>")


def serialize_format(expected_format: ExpectedFormat | None) -> str:
    if not expected_format:
        return ""
    return json.dumps(expected_format)


def analyze_format(expected_format: ExpectedFormat | None) -> FormatHints:
    """
    Inspect the serialized format for list fields and <placeholder> slots.
    Pattern matching on the serialized text, not a structural walk.
    """
    text = serialize_format(expected_format)
    return FormatHints(
        has_list_field=bool(_LIST_PATTERN.search(text)),
        has_dynamic_field=bool(_DYNAMIC_PATTERN.search(text)),
    )


def is_dynamic_key(key: str) -> bool:
    return bool(_DYNAMIC_PATTERN.search(key))


def build_prompt(
    system_prompt: str,
    expected_format: ExpectedFormat,
    hints: FormatHints,
    is_list_input: bool,
    error_message: str = "",
) -> str:
    """Compose the system instruction sent with every attempt."""
    lines = [
        f"{system_prompt}\n\nOutput Format Instructions:",
        f"Output the following in JSON format: {serialize_format(expected_format)}.",
        "Avoid quotation marks or escape characters (\\) in the output fields.",
    ]

    if hints.has_list_field:
        lines.append("If an output field is a list, output it as an array of objects.")
    if hints.has_dynamic_field:
        lines.append(
            "Replace content enclosed by < and > with appropriate generated content. "
            "For example, '<location>' should be replaced with a specific location like 'the garden'."
        )
    if is_list_input:
        lines.append("For each input element, generate a separate JSON object in an array.")

    prompt = "\n".join(lines) + "\n"

    if error_message:
        prompt += f"\nError Message:\n{error_message}\n"

    return prompt


def format_error_message(result: str, error: Exception) -> str:
    """Error description carried into the next attempt's prompt."""
    return f"Result:\n{result}\n\nError Message:\n{error}"
