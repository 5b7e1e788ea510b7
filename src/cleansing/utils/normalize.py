"""Text normalization used by the string similarity metrics.

Keeps string handling in one place so every metric sees the same
representation of a field value.
"""

from __future__ import annotations

import re
from typing import Any

from cleansing.exceptions import MetricTypeError
from cleansing.utils.values import is_number

_PUNCTUATION = re.compile(r"[^\w\s\-']")


def as_text(value: Any, metric: str | None = None) -> str:
    """Coerce a scalar field value to text for string comparison.

    Strings pass through; numbers and booleans are stringified. Arrays,
    objects and nulls cannot be compared as text.

    Raises:
        MetricTypeError: if the value is not a scalar.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return str(value)
    raise MetricTypeError(
        reason=f"Expected a string-like value, got {type(value).__name__}",
        metric=metric,
    )


def normalize_text(text: str, keep_case: bool = True, strip_punctuation: bool = False) -> str:
    """Normalize whitespace and optionally case and punctuation.

    Args:
        text: The text to normalize
        keep_case: If False, lowercase the result
        strip_punctuation: If True, replace punctuation (except hyphens and
            apostrophes) with spaces

    Returns:
        Normalized text
    """
    if not text:
        return ""

    result = text
    if strip_punctuation:
        result = _PUNCTUATION.sub(" ", result)

    result = " ".join(result.split())

    if not keep_case:
        result = result.lower()

    return result


def tokenize(text: str, keep_case: bool = True) -> set[str]:
    """Whitespace token set of a text."""
    return set(normalize_text(text, keep_case=keep_case).split())
