"""Value model, field access and text helpers."""

from .values import (
    MISSING,
    compare_values,
    distinct_sorted,
    freeze,
    is_missing,
    is_null,
    is_number,
    value_sort_key,
)
from .paths import FieldPath, evaluate

__all__ = [
    # Value model
    "MISSING",
    "compare_values",
    "distinct_sorted",
    "freeze",
    "is_missing",
    "is_null",
    "is_number",
    "value_sort_key",
    # Field access
    "FieldPath",
    "evaluate",
]
