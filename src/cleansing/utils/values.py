"""Value model helpers for JSON-like records.

Records are plain Python values: dict (object), list/tuple (array), str,
int/float (number), bool and None (the explicit null node). Paths that do
not resolve yield ``MISSING``, which is distinct from an explicit null.

The ordering defined here is a total, structural order over that model:

    MISSING < null < boolean < number < string < array < object

Numbers follow their natural order, with NaN after all other numbers and
equal only to itself. Arrays compare element-wise then by length; objects
compare their key-sorted ``(key, value)`` items the same way.
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from functools import cmp_to_key
from typing import Any


class _Missing:
    """Sentinel for a value that is absent (not an explicit null)."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

# Type ranks for the total order
_MISSING_RANK = 0
_NULL_RANK = 1
_BOOLEAN_RANK = 2
_NUMBER_RANK = 3
_STRING_RANK = 4
_ARRAY_RANK = 5
_OBJECT_RANK = 6


def is_missing(value: Any) -> bool:
    """Whether a value is the ``MISSING`` sentinel."""
    return value is MISSING


def is_null(value: Any) -> bool:
    """Whether a value is the explicit null node."""
    return value is None


def is_number(value: Any) -> bool:
    """Numbers exclude booleans even though ``bool`` subclasses ``int``."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def type_rank(value: Any) -> int:
    """Position of a value's type in the total order."""
    if value is MISSING:
        return _MISSING_RANK
    if value is None:
        return _NULL_RANK
    if isinstance(value, bool):
        return _BOOLEAN_RANK
    if isinstance(value, (int, float)):
        return _NUMBER_RANK
    if isinstance(value, str):
        return _STRING_RANK
    if isinstance(value, Mapping):
        return _OBJECT_RANK
    if isinstance(value, (list, tuple)):
        return _ARRAY_RANK
    raise TypeError(f"Unsupported value type: {type(value).__name__}")


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def _compare_numbers(a: Any, b: Any) -> int:
    # NaN sorts after every other number and equals only NaN
    a_nan, b_nan = _is_nan(a), _is_nan(b)
    if a_nan or b_nan:
        return _cmp(a_nan, b_nan)
    return _cmp(a, b)


def _compare_sequences(a: Sequence[Any], b: Sequence[Any]) -> int:
    for left, right in zip(a, b):
        result = compare_values(left, right)
        if result:
            return result
    return _cmp(len(a), len(b))


def _sorted_items(obj: Mapping[str, Any]) -> list[tuple[str, Any]]:
    return sorted(obj.items(), key=lambda item: item[0])


def compare_values(a: Any, b: Any) -> int:
    """Compare two values structurally; returns -1, 0 or 1.

    Stateless, so it can be passed to any sort or used concurrently.
    """
    rank_a, rank_b = type_rank(a), type_rank(b)
    if rank_a != rank_b:
        return _cmp(rank_a, rank_b)

    if rank_a in (_MISSING_RANK, _NULL_RANK):
        return 0
    if rank_a == _NUMBER_RANK:
        return _compare_numbers(a, b)
    if rank_a in (_BOOLEAN_RANK, _STRING_RANK):
        return _cmp(a, b)
    if rank_a == _ARRAY_RANK:
        return _compare_sequences(a, b)

    items_a, items_b = _sorted_items(a), _sorted_items(b)
    for (key_a, value_a), (key_b, value_b) in zip(items_a, items_b):
        result = _cmp(key_a, key_b) or compare_values(value_a, value_b)
        if result:
            return result
    return _cmp(len(items_a), len(items_b))


value_sort_key = cmp_to_key(compare_values)


def freeze(value: Any) -> Any:
    """Hashable, type-tagged canonical form of a value.

    ``freeze(a) == freeze(b)`` exactly when ``compare_values(a, b) == 0``.
    """
    rank = type_rank(value)
    if rank in (_MISSING_RANK, _NULL_RANK):
        return (rank,)
    if _is_nan(value):
        return (rank, "nan")
    if rank in (_BOOLEAN_RANK, _NUMBER_RANK, _STRING_RANK):
        return (rank, value)
    if rank == _ARRAY_RANK:
        return (rank, tuple(freeze(item) for item in value))
    return (rank, tuple((key, freeze(item)) for key, item in _sorted_items(value)))


def distinct_sorted(values: Iterable[Any]) -> list[Any]:
    """Distinct values ordered by ``compare_values``.

    Structurally equal values collapse into one regardless of input order.
    """
    ordered = sorted(values, key=value_sort_key)
    distinct: list[Any] = []
    for value in ordered:
        if not distinct or compare_values(distinct[-1], value) != 0:
            distinct.append(value)
    return distinct
