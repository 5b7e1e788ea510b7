"""Field access over JSON-like records.

A ``FieldPath`` is the accessor used everywhere a field value is pulled out
of a record: blocking keys, similarity fields, identifier projections and
pair projections. Unresolved paths yield ``MISSING`` instead of raising.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Union

from .values import MISSING

PathLike = Union["FieldPath", str, int, Sequence[Union[str, int]], None]


class FieldPath:
    """Immutable path of object keys and array indexes.

    Examples:
        >>> FieldPath("address.city").evaluate({"address": {"city": "Berlin"}})
        'Berlin'
        >>> FieldPath("tags.0").evaluate({"tags": ["a", "b"]})
        'a'
        >>> FieldPath("age").evaluate({"name": "x"})
        MISSING
    """

    __slots__ = ("_segments",)

    def __init__(self, path: PathLike = None) -> None:
        if path is None:
            segments: tuple[str | int, ...] = ()
        elif isinstance(path, FieldPath):
            segments = path.segments
        elif isinstance(path, str):
            segments = tuple(path.split(".")) if path else ()
        elif isinstance(path, int) and not isinstance(path, bool):
            segments = (path,)
        elif isinstance(path, Sequence):
            segments = tuple(path)
        else:
            raise TypeError(f"Cannot build a field path from {type(path).__name__}")
        self._segments = segments

    @classmethod
    def parse(cls, path: PathLike) -> FieldPath:
        """Return ``path`` unchanged if it already is a ``FieldPath``."""
        if isinstance(path, FieldPath):
            return path
        return cls(path)

    @property
    def segments(self) -> tuple[str | int, ...]:
        return self._segments

    @property
    def is_identity(self) -> bool:
        return not self._segments

    def head(self) -> str | int:
        return self._segments[0]

    def tail(self) -> FieldPath:
        return FieldPath(self._segments[1:])

    def evaluate(self, record: Any, context: Any = None) -> Any:
        """Resolve the path against ``record``; ``MISSING`` if it does not resolve.

        ``context`` is accepted for callers that thread an evaluation context
        through; plain field access does not need it.
        """
        current = record
        for segment in self._segments:
            current = _step(current, segment)
            if current is MISSING:
                break
        return current

    __call__ = evaluate

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldPath):
            return NotImplemented
        return self._segments == other._segments

    def __hash__(self) -> int:
        return hash(self._segments)

    def __str__(self) -> str:
        return ".".join(str(segment) for segment in self._segments)

    def __repr__(self) -> str:
        return f"FieldPath({str(self)!r})"


def _step(current: Any, segment: str | int) -> Any:
    if isinstance(current, Mapping):
        return current.get(str(segment), MISSING)
    if isinstance(current, (list, tuple)):
        try:
            index = int(segment)
        except (TypeError, ValueError):
            return MISSING
        if -len(current) <= index < len(current):
            return current[index]
        return MISSING
    return MISSING


def evaluate(record: Any, path: PathLike, context: Any = None) -> Any:
    """Functional form of ``FieldPath.evaluate``."""
    return FieldPath.parse(path).evaluate(record, context)
