"""Threshold decision and output projection for candidate pairs."""
from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from cleansing.exceptions import ConfigurationError
from cleansing.utils.paths import FieldPath, PathLike
from cleansing.utils.values import MISSING

from .models import CandidatePair, FeatureComparison, Match

_SIDES = {"0": 0, "1": 1, "left": 0, "right": 1}


def _present(value: Any) -> Any:
    """Unresolved fields surface as null in projected output."""
    return None if value is MISSING else value


class PairProjection:
    """Derives an output value from a matched pair.

    The template is a nested structure of dicts and lists whose string
    leaves are field paths; the first segment of each path selects the side
    (``0``/``left`` or ``1``/``right``). Non-string leaves are copied as-is.

    Example:
        >>> projection = PairProjection({
        ...     "names": ["0.first name", "1.first name"],
        ...     "ids": ["0.id", "1.id"],
        ... })
        >>> projection({"id": 0, "first name": "a"}, {"id": 5, "first name": "b"})
        {'names': ['a', 'b'], 'ids': [0, 5]}
    """

    def __init__(self, template: Any) -> None:
        self.template = template
        self._compiled = self._compile(template)

    @classmethod
    def _compile(cls, node: Any) -> Callable[[Any, Any], Any]:
        if isinstance(node, str):
            return cls._compile_path(node)
        if isinstance(node, Mapping):
            compiled = {str(key): cls._compile(value) for key, value in node.items()}
            return lambda left, right: {key: fn(left, right) for key, fn in compiled.items()}
        if isinstance(node, Sequence):
            compiled_items = [cls._compile(item) for item in node]
            return lambda left, right: [fn(left, right) for fn in compiled_items]
        return lambda left, right: node

    @staticmethod
    def _compile_path(raw: str) -> Callable[[Any, Any], Any]:
        path = FieldPath(raw)
        if path.is_identity or str(path.head()) not in _SIDES:
            raise ConfigurationError(
                reason=f"Projection path {raw!r} must start with a side selector (0/1/left/right)",
                option="duplicate_projection",
            )
        side = _SIDES[str(path.head())]
        field = path.tail()
        if side == 0:
            return lambda left, right: _present(field.evaluate(left))
        return lambda left, right: _present(field.evaluate(right))

    def __call__(self, left: Any, right: Any) -> Any:
        return self._compiled(left, right)

    def __repr__(self) -> str:
        return f"PairProjection({self.template!r})"


class MatchDecider:
    """Accepts pairs whose score is strictly greater than the threshold.

    A score equal to the threshold is not a match.
    """

    def __init__(
        self,
        threshold: float,
        id_projections: Sequence[PathLike | None] = (None, None),
        duplicate_projection: PairProjection | Callable[[Any, Any], Any] | Any | None = None,
    ) -> None:
        """Initialize the decider.

        Args:
            threshold: Strict lower bound for a match
            id_projections: Field path per source representing a matched
                record; ``None`` keeps the whole record
            duplicate_projection: Replaces the default ``[id(left), id(right)]``
                output; a ``PairProjection``, a callable ``(left, right)`` or
                a projection template

        Raises:
            ConfigurationError: for a non-finite threshold or a wrong number
                of identifier projections
        """
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not math.isfinite(threshold):
            raise ConfigurationError(
                reason=f"Threshold must be a finite number, got {threshold!r}",
                option="threshold",
            )
        if len(id_projections) != 2:
            raise ConfigurationError(
                reason=f"Expected one identifier projection per source, got {len(id_projections)}",
                option="id_projection",
            )
        self.threshold = float(threshold)
        self.id_projections = tuple(
            FieldPath.parse(path) if path is not None else FieldPath() for path in id_projections
        )
        if duplicate_projection is not None and not callable(duplicate_projection):
            duplicate_projection = PairProjection(duplicate_projection)
        self.duplicate_projection = duplicate_projection

    def accepts(self, score: float) -> bool:
        return score > self.threshold

    def project(self, pair: CandidatePair) -> Any:
        """Output value of a matched pair."""
        if self.duplicate_projection is not None:
            return self.duplicate_projection(pair.left, pair.right)
        left_id, right_id = self.id_projections
        return [_present(left_id.evaluate(pair.left)), _present(right_id.evaluate(pair.right))]

    def decide(
        self,
        pair: CandidatePair,
        score: float,
        comparisons: list[FeatureComparison] | None = None,
    ) -> Match | None:
        """Return a ``Match`` iff ``score > threshold``."""
        if not self.accepts(score):
            return None
        return Match(
            left_index=pair.left_index,
            right_index=pair.right_index,
            score=score,
            threshold=self.threshold,
            value=self.project(pair),
            comparisons=comparisons or [],
            criterion=pair.criterion,
        )
