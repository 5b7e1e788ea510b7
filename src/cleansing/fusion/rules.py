"""Fusion rules: consolidate a cluster of duplicate values into one.

Every rule implements ``fuse(values, weights)`` where ``values[i]`` comes
from a source of reliability ``weights[i]``. Rules are registered by name so
engines and configurations can refer to them without new dispatch code.

Explicit nulls (``None``) are data ("this source reported null"), not
errors: rules drop them and never fail on an empty remainder.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any, ClassVar

from cleansing.exceptions import ConfigurationError, FusionError
from cleansing.utils.values import distinct_sorted, freeze, is_number, value_sort_key


def _non_null(values: Sequence[Any], weights: Sequence[float]) -> list[tuple[Any, float]]:
    return [(value, weight) for value, weight in zip(values, weights) if value is not None]


def _best(candidates: list[tuple[Any, float]]) -> Any:
    """Highest-scored value; ties go to the value first in canonical order."""
    ordered = sorted(candidates, key=lambda item: value_sort_key(item[0]))
    best_value, best_score = ordered[0]
    for value, score in ordered[1:]:
        if score > best_score:
            best_value, best_score = value, score
    return best_value


class FusionRule(ABC):
    """Consolidates the values of one field (or whole records)."""

    name: ClassVar[str] = "rule"

    @abstractmethod
    def fuse(self, values: Sequence[Any], weights: Sequence[float]) -> Any:
        """Return the consolidated value."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


_RULES: dict[str, type[FusionRule]] = {}


def register_rule(name: str) -> Callable[[type[FusionRule]], type[FusionRule]]:
    """Class decorator adding a fusion rule to the registry under ``name``."""

    def decorator(cls: type[FusionRule]) -> type[FusionRule]:
        cls.name = name
        _RULES[name] = cls
        return cls

    return decorator


def available_rules() -> list[str]:
    return sorted(_RULES)


def create_rule(name: str, **params: Any) -> FusionRule:
    """Instantiate a registered rule.

    Raises:
        ConfigurationError: for unknown names or invalid parameters
    """
    try:
        cls = _RULES[name]
    except KeyError:
        raise ConfigurationError(
            reason=f"Unknown fusion rule {name!r}; available: {', '.join(available_rules())}",
            option="rules",
        ) from None
    try:
        return cls(**params)
    except TypeError as e:
        raise ConfigurationError(
            reason=f"Invalid parameters for fusion rule {name!r}: {e}",
            option="rules",
        ) from e


@register_rule("merge_distinct")
class MergeDistinctRule(FusionRule):
    """Distinct non-null values as a list in canonical order.

    Structurally equal values collapse into one, and the result is the same
    for every permutation of the input. All-null input yields ``[]``.
    """

    def fuse(self, values: Sequence[Any], weights: Sequence[float]) -> list[Any]:
        return distinct_sorted(value for value in values if value is not None)


@register_rule("most_weighted")
class MostWeightedRule(FusionRule):
    """The non-null value from the most reliable source."""

    def fuse(self, values: Sequence[Any], weights: Sequence[float]) -> Any:
        candidates = _non_null(values, weights)
        if not candidates:
            return None
        return _best(candidates)


@register_rule("voting")
class VotingRule(FusionRule):
    """The non-null value with the highest total weight across sources."""

    def fuse(self, values: Sequence[Any], weights: Sequence[float]) -> Any:
        tally: dict[Any, list[Any]] = {}
        for value, weight in _non_null(values, weights):
            entry = tally.setdefault(freeze(value), [value, 0.0])
            entry[1] += weight
        if not tally:
            return None
        return _best([(value, total) for value, total in tally.values()])


@register_rule("weighted_average")
class WeightedAverageRule(FusionRule):
    """Weighted mean of numeric values; plain mean if weights sum to zero."""

    def fuse(self, values: Sequence[Any], weights: Sequence[float]) -> float | None:
        candidates = _non_null(values, weights)
        if not candidates:
            return None
        for value, _ in candidates:
            if not is_number(value):
                raise FusionError(
                    reason=f"weighted_average expects numbers, got {type(value).__name__}",
                    rule=self.name,
                )
        total = math.fsum(weight for _, weight in candidates)
        if total == 0:
            return math.fsum(value for value, _ in candidates) / len(candidates)
        return math.fsum(value * weight for value, weight in candidates) / total


@register_rule("longest")
class LongestValueRule(FusionRule):
    """The longest string or array; scalars count as their text length."""

    def fuse(self, values: Sequence[Any], weights: Sequence[float]) -> Any:
        candidates = [
            (value, float(len(value) if isinstance(value, (str, list, tuple)) else len(str(value))))
            for value, _ in _non_null(values, weights)
        ]
        if not candidates:
            return None
        return _best(candidates)


@register_rule("union")
class UnionRule(FusionRule):
    """Distinct non-null values in first-seen order.

    Unlike ``merge_distinct`` the output order follows the input order.
    """

    def fuse(self, values: Sequence[Any], weights: Sequence[float]) -> list[Any]:
        seen: set[Any] = set()
        result: list[Any] = []
        for value in values:
            if value is None:
                continue
            key = freeze(value)
            if key not in seen:
                seen.add(key)
                result.append(value)
        return result
