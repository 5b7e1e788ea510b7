"""Similarity metrics and the composite similarity function.

Metrics and aggregators live in name-keyed registries so configurations can
refer to them by name and new ones can be added without touching the call
sites that score pairs.

Metric families:
- String: Levenshtein, Damerau-Levenshtein and Jaro-Winkler (rapidfuzz),
  Jaccard over whitespace tokens, Soundex agreement (jellyfish), exact equality
- Numeric: difference within a tolerance window
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any, ClassVar

import jellyfish
from rapidfuzz.distance import DamerauLevenshtein, JaroWinkler, Levenshtein

from cleansing.exceptions import ConfigurationError, MetricTypeError, MissingValueError
from cleansing.utils.normalize import as_text, normalize_text, tokenize
from cleansing.utils.paths import FieldPath, PathLike
from cleansing.utils.values import MISSING, compare_values, is_number

from .models import FeatureComparison, MissingValuePolicy

NEUTRAL_SCORE = 0.5


# =============================================================================
# Metrics
# =============================================================================


class SimilarityMetric(ABC):
    """Scores one pair of field values; 1.0 means identical."""

    name: ClassVar[str] = "metric"

    @abstractmethod
    def compare(self, left: Any, right: Any) -> float:
        """Return a normalized similarity in [0, 1]."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


_METRICS: dict[str, type[SimilarityMetric]] = {}


def register_metric(name: str) -> Callable[[type[SimilarityMetric]], type[SimilarityMetric]]:
    """Class decorator adding a metric to the registry under ``name``."""

    def decorator(cls: type[SimilarityMetric]) -> type[SimilarityMetric]:
        cls.name = name
        _METRICS[name] = cls
        return cls

    return decorator


def available_metrics() -> list[str]:
    return sorted(_METRICS)


def create_metric(name: str, **params: Any) -> SimilarityMetric:
    """Instantiate a registered metric.

    Raises:
        ConfigurationError: for unknown names or invalid parameters
    """
    try:
        cls = _METRICS[name]
    except KeyError:
        raise ConfigurationError(
            reason=f"Unknown similarity metric {name!r}; available: {', '.join(available_metrics())}",
            option="metric",
        ) from None
    try:
        return cls(**params)
    except TypeError as e:
        raise ConfigurationError(
            reason=f"Invalid parameters for metric {name!r}: {e}",
            option="metric",
        ) from e


class _TextMetric(SimilarityMetric):
    """Base for metrics over the textual form of scalar values."""

    def __init__(self, case_sensitive: bool = True, strip_punctuation: bool = False) -> None:
        self.case_sensitive = case_sensitive
        self.strip_punctuation = strip_punctuation

    def _text(self, value: Any) -> str:
        text = as_text(value, metric=self.name)
        if self.strip_punctuation:
            text = normalize_text(text, strip_punctuation=True)
        return text if self.case_sensitive else text.lower()

    def compare(self, left: Any, right: Any) -> float:
        return self._similarity(self._text(left), self._text(right))

    @abstractmethod
    def _similarity(self, left: str, right: str) -> float:
        ...


@register_metric("levenshtein")
class LevenshteinSimilarity(_TextMetric):
    """``1 - distance / max(len)``; two empty strings are identical."""

    def _similarity(self, left: str, right: str) -> float:
        return Levenshtein.normalized_similarity(left, right)


@register_metric("damerau_levenshtein")
class DamerauLevenshteinSimilarity(_TextMetric):
    """Edit similarity counting adjacent transpositions as one edit."""

    def _similarity(self, left: str, right: str) -> float:
        return DamerauLevenshtein.normalized_similarity(left, right)


@register_metric("jaro_winkler")
class JaroWinklerSimilarity(_TextMetric):
    """Jaro-Winkler similarity, favouring common prefixes (names)."""

    def __init__(
        self,
        case_sensitive: bool = True,
        strip_punctuation: bool = False,
        prefix_weight: float = 0.1,
    ) -> None:
        super().__init__(case_sensitive=case_sensitive, strip_punctuation=strip_punctuation)
        self.prefix_weight = prefix_weight

    def _similarity(self, left: str, right: str) -> float:
        return JaroWinkler.normalized_similarity(left, right, prefix_weight=self.prefix_weight)


@register_metric("jaccard")
class JaccardSimilarity(_TextMetric):
    """Token-set overlap ``|A & B| / |A | B|`` over whitespace tokens."""

    def _similarity(self, left: str, right: str) -> float:
        tokens_left = tokenize(left)
        tokens_right = tokenize(right)
        union = tokens_left | tokens_right
        if not union:
            return 1.0
        return len(tokens_left & tokens_right) / len(union)


@register_metric("soundex")
class SoundexSimilarity(_TextMetric):
    """1.0 when both values share a Soundex code, else 0.0."""

    def _similarity(self, left: str, right: str) -> float:
        return 1.0 if jellyfish.soundex(left) == jellyfish.soundex(right) else 0.0


@register_metric("exact")
class ExactSimilarity(SimilarityMetric):
    """1.0 for structurally equal values of any type, else 0.0."""

    def compare(self, left: Any, right: Any) -> float:
        return 1.0 if compare_values(left, right) == 0 else 0.0


@register_metric("numeric_difference")
class NumericDifference(SimilarityMetric):
    """``max(0, 1 - |a - b| / tolerance)``, clamped to [0, 1].

    ``tolerance`` is the largest meaningful difference; values further
    apart score 0.0.
    """

    def __init__(self, tolerance: float = 1.0) -> None:
        if not is_number(tolerance) or not math.isfinite(tolerance) or tolerance <= 0:
            raise ConfigurationError(
                reason=f"numeric_difference needs a positive tolerance, got {tolerance!r}",
                option="tolerance",
            )
        self.tolerance = float(tolerance)

    def compare(self, left: Any, right: Any) -> float:
        if not is_number(left) or not is_number(right):
            raise MetricTypeError(
                reason=(
                    f"numeric_difference expects numbers, got "
                    f"{type(left).__name__} and {type(right).__name__}"
                ),
                metric=self.name,
            )
        score = 1 - abs(left - right) / self.tolerance
        return min(1.0, max(0.0, score))

    def __repr__(self) -> str:
        return f"NumericDifference(tolerance={self.tolerance})"


# =============================================================================
# Field binding
# =============================================================================


def _absent(value: Any) -> bool:
    return value is MISSING or value is None


class FieldSimilarity:
    """A metric bound to a field path on each side of a pair.

    An unresolved field and an explicit null are both absent values and go
    through the missing value policy instead of the metric.
    """

    def __init__(
        self,
        metric: SimilarityMetric | str,
        left_path: PathLike,
        right_path: PathLike | None = None,
        missing: MissingValuePolicy | str = MissingValuePolicy.LOWEST,
        name: str | None = None,
        **params: Any,
    ) -> None:
        if isinstance(metric, str):
            metric = create_metric(metric, **params)
        elif params:
            raise ConfigurationError(
                reason="Metric parameters are only accepted with a metric name",
                option="metric",
            )
        self.metric = metric
        self.left_path = FieldPath.parse(left_path)
        self.right_path = FieldPath.parse(right_path) if right_path is not None else self.left_path
        try:
            self.missing = MissingValuePolicy(missing)
        except ValueError:
            raise ConfigurationError(
                reason=f"Unknown missing value policy {missing!r}",
                option="missing",
            ) from None
        if name is None:
            name = str(self.left_path)
            if self.right_path != self.left_path:
                name = f"{self.left_path}/{self.right_path}"
        self.name = name

    def compare(self, left_record: Any, right_record: Any) -> FeatureComparison:
        """Score the bound fields of two records.

        Raises:
            MissingValueError: when a side is missing under the ``error`` policy
            MetricTypeError: when the metric cannot handle the value types
        """
        value_left = self.left_path.evaluate(left_record)
        value_right = self.right_path.evaluate(right_record)

        if _absent(value_left) or _absent(value_right):
            return self._missing(value_left, value_right)

        return FeatureComparison(
            feature_name=self.name,
            metric=self.metric.name,
            value_left=value_left,
            value_right=value_right,
            similarity_score=self.metric.compare(value_left, value_right),
        )

    def _missing(self, value_left: Any, value_right: Any) -> FeatureComparison:
        if self.missing == MissingValuePolicy.ERROR:
            raise MissingValueError(
                reason=f"Field {self.name!r} is missing",
                metric=self.metric.name,
            )
        score: float | None
        if self.missing == MissingValuePolicy.SKIP:
            score = None
        elif self.missing == MissingValuePolicy.NEUTRAL:
            score = NEUTRAL_SCORE
        else:
            score = 0.0
        return FeatureComparison(
            feature_name=self.name,
            metric=self.metric.name,
            value_left=None if value_left is MISSING else value_left,
            value_right=None if value_right is MISSING else value_right,
            similarity_score=score,
            missing=True,
        )

    def __repr__(self) -> str:
        return f"FieldSimilarity({self.metric!r}, {str(self.left_path)!r}, {str(self.right_path)!r})"


# =============================================================================
# Aggregators
# =============================================================================

Aggregator = Callable[[Sequence[float], Sequence[float] | None], float]

_AGGREGATORS: dict[str, Aggregator] = {}


def register_aggregator(name: str) -> Callable[[Aggregator], Aggregator]:
    """Function decorator adding an aggregator to the registry."""

    def decorator(func: Aggregator) -> Aggregator:
        _AGGREGATORS[name] = func
        return func

    return decorator


def available_aggregators() -> list[str]:
    return sorted(_AGGREGATORS)


@register_aggregator("mean")
def mean(scores: Sequence[float], weights: Sequence[float] | None = None) -> float:
    return math.fsum(scores) / len(scores)


@register_aggregator("min")
def minimum(scores: Sequence[float], weights: Sequence[float] | None = None) -> float:
    return min(scores)


@register_aggregator("max")
def maximum(scores: Sequence[float], weights: Sequence[float] | None = None) -> float:
    return max(scores)


@register_aggregator("weighted_mean")
def weighted_mean(scores: Sequence[float], weights: Sequence[float] | None = None) -> float:
    if weights is None:
        return mean(scores)
    total = math.fsum(weights)
    if total <= 0:
        return mean(scores)
    return math.fsum(s * w for s, w in zip(scores, weights)) / total


# =============================================================================
# Composite similarity
# =============================================================================


class CompositeSimilarity:
    """Combines field similarities into one score per record pair.

    Example:
        >>> similarity = CompositeSimilarity([
        ...     FieldSimilarity("levenshtein", "first name"),
        ...     FieldSimilarity("jaccard", "last name"),
        ...     FieldSimilarity("numeric_difference", "age", tolerance=10),
        ... ])
        >>> similarity.score(record_a, record_b)
    """

    def __init__(
        self,
        fields: Sequence[FieldSimilarity],
        aggregator: str | Aggregator = "mean",
        weights: Sequence[float] | None = None,
        empty_score: float | None = None,
    ) -> None:
        """Initialize the composite function.

        Args:
            fields: Ordered field similarities
            aggregator: Registered aggregator name or a callable
                ``(scores, weights) -> float``
            weights: One weight per field, for weighted aggregators
            empty_score: Score for a pair with no contributing field; must be
                set explicitly to allow an empty field list

        Raises:
            ConfigurationError: on an empty field list without ``empty_score``,
                an unknown aggregator or a weight count mismatch
        """
        self.fields = list(fields)
        if not self.fields and empty_score is None:
            raise ConfigurationError(
                reason="A composite similarity needs at least one field or an explicit empty_score",
                option="metrics",
            )

        if isinstance(aggregator, str):
            try:
                self._aggregate = _AGGREGATORS[aggregator]
            except KeyError:
                raise ConfigurationError(
                    reason=(
                        f"Unknown aggregator {aggregator!r}; available: "
                        f"{', '.join(available_aggregators())}"
                    ),
                    option="aggregator",
                ) from None
            self.aggregator_name = aggregator
        else:
            self._aggregate = aggregator
            self.aggregator_name = getattr(aggregator, "__name__", "custom")

        if weights is not None:
            weights = [float(w) for w in weights]
            if len(weights) != len(self.fields):
                raise ConfigurationError(
                    reason=f"Expected {len(self.fields)} weight(s), got {len(weights)}",
                    option="weights",
                )
            if any(w < 0 for w in weights):
                raise ConfigurationError(reason="Weights must not be negative", option="weights")
        elif self.aggregator_name == "weighted_mean":
            raise ConfigurationError(
                reason="The weighted_mean aggregator needs one weight per metric",
                option="weights",
            )
        self.weights = weights
        self.empty_score = empty_score

    @property
    def metric_names(self) -> list[str]:
        return [f.metric.name for f in self.fields]

    def evaluate(self, left: Any, right: Any) -> tuple[float, list[FeatureComparison]]:
        """Score a pair and report each field's contribution.

        Raises:
            ScoringError: if any field fails; the whole pair fails with it
        """
        comparisons = [f.compare(left, right) for f in self.fields]

        scores: list[float] = []
        weights: list[float] | None = [] if self.weights is not None else None
        for index, comparison in enumerate(comparisons):
            if comparison.similarity_score is None:
                continue
            scores.append(comparison.similarity_score)
            if weights is not None:
                weights.append(self.weights[index])

        if not scores:
            return (self.empty_score if self.empty_score is not None else 0.0), comparisons
        return float(self._aggregate(scores, weights)), comparisons

    def score(self, left: Any, right: Any) -> float:
        return self.evaluate(left, right)[0]

    __call__ = score
