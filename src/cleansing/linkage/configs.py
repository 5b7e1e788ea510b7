"""Declarative configuration for record linkage.

Describes blocking criteria, similarity fields, aggregation, threshold and
projections, and builds a ready-to-run ``RecordLinkage`` from them.

Example (YAML):

    blocking:
      left: [["first name"], ["last name"]]
    metrics:
      - {metric: levenshtein, left: first name}
      - {metric: jaccard, left: last name}
      - {metric: numeric_difference, left: age, tolerance: 10}
    threshold: 0.5
    id_projection: [id, id]
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from cleansing.exceptions import ConfigurationError

from .decider import MatchDecider
from .models import MissingValuePolicy
from .partitioning import PartitioningStrategy
from .resolver import RecordLinkage
from .similarity import CompositeSimilarity, FieldSimilarity

PathSpec = str | list[str | int]


class MetricConfig(BaseModel):
    """One similarity field: a metric applied to a path on each side."""

    metric: str = Field(description="Registered metric name")
    left: PathSpec = Field(description="Path on the left record")
    right: PathSpec | None = Field(
        default=None,
        description="Path on the right record if different",
    )
    tolerance: float | None = Field(
        default=None,
        description="Largest meaningful difference (numeric_difference)",
    )
    missing: MissingValuePolicy = Field(
        default=MissingValuePolicy.LOWEST,
        description="Treatment of unresolved or null fields",
    )
    name: str | None = Field(default=None, description="Feature name in reports")
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra metric constructor parameters",
    )

    def build(self) -> FieldSimilarity:
        params = dict(self.params)
        if self.tolerance is not None:
            params["tolerance"] = self.tolerance
        return FieldSimilarity(
            self.metric,
            self.left,
            self.right,
            missing=self.missing,
            name=self.name,
            **params,
        )


class BlockingConfig(BaseModel):
    """Blocking criteria; several criteria combine with union semantics."""

    left: list[list[PathSpec]] = Field(
        default_factory=lambda: [[]],
        description="Criteria for the first (or only) source",
    )
    right: list[list[PathSpec]] | None = Field(
        default=None,
        description="Criteria for the second source when field names differ",
    )

    @field_validator("left", "right", mode="before")
    @classmethod
    def _wrap_single_paths(cls, value: Any) -> Any:
        """Accept ``["a", "b"]`` as two single-field criteria."""
        if isinstance(value, list):
            return [[item] if isinstance(item, str) else item for item in value]
        return value

    def build(self) -> PartitioningStrategy:
        return PartitioningStrategy(self.left, self.right)


class LinkageConfig(BaseModel):
    """Complete record linkage configuration."""

    blocking: BlockingConfig = Field(default_factory=BlockingConfig)
    metrics: list[MetricConfig] = Field(default_factory=list)

    aggregator: str = Field(default="mean", description="Registered aggregator name")
    weights: list[float] | None = Field(default=None, description="Per-metric weights")
    empty_score: float | None = Field(
        default=None,
        description="Score when no metric contributes; required for an empty metric list",
    )

    threshold: float | None = Field(
        default=None,
        description="Strict lower bound for a match; falls back to the process default",
    )

    id_projection: list[PathSpec | None] = Field(
        default_factory=lambda: [None, None],
        description="Identifier path per source; null keeps the whole record",
    )
    duplicate_projection: Any = Field(
        default=None,
        description="Template over the matched pair replacing [id(left), id(right)]",
    )

    def build(self, default_threshold: float | None = None) -> RecordLinkage:
        """Build the linkage operator.

        Args:
            default_threshold: Used when the configuration names no threshold

        Raises:
            ConfigurationError: for any inconsistency, before records are read
        """
        threshold = self.threshold if self.threshold is not None else default_threshold
        if threshold is None:
            raise ConfigurationError(reason="No match threshold configured", option="threshold")

        similarity = CompositeSimilarity(
            [metric.build() for metric in self.metrics],
            aggregator=self.aggregator,
            weights=self.weights,
            empty_score=self.empty_score,
        )
        decider = MatchDecider(
            threshold=threshold,
            id_projections=self.id_projection,
            duplicate_projection=self.duplicate_projection,
        )
        return RecordLinkage(
            partitioning=self.blocking.build(),
            similarity=similarity,
            decider=decider,
        )
