"""Record linkage models.

Hot-path structures (bins, candidate pairs) are frozen dataclasses; results
that leave the operator (comparisons, matches, provenance) are Pydantic
models so they serialize cleanly for the surrounding dataflow layer.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, computed_field


# =============================================================================
# Enums
# =============================================================================


class LinkageMode(str, Enum):
    """Whether duplicates are searched within one source or across two."""

    INTRA_SOURCE = "intra_source"  # Deduplication within one collection
    INTER_SOURCE = "inter_source"  # Linkage between two collections


class MissingValuePolicy(str, Enum):
    """How a similarity field treats a value that did not resolve."""

    LOWEST = "lowest"  # Contributes 0.0
    NEUTRAL = "neutral"  # Contributes 0.5
    SKIP = "skip"  # Excluded from aggregation
    ERROR = "error"  # Fails scoring of the pair


# =============================================================================
# Blocking
# =============================================================================


@dataclass(frozen=True)
class Bin:
    """Records of one source sharing a blocking key under one criterion.

    ``members`` holds record indexes in enumeration order; ``key`` is the
    frozen (hashable) blocking key.
    """

    criterion: int
    key: Any
    members: tuple[int, ...]

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_singleton(self) -> bool:
        return len(self.members) == 1


@dataclass(frozen=True)
class CandidatePair:
    """A pair of records worth scoring.

    Intra-source pairs always satisfy ``left_index < right_index`` in bin
    order and never pair a record with itself. Inter-source pairs are
    ordered: ``left`` comes from the first source, ``right`` from the second.
    """

    left_index: int
    right_index: int
    left: Any
    right: Any
    criterion: int = 0
    key: Any = None

    @property
    def indexes(self) -> tuple[int, int]:
        return (self.left_index, self.right_index)


# =============================================================================
# Scoring
# =============================================================================


class FeatureComparison(BaseModel):
    """Result of comparing one field between two records."""

    feature_name: str = Field(description="Name of the compared field(s)")
    metric: str = Field(description="Registered name of the similarity metric")

    value_left: Any = Field(default=None, description="Value from the left record")
    value_right: Any = Field(default=None, description="Value from the right record")

    similarity_score: float | None = Field(
        default=None,
        description="Normalized similarity, None when the field was skipped",
    )
    missing: bool = Field(
        default=False,
        description="Whether either side did not resolve",
    )

    @computed_field
    @property
    def contributes_evidence(self) -> bool:
        """Whether this comparison entered the aggregate score."""
        return self.similarity_score is not None


class Match(BaseModel):
    """A candidate pair accepted as a duplicate."""

    left_index: int
    right_index: int

    score: float = Field(description="Composite similarity, strictly above threshold")
    threshold: float

    value: Any = Field(
        description="Projected output: [id(left), id(right)] or the duplicate projection",
    )

    comparisons: list[FeatureComparison] = Field(default_factory=list)

    criterion: int = Field(default=0, description="Blocking criterion that produced the pair")

    @computed_field
    @property
    def margin(self) -> float:
        """How far the score lies above the threshold."""
        return self.score - self.threshold

    @computed_field
    @property
    def feature_summary(self) -> dict[str, float | None]:
        """Per-feature similarity scores."""
        return {fc.feature_name: fc.similarity_score for fc in self.comparisons}


# =============================================================================
# Provenance and result
# =============================================================================


class LinkageProvenance(BaseModel):
    """Configuration echo and counters for one linkage run."""

    mode: LinkageMode = LinkageMode.INTRA_SOURCE

    threshold: float
    aggregator: str = "mean"
    metrics: list[str] = Field(default_factory=list)
    blocking_criteria: list[list[str]] = Field(
        default_factory=list,
        description="Field paths per criterion (left side)",
    )

    records_left: int = Field(default=0)
    records_right: int = Field(default=0)
    bins_built: int = Field(default=0)
    candidates_generated: int = Field(default=0)
    pairs_failed: int = Field(default=0)
    matches_found: int = Field(default=0)

    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None
    duration_ms: int | None = None

    @computed_field
    @property
    def comparisons_possible(self) -> int:
        """Size of the unblocked comparison space."""
        if self.mode == LinkageMode.INTER_SOURCE:
            return self.records_left * self.records_right
        return self.records_left * (self.records_left - 1) // 2

    def complete(self) -> None:
        self.completed_at = datetime.now(UTC)
        delta = self.completed_at - self.started_at
        self.duration_ms = int(delta.total_seconds() * 1000)


class LinkageResult(BaseModel):
    """Matches of one linkage run with provenance."""

    matches: list[Match] = Field(default_factory=list)
    provenance: LinkageProvenance

    @computed_field
    @property
    def reduction_ratio(self) -> float:
        """Share of the full comparison space avoided by blocking."""
        possible = self.provenance.comparisons_possible
        if possible == 0:
            return 0.0
        return 1 - (self.provenance.candidates_generated / possible)

    @property
    def pairs(self) -> list[tuple[int, int]]:
        """Index pairs of all matches."""
        return [(m.left_index, m.right_index) for m in self.matches]

    @classmethod
    def from_matches(
        cls,
        matches: list[Match],
        provenance: LinkageProvenance,
    ) -> LinkageResult:
        provenance.matches_found = len(matches)
        provenance.complete()
        return cls(matches=matches, provenance=provenance)
