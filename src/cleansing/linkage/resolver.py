"""Record linkage runner: blocking, candidate pairs, scoring and decision.

Pipeline:
1. Partitioning: group records into bins per blocking criterion
2. Candidate generation: pairs within bins (or across matching bins)
3. Scoring: composite similarity over the configured fields
4. Decision: strict threshold, with identifier / duplicate projection

Every step is a pure function of its inputs and the configuration fixed at
construction, so one instance may serve many partitions concurrently.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Any

import structlog

from cleansing.exceptions import ScoringError

from .candidates import inter_source_pairs, intra_source_pairs
from .decider import MatchDecider
from .models import (
    CandidatePair,
    FeatureComparison,
    LinkageMode,
    LinkageProvenance,
    LinkageResult,
    Match,
)
from .partitioning import PartitioningStrategy
from .similarity import CompositeSimilarity

logger = structlog.get_logger(__name__)


class RecordLinkage:
    """Finds duplicate records within one source or across two.

    Example:
        >>> linkage = RecordLinkage(
        ...     partitioning=PartitioningStrategy([["first name"], ["last name"]]),
        ...     similarity=CompositeSimilarity([...]),
        ...     decider=MatchDecider(threshold=0.5, id_projections=("id", "id")),
        ... )
        >>> result = linkage.run(persons)
        >>> for match in result.matches:
        ...     print(match.value, match.score)
    """

    def __init__(
        self,
        partitioning: PartitioningStrategy,
        similarity: CompositeSimilarity,
        decider: MatchDecider,
    ) -> None:
        self.partitioning = partitioning
        self.similarity = similarity
        self.decider = decider

    @property
    def threshold(self) -> float:
        return self.decider.threshold

    def score_pair(self, pair: CandidatePair) -> tuple[float, list[FeatureComparison]]:
        """Composite score of one candidate pair.

        Raises:
            ScoringError: if the pair cannot be scored
        """
        return self.similarity.evaluate(pair.left, pair.right)

    def decide_pairs(
        self,
        pairs: Iterable[CandidatePair],
        provenance: LinkageProvenance | None = None,
    ) -> Iterator[Match]:
        """Score and decide candidate pairs; failed pairs are logged and skipped."""
        for pair in pairs:
            if provenance is not None:
                provenance.candidates_generated += 1
            try:
                score, comparisons = self.score_pair(pair)
            except ScoringError as e:
                if provenance is not None:
                    provenance.pairs_failed += 1
                logger.warning(
                    "pair_scoring_failed",
                    left_index=pair.left_index,
                    right_index=pair.right_index,
                    metric=e.metric,
                    reason=e.reason,
                )
                continue
            match = self.decider.decide(pair, score, comparisons)
            if match is not None:
                yield match

    def link(
        self,
        records: Sequence[Any],
        provenance: LinkageProvenance | None = None,
    ) -> Iterator[Match]:
        """Intra-source linkage: duplicates within ``records``."""
        bins = self.partitioning.bins(records)
        if provenance is not None:
            provenance.bins_built += len(bins)
        pairs = intra_source_pairs(records, self.partitioning, bins=bins)
        yield from self.decide_pairs(pairs, provenance)

    def link_sources(
        self,
        left: Sequence[Any],
        right: Sequence[Any],
        provenance: LinkageProvenance | None = None,
    ) -> Iterator[Match]:
        """Inter-source linkage: records of ``left`` matching records of ``right``."""
        left_bins = self.partitioning.bins(left, side=0)
        right_bins = self.partitioning.bins(right, side=1)
        if provenance is not None:
            provenance.bins_built += len(left_bins) + len(right_bins)
        pairs = inter_source_pairs(
            left, right, self.partitioning, left_bins=left_bins, right_bins=right_bins
        )
        yield from self.decide_pairs(pairs, provenance)

    def _provenance(self, mode: LinkageMode, left: Sequence[Any], right: Sequence[Any] | None) -> LinkageProvenance:
        return LinkageProvenance(
            mode=mode,
            threshold=self.threshold,
            aggregator=self.similarity.aggregator_name,
            metrics=self.similarity.metric_names,
            blocking_criteria=self.partitioning.describe(),
            records_left=len(left),
            records_right=len(right) if right is not None else 0,
        )

    def run(
        self,
        records: Sequence[Any],
        right: Sequence[Any] | None = None,
    ) -> LinkageResult:
        """Run linkage to completion and return matches with provenance.

        Args:
            records: The only source (intra-source) or the left source
            right: The right source; enables inter-source linkage

        Returns:
            LinkageResult with matches in generation order
        """
        mode = LinkageMode.INTRA_SOURCE if right is None else LinkageMode.INTER_SOURCE
        provenance = self._provenance(mode, records, right)

        logger.info(
            "linkage_started",
            mode=mode.value,
            records_left=provenance.records_left,
            records_right=provenance.records_right,
            threshold=self.threshold,
        )

        if right is None:
            matches = list(self.link(records, provenance))
        else:
            matches = list(self.link_sources(records, right, provenance))

        result = LinkageResult.from_matches(matches, provenance)

        logger.info(
            "linkage_completed",
            mode=mode.value,
            bins=provenance.bins_built,
            candidates=provenance.candidates_generated,
            failed=provenance.pairs_failed,
            matches=provenance.matches_found,
            duration_ms=provenance.duration_ms,
        )
        return result
