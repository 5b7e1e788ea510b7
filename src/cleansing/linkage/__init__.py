"""Record linkage: blocking, candidate pairs, similarity and threshold decision."""

from .candidates import inter_source_pairs, intra_source_pairs, pairs_across_bins, pairs_in_bin
from .configs import BlockingConfig, LinkageConfig, MetricConfig
from .decider import MatchDecider, PairProjection
from .models import (
    Bin,
    CandidatePair,
    FeatureComparison,
    LinkageMode,
    LinkageProvenance,
    LinkageResult,
    Match,
    MissingValuePolicy,
)
from .partitioning import PartitioningStrategy
from .resolver import RecordLinkage
from .similarity import (
    CompositeSimilarity,
    FieldSimilarity,
    SimilarityMetric,
    available_aggregators,
    available_metrics,
    create_metric,
    register_aggregator,
    register_metric,
)

__all__ = [
    "Bin",
    "BlockingConfig",
    "CandidatePair",
    "CompositeSimilarity",
    "FeatureComparison",
    "FieldSimilarity",
    "LinkageConfig",
    "LinkageMode",
    "LinkageProvenance",
    "LinkageResult",
    "Match",
    "MatchDecider",
    "MetricConfig",
    "MissingValuePolicy",
    "PairProjection",
    "PartitioningStrategy",
    "RecordLinkage",
    "SimilarityMetric",
    "available_aggregators",
    "available_metrics",
    "create_metric",
    "inter_source_pairs",
    "intra_source_pairs",
    "pairs_across_bins",
    "pairs_in_bin",
    "register_aggregator",
    "register_metric",
]
