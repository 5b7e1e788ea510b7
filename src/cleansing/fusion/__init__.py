"""Data fusion: consolidate duplicate clusters with field-specific rules."""

from .configs import FusionConfig
from .engine import FusionEngine
from .models import DuplicateCluster, FusionResult
from .rules import (
    FusionRule,
    LongestValueRule,
    MergeDistinctRule,
    MostWeightedRule,
    UnionRule,
    VotingRule,
    WeightedAverageRule,
    available_rules,
    create_rule,
    register_rule,
)

__all__ = [
    "DuplicateCluster",
    "FusionConfig",
    "FusionEngine",
    "FusionResult",
    "FusionRule",
    "LongestValueRule",
    "MergeDistinctRule",
    "MostWeightedRule",
    "UnionRule",
    "VotingRule",
    "WeightedAverageRule",
    "available_rules",
    "create_rule",
    "register_rule",
]
