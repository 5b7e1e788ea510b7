"""Tests for fusion rules and the fusion engine."""
from __future__ import annotations

import math
from itertools import permutations

import pytest

from cleansing.exceptions import ConfigurationError, FusionError
from cleansing.fusion import (
    DuplicateCluster,
    FusionEngine,
    FusionRule,
    MergeDistinctRule,
    available_rules,
    create_rule,
    register_rule,
)


def fuse(rule, values, weights=None):
    if weights is None:
        weights = [1.0] * len(values)
    return create_rule(rule).fuse(values, weights)


class TestMergeDistinct:
    """Tests for the merge-distinct rule."""

    def test_collapses_duplicates_and_sorts(self):
        assert fuse("merge_distinct", ["b", "a", "b"]) == ["a", "b"]

    def test_drops_nulls(self):
        assert fuse("merge_distinct", [None, "albert", None]) == ["albert"]

    def test_all_null_is_empty(self):
        assert fuse("merge_distinct", [None, None]) == []
        assert fuse("merge_distinct", []) == []

    def test_structural_values(self):
        values = [{"city": "Berlin"}, ["a"], {"city": "Berlin"}, 3]
        assert fuse("merge_distinct", values) == [3, ["a"], {"city": "Berlin"}]

    def test_permutation_invariant(self):
        values = ["elma", None, "elmar", 60, "elma", [1, 2], True]
        expected = MergeDistinctRule().fuse(values, [1.0] * len(values))
        assert expected == [True, 60, "elma", "elmar", [1, 2]]
        for permutation in permutations(values):
            assert MergeDistinctRule().fuse(list(permutation), [1.0] * len(values)) == expected

    def test_nan_permutation_invariant(self):
        values = [2.0, float("nan"), 1.0, 3.0]
        for permutation in permutations(values):
            result = MergeDistinctRule().fuse(list(permutation), [1.0] * len(values))
            assert result[:3] == [1.0, 2.0, 3.0]
            assert len(result) == 4 and math.isnan(result[3])

    def test_ignores_weights(self):
        assert fuse("merge_distinct", ["x", "y"], [0.0, 10.0]) == ["x", "y"]


class TestWeightedRules:
    """Tests for rules that use source weights."""

    def test_most_weighted(self):
        assert fuse("most_weighted", ["Al", "Albert"], [0.4, 0.9]) == "Albert"

    def test_most_weighted_skips_nulls(self):
        assert fuse("most_weighted", [None, "Al"], [1.0, 0.1]) == "Al"
        assert fuse("most_weighted", [None], [1.0]) is None

    def test_most_weighted_tie_breaks_canonically(self):
        assert fuse("most_weighted", ["b", "a"], [1.0, 1.0]) == "a"
        assert fuse("most_weighted", ["a", "b"], [1.0, 1.0]) == "a"

    def test_voting_sums_weights(self):
        values = ["Berlin", "Bonn", "Berlin", "Bonn", "Bonn"]
        assert fuse("voting", values) == "Bonn"
        assert fuse("voting", values, [3.0, 1.0, 3.0, 1.0, 1.0]) == "Berlin"

    def test_voting_structural_equality(self):
        assert fuse("voting", [{"a": 1}, {"a": 1.0}, {"a": 2}]) == {"a": 1}

    def test_weighted_average(self):
        assert fuse("weighted_average", [80, 81], [0.4, 0.9]) == pytest.approx(104.9 / 1.3)
        assert fuse("weighted_average", [69, 70, None]) == pytest.approx(69.5)

    def test_weighted_average_zero_weights(self):
        assert fuse("weighted_average", [60, 70], [0.0, 0.0]) == 65

    def test_weighted_average_rejects_text(self):
        with pytest.raises(FusionError) as exc:
            fuse("weighted_average", [70, "seventy"])
        assert exc.value.rule == "weighted_average"

    def test_weighted_average_empty(self):
        assert fuse("weighted_average", [None]) is None


class TestOtherRules:
    """Tests for longest and union."""

    def test_longest(self):
        assert fuse("longest", ["elma", "elmar", None]) == "elmar"
        assert fuse("longest", [[1], [1, 2, 3]]) == [1, 2, 3]

    def test_union_keeps_first_seen_order(self):
        assert fuse("union", ["b", "a", None, "b"]) == ["b", "a"]


class TestRuleRegistry:
    """Tests for rule lookup."""

    def test_builtin_rules(self):
        assert {
            "merge_distinct",
            "most_weighted",
            "voting",
            "weighted_average",
            "longest",
            "union",
        } <= set(available_rules())

    def test_unknown_rule(self):
        with pytest.raises(ConfigurationError) as exc:
            create_rule("newest")
        assert exc.value.option == "rules"

    def test_invalid_parameters(self):
        with pytest.raises(ConfigurationError):
            create_rule("voting", quorum=2)

    def test_register_custom_rule(self):
        @register_rule("test_first")
        class FirstRule(FusionRule):
            def fuse(self, values, weights):
                return values[0] if values else None

        assert create_rule("test_first").fuse(["x", "y"], [1.0, 1.0]) == "x"


class TestFusionEngine:
    """Tests for per-field rule dispatch."""

    @pytest.fixture()
    def engine(self):
        return FusionEngine(
            rules={"first name": "merge_distinct", "age": "weighted_average"},
            default_rule="most_weighted",
        )

    def test_fuse_records(self, engine):
        fused = engine.fuse_records(
            [
                {"id": 2, "first name": "charles", "age": 70},
                {"id": 7, "first name": "charles", "age": 69},
            ],
            weights=[1.0, 1.0],
        )
        assert fused == {"id": 2, "first name": ["charles"], "age": 69.5}

    def test_absent_fields_do_not_vote(self, engine):
        fused = engine.fuse_records(
            [{"id": 4, "nickname": "el"}, {"id": 8}],
            weights=[0.1, 0.9],
        )
        assert fused == {"id": 8, "nickname": "el"}

    def test_explicit_null_is_dropped(self, engine):
        fused = engine.fuse_records([{"first name": None}, {"first name": "elma"}])
        assert fused == {"first name": ["elma"]}

    def test_fuse_single_field(self, engine):
        assert engine.fuse(["b", "a", "b"], field="first name") == ["a", "b"]
        assert engine.fuse(["x", "y"], [0.1, 0.2]) == "y"

    def test_weight_count_mismatch(self, engine):
        with pytest.raises(ConfigurationError):
            engine.fuse(["a"], [1.0, 2.0])
        with pytest.raises(ConfigurationError):
            engine.fuse_records([{}], [1.0, 2.0])

    def test_rules_must_name_known_fields(self):
        with pytest.raises(ConfigurationError):
            FusionEngine(rules={"nickname": "union"}, fields=["id", "name"])

    def test_unknown_rule_name(self):
        with pytest.raises(ConfigurationError):
            FusionEngine(default_rule="newest")

    def test_rule_instances_accepted(self):
        engine = FusionEngine(default_rule=MergeDistinctRule())
        assert engine.rule_for("anything").name == "merge_distinct"

    def test_fuse_cluster_of_records(self, engine):
        cluster = DuplicateCluster(
            values=[
                {"first name": "elma", "age": 60},
                {"first name": "elmar", "age": 60},
            ],
            weights=[0.5, 0.5],
        )
        result = engine.fuse_cluster(cluster)
        assert result.value == {"first name": ["elma", "elmar"], "age": 60}
        assert result.sources == 2
        assert result.rules == {"first name": "merge_distinct", "age": "weighted_average"}

    def test_fuse_cluster_of_scalars(self):
        engine = FusionEngine(default_rule="merge_distinct")
        result = engine.fuse_cluster(DuplicateCluster(values=["b", None, "a"]))
        assert result.value == ["a", "b"]
        assert result.rules == {"*": "merge_distinct"}


class TestDuplicateCluster:
    """Tests for the cluster model."""

    def test_default_weights(self):
        cluster = DuplicateCluster(values=["a", "b"])
        assert cluster.weights == [1.0, 1.0]
        assert cluster.size == 2

    def test_weight_mismatch(self):
        with pytest.raises(ValueError):
            DuplicateCluster(values=["a"], weights=[1.0, 2.0])
