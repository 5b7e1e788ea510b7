"""Fusion engine: per-field rule dispatch over duplicate clusters.

Each call allocates its own working set, so one engine can fuse different
clusters concurrently.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from cleansing.exceptions import ConfigurationError

from .models import DuplicateCluster, FusionResult
from .rules import FusionRule, create_rule

logger = structlog.get_logger(__name__)

WHOLE_VALUE = "*"


def _as_rule(rule: FusionRule | str) -> FusionRule:
    if isinstance(rule, FusionRule):
        return rule
    return create_rule(rule)


class FusionEngine:
    """Consolidates duplicate clusters with field-specific rules.

    Example:
        >>> engine = FusionEngine(
        ...     rules={"emails": "merge_distinct", "age": "weighted_average"},
        ...     default_rule="most_weighted",
        ... )
        >>> engine.fuse_records(
        ...     [{"name": "Al", "age": 80}, {"name": "Albert", "age": 81}],
        ...     weights=[0.4, 0.9],
        ... )
        {'name': 'Albert', 'age': 80.69...}
    """

    def __init__(
        self,
        rules: Mapping[str, FusionRule | str] | None = None,
        default_rule: FusionRule | str = "most_weighted",
        fields: Sequence[str] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            rules: Rule per top-level field name (instance or registered name)
            default_rule: Rule for fields without an explicit rule
            fields: Known field names; when given, rules for other fields
                are rejected

        Raises:
            ConfigurationError: for unknown rule names or fields
        """
        self.rules = {field: _as_rule(rule) for field, rule in (rules or {}).items()}
        self.default_rule = _as_rule(default_rule)
        self.fields = list(fields) if fields is not None else None

        if self.fields is not None:
            unknown = sorted(set(self.rules) - set(self.fields))
            if unknown:
                raise ConfigurationError(
                    reason=f"Fusion rules reference unknown field(s): {', '.join(unknown)}",
                    option="rules",
                )

    def rule_for(self, field: str | None) -> FusionRule:
        if field is None:
            return self.default_rule
        return self.rules.get(field, self.default_rule)

    def fuse(
        self,
        values: Sequence[Any],
        weights: Sequence[float] | None = None,
        field: str | None = None,
    ) -> Any:
        """Fuse the values of one field.

        Raises:
            ConfigurationError: if values and weights differ in length
        """
        if weights is None:
            weights = [1.0] * len(values)
        elif len(weights) != len(values):
            raise ConfigurationError(
                reason=f"Got {len(values)} value(s) but {len(weights)} weight(s)",
                option="weights",
            )
        return self.rule_for(field).fuse(list(values), [float(w) for w in weights])

    def fuse_records(
        self,
        records: Sequence[Mapping[str, Any]],
        weights: Sequence[float] | None = None,
    ) -> dict[str, Any]:
        """Fuse whole records field by field.

        A field absent from a record is not a null: that record (and its
        weight) simply does not take part in the field's fusion.
        """
        if weights is None:
            weights = [1.0] * len(records)
        elif len(weights) != len(records):
            raise ConfigurationError(
                reason=f"Got {len(records)} record(s) but {len(weights)} weight(s)",
                option="weights",
            )

        columns: dict[str, tuple[list[Any], list[float]]] = {}
        for record, weight in zip(records, weights):
            for field, value in record.items():
                field_values, field_weights = columns.setdefault(field, ([], []))
                field_values.append(value)
                field_weights.append(float(weight))

        return {
            field: self.rule_for(field).fuse(field_values, field_weights)
            for field, (field_values, field_weights) in columns.items()
        }

    def fuse_cluster(self, cluster: DuplicateCluster) -> FusionResult:
        """Fuse a cluster: record-wise when every value is an object."""
        values = cluster.values
        weights = cluster.weights

        if values and all(isinstance(value, Mapping) for value in values):
            fused = self.fuse_records(values, weights)
            applied = {field: self.rule_for(field).name for field in fused}
        else:
            fused = self.fuse(values, weights)
            applied = {WHOLE_VALUE: self.default_rule.name}

        logger.debug("cluster_fused", sources=cluster.size, fields=len(applied))
        return FusionResult(value=fused, sources=cluster.size, rules=applied)
