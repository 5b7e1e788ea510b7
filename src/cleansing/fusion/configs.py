"""Declarative configuration for the fusion engine."""
from __future__ import annotations

from pydantic import BaseModel, Field

from .engine import FusionEngine


class FusionConfig(BaseModel):
    """Rule per field plus a default rule.

    Example (YAML):

        rules:
          first name: merge_distinct
          age: weighted_average
        default_rule: most_weighted
        fields: [id, first name, last name, age]
    """

    rules: dict[str, str] = Field(
        default_factory=dict,
        description="Registered rule name per top-level field",
    )
    default_rule: str | None = Field(
        default=None,
        description="Rule for fields without an explicit rule; falls back to the process default",
    )
    fields: list[str] | None = Field(
        default=None,
        description="Known field names; rules for other fields are rejected",
    )

    def build(self, default_rule: str = "most_weighted") -> FusionEngine:
        return FusionEngine(
            rules=self.rules,
            default_rule=self.default_rule or default_rule,
            fields=self.fields,
        )
