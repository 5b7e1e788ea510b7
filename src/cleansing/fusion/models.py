"""Fusion input and output models."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, computed_field, model_validator


class DuplicateCluster(BaseModel):
    """Values known to represent one entity, with their source weights.

    Built by the surrounding system from pairwise matches; ``weights[i]`` is
    the reliability of the source of ``values[i]``.
    """

    values: list[Any] = Field(default_factory=list)
    weights: list[float] | None = Field(
        default=None,
        description="One weight per value; defaults to 1.0 each",
    )

    @model_validator(mode="after")
    def _check_weights(self) -> DuplicateCluster:
        if self.weights is None:
            self.weights = [1.0] * len(self.values)
        elif len(self.weights) != len(self.values):
            raise ValueError(
                f"Cluster has {len(self.values)} value(s) but {len(self.weights)} weight(s)"
            )
        return self

    @computed_field
    @property
    def size(self) -> int:
        return len(self.values)


class FusionResult(BaseModel):
    """One consolidated value produced from a duplicate cluster."""

    value: Any
    sources: int = Field(description="Number of values in the fused cluster")
    rules: dict[str, str] = Field(
        default_factory=dict,
        description="Rule name applied per field (or '*' for whole values)",
    )
