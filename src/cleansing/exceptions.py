from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CleansingError(Exception):
    """Base class for record linkage and fusion errors."""

    reason: str

    def __str__(self) -> str:  # pragma: no cover - human readable
        return self.reason


@dataclass
class ConfigurationError(CleansingError):
    """Raised when a pipeline is configured inconsistently.

    Always surfaced while building operators or loading configuration,
    before any record is processed.
    """

    option: str | None = None

    def __str__(self) -> str:  # pragma: no cover - human readable
        if self.option:
            return f"{self.reason} (option={self.option})"
        return self.reason


@dataclass
class ScoringError(CleansingError):
    """Raised when a single candidate pair cannot be scored.

    Only the affected pair fails; a linkage run logs it and continues.
    """

    metric: str | None = None

    def __str__(self) -> str:  # pragma: no cover - human readable
        if self.metric:
            return f"{self.reason} (metric={self.metric})"
        return self.reason


@dataclass
class MetricTypeError(ScoringError):
    """A metric received a value of a type it cannot compare."""


@dataclass
class MissingValueError(ScoringError):
    """A compared field was missing and the field's policy is ``error``."""


@dataclass
class FusionError(CleansingError):
    """A fusion rule cannot consolidate the given values."""

    rule: str | None = None

    def __str__(self) -> str:  # pragma: no cover - human readable
        if self.rule:
            return f"{self.reason} (rule={self.rule})"
        return self.reason
