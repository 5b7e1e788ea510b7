"""Blocking: map records to keys so only co-binned records are compared.

Blocking turns the O(n^2) comparison problem into O(sum |bin|^2) work. Pairs
whose records share no key under any criterion are never compared; that
loss of recall is the price of tractability.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from cleansing.exceptions import ConfigurationError
from cleansing.utils.paths import FieldPath, PathLike
from cleansing.utils.values import freeze

from .models import Bin

Criterion = tuple[FieldPath, ...]


def _parse_criteria(criteria: Sequence[Sequence[PathLike]] | None, side: str) -> tuple[Criterion, ...]:
    if criteria is None:
        return ()
    if isinstance(criteria, (str, FieldPath)):
        raise ConfigurationError(
            reason="Blocking criteria must be a list of path lists",
            option=f"blocking.{side}",
        )
    parsed = []
    for criterion in criteria:
        if isinstance(criterion, (str, FieldPath)):
            criterion = [criterion]
        parsed.append(tuple(FieldPath.parse(path) for path in criterion))
    return tuple(parsed)


class PartitioningStrategy:
    """Blocking criteria for one or two sources.

    Each criterion is an ordered list of field paths; its key for a record is
    the tuple of extracted values. Two records are co-binned when *any*
    criterion yields equal keys for both.

    Example:
        >>> strategy = PartitioningStrategy([["last name"], ["age"]])
        >>> strategy.key({"last name": "typo", "age": 70}, 0)
        ('typo',)
    """

    def __init__(
        self,
        left_criteria: Sequence[Sequence[PathLike]],
        right_criteria: Sequence[Sequence[PathLike]] | None = None,
    ) -> None:
        """Initialize the strategy.

        Args:
            left_criteria: Criteria for the first (or only) source
            right_criteria: Criteria for the second source when its field
                names differ; defaults to the left criteria

        Raises:
            ConfigurationError: on empty criteria or mismatched sides
        """
        left = _parse_criteria(left_criteria, "left")
        right = _parse_criteria(right_criteria, "right") if right_criteria is not None else left

        if not left:
            raise ConfigurationError(
                reason="At least one blocking criterion is required",
                option="blocking.left",
            )
        if len(left) != len(right):
            raise ConfigurationError(
                reason=(
                    f"Left and right blocking criteria differ in count: "
                    f"{len(left)} != {len(right)}"
                ),
                option="blocking.right",
            )
        for index, (left_criterion, right_criterion) in enumerate(zip(left, right)):
            if len(left_criterion) != len(right_criterion):
                raise ConfigurationError(
                    reason=(
                        f"Criterion {index} extracts {len(left_criterion)} field(s) on the "
                        f"left but {len(right_criterion)} on the right"
                    ),
                    option="blocking.right",
                )

        self._criteria = (left, right)

    @classmethod
    def naive(cls) -> PartitioningStrategy:
        """One empty criterion: every record shares the same bin."""
        return cls([[]])

    @property
    def criteria_count(self) -> int:
        return len(self._criteria[0])

    def criteria(self, side: int = 0) -> tuple[Criterion, ...]:
        return self._criteria[side]

    def describe(self, side: int = 0) -> list[list[str]]:
        """Criteria as lists of dotted paths."""
        return [[str(path) for path in criterion] for criterion in self._criteria[side]]

    def key(self, record: Any, criterion: int, side: int = 0) -> tuple[Any, ...]:
        """Blocking key of ``record`` under one criterion.

        Missing fields stay in the key as ``MISSING`` so the record still
        lands in a bin.
        """
        return tuple(path.evaluate(record) for path in self._criteria[side][criterion])

    def frozen_key(self, record: Any, criterion: int, side: int = 0) -> Any:
        """Hashable key with structural equality."""
        return tuple(freeze(value) for value in self.key(record, criterion, side))

    def co_binned(
        self,
        left: Any,
        right: Any,
        criterion: int,
        sides: tuple[int, int] = (0, 0),
    ) -> bool:
        """Whether two records share a key under ``criterion``."""
        return self.frozen_key(left, criterion, sides[0]) == self.frozen_key(
            right, criterion, sides[1]
        )

    def bins(self, records: Sequence[Any], side: int = 0) -> list[Bin]:
        """Group one source's records into bins for every criterion.

        Bins of a criterion appear in first-appearance order of their key and
        list members in enumeration order. Every record is placed in exactly
        one bin per criterion.
        """
        result: list[Bin] = []
        for criterion in range(self.criteria_count):
            grouped: dict[Any, list[int]] = {}
            for index, record in enumerate(records):
                grouped.setdefault(self.frozen_key(record, criterion, side), []).append(index)
            result.extend(
                Bin(criterion=criterion, key=key, members=tuple(members))
                for key, members in grouped.items()
            )
        return result
