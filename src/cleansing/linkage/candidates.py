"""Candidate pair generation over blocking bins.

A pair co-binned under several criteria is emitted only by the first
criterion that co-bins it. That rule only looks at the two records, so
every bin can be expanded on its own without shared state, which is what
allows a scheduler to process bins in parallel after the shuffle.
"""
from __future__ import annotations

from collections.abc import Iterator, Sequence
from itertools import combinations, product
from typing import Any

from .models import Bin, CandidatePair
from .partitioning import PartitioningStrategy


def _claimed_earlier(
    partitioning: PartitioningStrategy,
    left: Any,
    right: Any,
    criterion: int,
    sides: tuple[int, int],
) -> bool:
    """Whether an earlier criterion already co-bins the pair."""
    return any(
        partitioning.co_binned(left, right, earlier, sides)
        for earlier in range(criterion)
    )


def pairs_in_bin(
    bin_: Bin,
    records: Sequence[Any],
    partitioning: PartitioningStrategy,
) -> Iterator[CandidatePair]:
    """Intra-source pairs of one bin.

    Yields ``{i, j}`` with ``i`` preceding ``j`` in the bin's enumeration
    order; a record is never paired with itself.
    """
    for left_index, right_index in combinations(bin_.members, 2):
        left, right = records[left_index], records[right_index]
        if _claimed_earlier(partitioning, left, right, bin_.criterion, (0, 0)):
            continue
        yield CandidatePair(
            left_index=left_index,
            right_index=right_index,
            left=left,
            right=right,
            criterion=bin_.criterion,
            key=bin_.key,
        )


def pairs_across_bins(
    left_bin: Bin,
    right_bin: Bin,
    left_records: Sequence[Any],
    right_records: Sequence[Any],
    partitioning: PartitioningStrategy,
) -> Iterator[CandidatePair]:
    """Inter-source pairs: the cross product of two bins sharing a key."""
    for left_index, right_index in product(left_bin.members, right_bin.members):
        left, right = left_records[left_index], right_records[right_index]
        if _claimed_earlier(partitioning, left, right, left_bin.criterion, (0, 1)):
            continue
        yield CandidatePair(
            left_index=left_index,
            right_index=right_index,
            left=left,
            right=right,
            criterion=left_bin.criterion,
            key=left_bin.key,
        )


def intra_source_pairs(
    records: Sequence[Any],
    partitioning: PartitioningStrategy,
    bins: Sequence[Bin] | None = None,
) -> Iterator[CandidatePair]:
    """All candidate pairs for deduplication within one source.

    Order: criteria in configuration order, bins in first-appearance order,
    pairs in record enumeration order.
    """
    if bins is None:
        bins = partitioning.bins(records)
    for bin_ in bins:
        if bin_.size < 2:
            continue
        yield from pairs_in_bin(bin_, records, partitioning)


def inter_source_pairs(
    left_records: Sequence[Any],
    right_records: Sequence[Any],
    partitioning: PartitioningStrategy,
    left_bins: Sequence[Bin] | None = None,
    right_bins: Sequence[Bin] | None = None,
) -> Iterator[CandidatePair]:
    """All candidate pairs linking two sources.

    For every key present on both sides, the left bin is crossed with the
    right bin of the same criterion and key.
    """
    if left_bins is None:
        left_bins = partitioning.bins(left_records, side=0)
    if right_bins is None:
        right_bins = partitioning.bins(right_records, side=1)

    right_index = {(bin_.criterion, bin_.key): bin_ for bin_ in right_bins}
    for left_bin in left_bins:
        right_bin = right_index.get((left_bin.criterion, left_bin.key))
        if right_bin is None:
            continue
        yield from pairs_across_bins(
            left_bin, right_bin, left_records, right_records, partitioning
        )
