"""Hierarchical genomic binning shared by the feature store and the navigator.

This is the UCSC/bedtools "extended" binning scheme: seven levels of nested
power-of-two bins, the finest spanning 16 kbp and each coarser level 8x wider.
Features are stored in the smallest bin that fully contains them, so a range
query must visit the overlapping bins on every level.

Coordinates here are 0-based half-open.
"""

from __future__ import annotations

from typing import Iterator, List, Tuple

BIN_FIRST_SHIFT = 14  # finest bins span 2**14 bp
BIN_NEXT_SHIFT = 3  # each coarser level is 2**3 times wider
BIN_LEVELS = 7

# Bin id offset per level, finest level first.
BIN_OFFSETS_EXTENDED: Tuple[int, ...] = (
    32768 + 4096 + 512 + 64 + 8 + 1,
    4096 + 512 + 64 + 8 + 1,
    512 + 64 + 8 + 1,
    64 + 8 + 1,
    8 + 1,
    1,
    0,
)


def get_bin(start0: int, end: int) -> int:
    """Return the smallest bin fully containing ``[start0, end)``."""
    start = max(start0, 0) >> BIN_FIRST_SHIFT
    last = max(end - 1, start0, 0) >> BIN_FIRST_SHIFT
    for offset in BIN_OFFSETS_EXTENDED:
        if start == last:
            return offset + start
        start >>= BIN_NEXT_SHIFT
        last >>= BIN_NEXT_SHIFT
    raise ValueError(f"Interval {start0}-{end} is out of range for binning")


def bin_level(bin_id: int) -> int:
    """Index (0 = finest) of the level a bin id belongs to."""
    for level, offset in enumerate(BIN_OFFSETS_EXTENDED):
        if bin_id >= offset:
            return level
    raise ValueError(f"Invalid bin id: {bin_id}")


def parent_bin(bin_id: int) -> int:
    """Ancestor of ``bin_id`` at the next coarser level."""
    level = bin_level(bin_id)
    if level == BIN_LEVELS - 1:
        return bin_id
    local = bin_id - BIN_OFFSETS_EXTENDED[level]
    return BIN_OFFSETS_EXTENDED[level + 1] + (local >> BIN_NEXT_SHIFT)


def bin_ranges(pos0: int, radius: int) -> List[Tuple[int, int]]:
    """Inclusive ``(first_bin, last_bin)`` per level, finest level first.

    The searched window is ``[pos0 - radius, pos0 + radius]``, clamped at 0.
    """
    start = max(pos0 - radius, 0) >> BIN_FIRST_SHIFT
    end = max(pos0 + radius, 0) >> BIN_FIRST_SHIFT
    ranges: List[Tuple[int, int]] = []
    for offset in BIN_OFFSETS_EXTENDED:
        ranges.append((offset + start, offset + end))
        start >>= BIN_NEXT_SHIFT
        end >>= BIN_NEXT_SHIFT
    return ranges


def iter_candidate_bins(pos0: int, radius: int) -> Iterator[int]:
    """Yield every bin id that can hold a feature within ``radius`` of ``pos0``.

    Bins are produced level by level, finest first, ascending within a level.
    """
    for first, last in bin_ranges(pos0, radius):
        yield from range(first, last + 1)
