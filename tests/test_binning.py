import random

from spliceannot.binning import (
    BIN_LEVELS,
    BIN_OFFSETS_EXTENDED,
    bin_level,
    bin_ranges,
    get_bin,
    iter_candidate_bins,
    parent_bin,
)


def test_get_bin_finest_level():
    assert get_bin(0, 1) == BIN_OFFSETS_EXTENDED[0]
    assert get_bin(16384, 16400) == BIN_OFFSETS_EXTENDED[0] + 1


def test_get_bin_spanning_boundary_goes_up_a_level():
    b = get_bin(16383, 16385)
    assert bin_level(b) == 1
    assert b == BIN_OFFSETS_EXTENDED[1]


def test_parent_bin():
    assert parent_bin(BIN_OFFSETS_EXTENDED[0] + 9) == BIN_OFFSETS_EXTENDED[1] + 1
    assert parent_bin(0) == 0


def test_bin_ranges_one_range_per_level():
    ranges = bin_ranges(16383, 2)
    assert len(ranges) == BIN_LEVELS
    assert ranges[0] == (BIN_OFFSETS_EXTENDED[0], BIN_OFFSETS_EXTENDED[0] + 1)
    for first, last in ranges[1:]:
        assert first == last


def test_candidate_bins_clamped_at_zero():
    bins = list(iter_candidate_bins(0, 10))
    assert bins[0] == BIN_OFFSETS_EXTENDED[0]
    assert len(bins) == BIN_LEVELS


def test_feature_bin_is_always_a_candidate():
    rng = random.Random(11)
    for _ in range(500):
        start0 = rng.randrange(0, 5_000_000)
        end = start0 + rng.randrange(1, 300_000)
        b = get_bin(start0, end)
        pos0 = rng.randrange(start0, end)
        assert b in set(iter_candidate_bins(pos0, 0))


def test_candidate_bins_follow_parent_chain():
    pos0 = 1_234_567
    ranges = bin_ranges(pos0, 0)
    b = ranges[0][0]
    for first, _ in ranges[1:]:
        b = parent_bin(b)
        assert b == first
