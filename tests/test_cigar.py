import pytest

from readloc.cigar import (
    aligned_footprint,
    coverage,
    decode_cigar,
    merge_intervals,
    parse_cigar,
)
from readloc.errors import IntegrityError, ParseError


def _points(intervals):
    pts = set()
    for s, e in intervals:
        pts.update(range(s, e))
    return pts


def test_parse_cigar_tokens():
    assert parse_cigar("10S40M2D8M") == [(10, "S"), (40, "M"), (2, "D"), (8, "M")]
    assert parse_cigar("3=1X") == [(3, "="), (1, "X")]


@pytest.mark.parametrize("bad", ["", "*", "M10", "10", "10M5", "1.5M", "10MM", "-3M", "\u0661\u0660M"])
def test_parse_cigar_rejects_malformed(bad):
    with pytest.raises(ParseError):
        parse_cigar(bad)


def test_decode_simple_match():
    assert decode_cigar("10M", offset=100) == [(100, 110)]


def test_decode_skip_emits_gap():
    assert decode_cigar("5M3N5M", offset=0) == [(0, 5), (8, 13)]


def test_decode_deletion_and_clips():
    # S and I consume no reference; D is part of the footprint.
    assert decode_cigar("4S10M2I3D6M5S", offset=20) == [(20, 30), (30, 33), (33, 39)]


@pytest.mark.parametrize(
    "cigar,offset",
    [
        ("10M", 0),
        ("5M3N5M", 7),
        ("3S12M4I2D9M", 1000),
        ("2M100N3M1D1M", 42),
        ("8M2I8M6S", 5),
    ],
)
def test_decode_terminal_coordinate(cigar, offset):
    ref_len = sum(n for n, op in parse_cigar(cigar) if op in "MDN")
    assert decode_cigar(cigar, offset)[-1][1] == offset + ref_len


def test_merge_collapses_adjacent_and_overlapping():
    assert merge_intervals([(0, 5), (5, 8), (10, 12), (11, 20), (20, 21)]) == [(0, 8), (10, 21)]


def test_merge_keeps_disjoint():
    assert merge_intervals([(0, 5), (8, 13)]) == [(0, 5), (8, 13)]
    assert merge_intervals([]) == []


@pytest.mark.parametrize(
    "intervals",
    [
        [(1, 3)],
        [(0, 10), (2, 4), (3, 12), (15, 16)],
        [(0, 1), (1, 2), (2, 3), (7, 9), (8, 9)],
        [(5, 9), (5, 6), (9, 10), (11, 14)],
    ],
)
def test_merge_properties(intervals):
    merged = merge_intervals(intervals)
    for (s1, e1), (s2, e2) in zip(merged, merged[1:]):
        assert s1 < e1 < s2 < e2
    assert _points(merged) == _points(intervals)


def test_scenario_a_full_coverage():
    assert coverage(100, 110, 100, 110, "10M") == 10


def test_scenario_b_split_coverage():
    assert coverage(0, 13, 0, 5, "5M3N5M") == 5
    assert coverage(0, 13, 8, 13, "5M3N5M") == 5
    # the skipped bases never count
    assert coverage(0, 13, 5, 8, "5M3N5M") == 0


def test_coverage_counts_deletions():
    assert coverage(0, 12, 0, 12, "5M2D5M") == 12
    assert coverage(0, 12, 5, 7, "5M2D5M") == 2


def test_coverage_zero_when_disjoint():
    assert coverage(100, 150, 0, 100, "50M") == 0
    assert coverage(100, 150, 150, 400, "50M") == 0


def test_coverage_monotone_when_region_widens():
    cigar = "10M20N10M5D10M"
    start, end = 200, 255
    previous = -1
    for pad in range(0, 60, 3):
        value = coverage(start, end, 215 - pad, 216 + pad, cigar)
        assert value >= previous
        previous = value
    assert previous == 35


def test_integrity_error_on_span_mismatch():
    with pytest.raises(IntegrityError):
        coverage(100, 111, 100, 110, "10M")


def test_integrity_error_when_nothing_decoded():
    with pytest.raises(IntegrityError):
        aligned_footprint(100, 110, "10S")


def test_footprint_merges_deletions():
    assert aligned_footprint(0, 12, "5M2D5M") == [(0, 12)]
