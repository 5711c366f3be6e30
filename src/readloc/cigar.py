"""CIGAR decoding and interval algebra.

All intervals are 0-based half-open ``(start, end)`` tuples in reference
coordinates.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Tuple

from .errors import IntegrityError, ParseError

Interval = Tuple[int, int]

_TOKEN_RE = re.compile(r"([0-9]+)([A-Za-z=])")

# M, D: consume reference and count as footprint. N: consumes reference only.
_FOOTPRINT_OPS = frozenset("MD")
_SKIP_OPS = frozenset("N")


def parse_cigar(cigar: str) -> List[Tuple[int, str]]:
    """Split a CIGAR string into ``(length, op)`` tokens.

    Raises
    ------
    ParseError
        If the string is empty, ``*``, or contains a token that is not
        ``<digits><single op character>``.
    """
    if not cigar or cigar == "*":
        raise ParseError(f"CIGAR is empty or unavailable: {cigar!r}")

    tokens: List[Tuple[int, str]] = []
    pos = 0
    while pos < len(cigar):
        m = _TOKEN_RE.match(cigar, pos)
        if m is None:
            raise ParseError(f"Malformed CIGAR {cigar!r} at offset {pos}")
        tokens.append((int(m.group(1)), m.group(2)))
        pos = m.end()
    return tokens


def decode_cigar(cigar: str, offset: int = 0) -> List[Interval]:
    """Return the reference intervals covered by M/D runs, in order.

    N runs advance the reference cursor without emitting an interval; every
    other op is treated as consuming no reference bases.
    """
    intervals: List[Interval] = []
    cursor = 0
    for length, op in parse_cigar(cigar):
        if op in _FOOTPRINT_OPS:
            if length > 0:
                intervals.append((cursor + offset, cursor + length + offset))
            cursor += length
        elif op in _SKIP_OPS:
            cursor += length
    return intervals


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """Collapse overlapping or adjacent intervals (input sorted by start)."""
    merged: List[Interval] = []
    for start, end in intervals:
        if merged and start <= merged[-1][1]:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def aligned_footprint(alignment_start: int, alignment_end: int, cigar: str) -> List[Interval]:
    """Merged reference footprint of an alignment, checked against its reported end.

    Raises
    ------
    IntegrityError
        If the decoded span does not end at ``alignment_end``.
    """
    footprint = merge_intervals(decode_cigar(cigar, offset=alignment_start))
    if not footprint:
        raise IntegrityError(
            f"CIGAR {cigar!r} covers no reference bases but alignment is "
            f"[{alignment_start}, {alignment_end})"
        )
    decoded_end = footprint[-1][1]
    if decoded_end != alignment_end:
        raise IntegrityError(
            f"CIGAR {cigar!r} at {alignment_start} decodes to end {decoded_end}, "
            f"but the reported alignment end is {alignment_end}"
        )
    return footprint


def overlap_length(a: Interval, b: Interval) -> int:
    return max(0, min(a[1], b[1]) - max(a[0], b[0]))


def coverage(
    alignment_start: int,
    alignment_end: int,
    region_start: int,
    region_end: int,
    cigar: str,
) -> int:
    """Number of reference bases of the read's footprint inside the region."""
    region = (region_start, region_end)
    footprint = aligned_footprint(alignment_start, alignment_end, cigar)
    return sum(overlap_length(iv, region) for iv in footprint)
