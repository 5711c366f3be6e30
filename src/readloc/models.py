from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from .errors import ParseError

OutputRow = Tuple[str, int, int, str, int, int, str, str]

OUTPUT_COLUMNS = (
    "chrom",
    "align_start",
    "align_end",
    "read_id",
    "region_start",
    "region_end",
    "region_id",
    "cigar",
)


@dataclass(frozen=True)
class AlignmentRecord:
    """One placement of a read on the reference.

    Coordinates are 0-based half-open.

    Attributes
    ----------
    chrom:
        Contig name as present in the BAM header.
    start:
        0-based leftmost reference position (inclusive).
    end:
        Reference position one past the last aligned base (exclusive).
    cigar:
        CIGAR string of the alignment.
    """

    chrom: str
    start: int
    end: int
    cigar: str


@dataclass(frozen=True)
class CandidateRegion:
    """An annotated genomic interval a read might belong to."""

    chrom: str
    start: int
    end: int
    region_id: str


@dataclass(frozen=True)
class CandidateMatch:
    """One observed overlap between a read's alignment and one region."""

    read_id: str
    alignment: AlignmentRecord
    region: CandidateRegion

    @property
    def chrom(self) -> str:
        return self.alignment.chrom

    def to_row(self) -> OutputRow:
        return (
            self.alignment.chrom,
            self.alignment.start,
            self.alignment.end,
            self.read_id,
            self.region.start,
            self.region.end,
            self.region.region_id,
            self.alignment.cigar,
        )

    @classmethod
    def from_row(cls, fields: Sequence[str]) -> "CandidateMatch":
        """Build a match from one pre-joined row in output column order."""
        if len(fields) != len(OUTPUT_COLUMNS):
            raise ParseError(
                f"Expected {len(OUTPUT_COLUMNS)} columns, got {len(fields)}: {list(fields)!r}"
            )
        chrom, a0, a1, read_id, r0, r1, region_id, cigar = fields
        try:
            align_start, align_end = int(a0), int(a1)
            region_start, region_end = int(r0), int(r1)
        except ValueError as e:
            raise ParseError(f"Non-integer coordinate in row {list(fields)!r}") from e
        if align_start >= align_end or region_start >= region_end:
            raise ParseError(f"Empty or inverted interval in row {list(fields)!r}")
        return cls(
            read_id=read_id,
            alignment=AlignmentRecord(chrom=chrom, start=align_start, end=align_end, cigar=cigar),
            region=CandidateRegion(chrom=chrom, start=region_start, end=region_end, region_id=region_id),
        )
