"""Reconstruct candidate matches from ``bedtools intersect`` output.

For each annotation file two intersections are run against the alignment BAM:

- ``-wa -split -ubam``: the overlapping alignments themselves, read with pysam
  to recover each read's CIGAR.
- ``-wo -split -bed``: one text row per (alignment, region) overlap. The first
  12 columns are the alignment as BED12, followed by the region record and
  the overlap length.

The two are joined on (read name, chromosome), keeping pairs whose alignment
start agrees. The region rows supply the alignment end; whether that end is
consistent with the CIGAR is checked later, during coverage scoring.
"""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple

import pysam
from tqdm import tqdm

from .errors import ParseError
from .external import run_command
from .models import AlignmentRecord, CandidateMatch, CandidateRegion

logger = logging.getLogger(__name__)


# Column positions in ``bedtools intersect -wo -bed`` rows.
_COL_CHROM = 0
_COL_ALIGN_START = 1
_COL_ALIGN_END = 2
_COL_READ = 3
_COL_REGION_CHROM = 12
_COL_REGION_START = 13
_COL_REGION_END = 14
_COL_REGION_ID = 15
_MIN_FIELDS = _COL_REGION_ID + 2  # region id plus trailing overlap column


@dataclass(frozen=True)
class AlignmentHit:
    """An alignment reported by the ``-ubam`` intersection."""

    read_id: str
    chrom: str
    start: int  # 0-based
    cigar: str


@dataclass(frozen=True)
class RegionHit:
    """One (alignment, region) overlap row from the ``-wo -bed`` intersection."""

    read_id: str
    chrom: str
    align_start: int
    align_end: int
    region: CandidateRegion
    overlap: int


def build_intersect_commands(
    *,
    alignments: str | Path,
    regions_bed: str | Path,
    stranded: bool = True,
) -> Dict[str, List[str]]:
    """Build the two bedtools commands run per annotation file."""
    base = ["bedtools", "intersect"]
    if stranded:
        base.append("-s")
    base += ["-a", str(alignments), "-b", str(regions_bed)]
    return {
        "cmd_bam": base + ["-wa", "-split", "-ubam"],
        "cmd_bed": base + ["-wo", "-split", "-bed"],
    }


def alignment_contigs(bam_path: str | Path) -> List[str]:
    with pysam.AlignmentFile(str(bam_path), "rb") as bam:
        return list(bam.header.references)


def read_alignment_hits(bam_path: str | Path) -> List[AlignmentHit]:
    """Read (name, contig, start, CIGAR) for every mapped record of a BAM."""
    hits: List[AlignmentHit] = []
    with pysam.AlignmentFile(str(bam_path), "rb", check_sq=False) as bam:
        for read in bam.fetch(until_eof=True):
            if read.is_unmapped or read.cigarstring is None:
                continue
            hits.append(
                AlignmentHit(
                    read_id=str(read.query_name),
                    chrom=str(read.reference_name),
                    start=int(read.reference_start),
                    cigar=read.cigarstring,
                )
            )
    return hits


def parse_region_hit(line: str) -> RegionHit:
    fields = line.rstrip("\r\n").split("\t")
    if len(fields) < _MIN_FIELDS:
        raise ParseError(
            f"Expected at least {_MIN_FIELDS} columns in intersect output, got {len(fields)}: {line!r}"
        )
    try:
        align_start = int(fields[_COL_ALIGN_START])
        align_end = int(fields[_COL_ALIGN_END])
        region_start = int(fields[_COL_REGION_START])
        region_end = int(fields[_COL_REGION_END])
        overlap = int(fields[-1])
    except ValueError as e:
        raise ParseError(f"Non-integer coordinate in intersect output: {line!r}") from e
    if align_start >= align_end or region_start >= region_end:
        raise ParseError(f"Empty or inverted interval in intersect output: {line!r}")

    return RegionHit(
        read_id=fields[_COL_READ],
        chrom=fields[_COL_CHROM],
        align_start=align_start,
        align_end=align_end,
        region=CandidateRegion(
            chrom=fields[_COL_REGION_CHROM],
            start=region_start,
            end=region_end,
            region_id=fields[_COL_REGION_ID],
        ),
        overlap=overlap,
    )


def parse_region_hits(text: str) -> List[RegionHit]:
    return [parse_region_hit(line) for line in text.splitlines() if line.strip()]


def join_candidate_matches(
    region_hits: Sequence[RegionHit],
    alignment_hits: Iterable[AlignmentHit],
) -> List[CandidateMatch]:
    """Inner join on (read, chrom) with matching alignment start.

    Output follows region-hit order, then alignment-hit order.
    """
    by_key: Dict[Tuple[str, str], List[AlignmentHit]] = {}
    for hit in alignment_hits:
        by_key.setdefault((hit.read_id, hit.chrom), []).append(hit)

    matches: List[CandidateMatch] = []
    unmatched = 0
    for rh in region_hits:
        joined = False
        for ah in by_key.get((rh.read_id, rh.chrom), ()):
            if ah.start != rh.align_start:
                continue
            matches.append(
                CandidateMatch(
                    read_id=rh.read_id,
                    alignment=AlignmentRecord(
                        chrom=rh.chrom, start=rh.align_start, end=rh.align_end, cigar=ah.cigar
                    ),
                    region=rh.region,
                )
            )
            joined = True
        if not joined:
            unmatched += 1

    if unmatched:
        logger.debug("%d region overlap rows had no matching alignment record", unmatched)
    return matches


def intersect_region_file(
    *,
    alignments: str | Path,
    regions_bed: str | Path,
    workdir: str | Path,
    stranded: bool = True,
) -> List[CandidateMatch]:
    """Run both intersections for one annotation file and join them."""
    regions_bed = Path(regions_bed)
    cmds = build_intersect_commands(alignments=alignments, regions_bed=regions_bed, stranded=stranded)

    cp_bam = run_command(cmds["cmd_bam"], text=False)
    alignment_hits: List[AlignmentHit] = []
    if cp_bam.stdout:
        hits_bam = Path(workdir) / f"{regions_bed.stem}.hits.bam"
        hits_bam.write_bytes(cp_bam.stdout)
        alignment_hits = read_alignment_hits(hits_bam)

    cp_bed = run_command(cmds["cmd_bed"], text=True)
    region_hits = parse_region_hits(cp_bed.stdout or "")

    return join_candidate_matches(region_hits, alignment_hits)


def collect_candidate_matches(
    *,
    alignments: str | Path,
    region_files: Sequence[Path],
    stranded: bool = True,
    progress: bool = False,
) -> Tuple[List[CandidateMatch], Dict[str, int]]:
    """Concatenate candidate matches over all annotation files, in the given order.

    Returns the rows and the number of rows contributed by each file name.
    """
    matches: List[CandidateMatch] = []
    per_file: Dict[str, int] = {}

    with tempfile.TemporaryDirectory(prefix="readloc.") as tmp:
        it: Iterable[Path] = region_files
        if progress:
            it = tqdm(it, total=len(region_files), unit="file", desc="Intersecting")
        for regions_bed in it:
            logger.info("Screening overlaps against %s", regions_bed.name)
            rows = intersect_region_file(
                alignments=alignments,
                regions_bed=regions_bed,
                workdir=tmp,
                stranded=stranded,
            )
            per_file[regions_bed.name] = len(rows)
            matches.extend(rows)
            logger.info("%s: %d candidate rows", regions_bed.name, len(rows))

    return matches, per_file
