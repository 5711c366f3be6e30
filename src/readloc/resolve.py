from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from .cigar import aligned_footprint, coverage
from .models import CandidateMatch
from .validation import CHROMOSOME_RANKS, chromosome_rank

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    """Best candidate chosen for one ambiguous read."""

    match: CandidateMatch
    score: int
    scores: Tuple[int, ...]  # one per candidate, in group order

    @property
    def tied(self) -> bool:
        return self.scores.count(self.score) > 1


def score_candidate(match: CandidateMatch) -> int:
    """Coverage of a match's own region by its own alignment footprint."""
    a, r = match.alignment, match.region
    return coverage(a.start, a.end, r.start, r.end, a.cigar)


def partition_candidates(
    matches: Sequence[CandidateMatch],
) -> Tuple[List[CandidateMatch], List[CandidateMatch]]:
    """Split rows into (unambiguous, ambiguous) by how often their read_id occurs.

    Row order is preserved within both outputs.
    """
    counts = Counter(m.read_id for m in matches)
    unambiguous = [m for m in matches if counts[m.read_id] == 1]
    ambiguous = [m for m in matches if counts[m.read_id] > 1]
    return unambiguous, ambiguous


def group_by_read(rows: Iterable[CandidateMatch]) -> Dict[str, List[CandidateMatch]]:
    """Group rows by read_id; groups and rows keep first-seen order."""
    groups: Dict[str, List[CandidateMatch]] = {}
    for row in rows:
        groups.setdefault(row.read_id, []).append(row)
    return groups


def select_best_match(group: Sequence[CandidateMatch]) -> Selection:
    """Stable argmax of coverage over one read's candidates."""
    if not group:
        raise ValueError("Cannot select from an empty candidate group")
    scores = tuple(score_candidate(m) for m in group)
    best_idx = 0
    for i, s in enumerate(scores):
        # strict > keeps the earliest candidate on ties
        if s > scores[best_idx]:
            best_idx = i
    return Selection(match=group[best_idx], score=scores[best_idx], scores=scores)


def select_best_matches(
    ambiguous: Sequence[CandidateMatch],
    *,
    progress: bool = False,
) -> List[Selection]:
    """One Selection per distinct ambiguous read_id, in first-seen order."""
    groups = group_by_read(ambiguous)
    it: Iterable[List[CandidateMatch]] = groups.values()
    if progress:
        it = tqdm(it, total=len(groups), unit="read", desc="Resolving ambiguous reads")
    return [select_best_match(group) for group in it]


def assemble_results(
    unambiguous: Sequence[CandidateMatch],
    selected: Sequence[CandidateMatch],
    ranks: Mapping[str, int],
) -> List[CandidateMatch]:
    """Union both row sets and order them by chromosome rank and coordinates.

    The sort is stable, so rows with identical keys keep union order
    (unambiguous rows first, then selected rows in group order).
    """

    def sort_key(m: CandidateMatch) -> Tuple[int, int, int, int, int]:
        return (
            chromosome_rank(m.chrom, ranks),
            m.alignment.start,
            m.alignment.end,
            m.region.start,
            m.region.end,
        )

    return sorted([*unambiguous, *selected], key=sort_key)


def resolve_candidates(
    matches: Sequence[CandidateMatch],
    *,
    ranks: Mapping[str, int] = CHROMOSOME_RANKS,
    progress: bool = False,
) -> Tuple[List[CandidateMatch], Dict[str, object]]:
    """Main workhorse: partition, select, assemble, and return (rows, summary)."""
    t0 = time.time()

    unambiguous, ambiguous = partition_candidates(matches)
    logger.info(
        "%d candidate rows: %d unambiguous, %d ambiguous",
        len(matches),
        len(unambiguous),
        len(ambiguous),
    )

    selections = select_best_matches(ambiguous, progress=progress)
    rows = assemble_results(unambiguous, [s.match for s in selections], ranks)

    per_read = Counter(m.read_id for m in matches)
    candidates_per_read_hist: Dict[int, int] = dict(sorted(Counter(per_read.values()).items()))

    # Fraction of each winner's aligned footprint that lies inside its region.
    fractions = []
    for s in selections:
        a = s.match.alignment
        footprint = aligned_footprint(a.start, a.end, a.cigar)
        aligned = sum(end - start for start, end in footprint)
        fractions.append(s.score / aligned)
    fraction_bins = np.linspace(0.0, 1.0, 21)
    fraction_counts = np.histogram(np.asarray(fractions, dtype=float), bins=fraction_bins)[0]

    counts = {
        "candidates_total": len(matches),
        "reads_total": len(per_read),
        "reads_unambiguous": len(unambiguous),
        "reads_ambiguous": len(selections),
        "ambiguous_ties": sum(1 for s in selections if s.tied),
        "zero_coverage_winners": sum(1 for s in selections if s.score == 0),
        "rows_written": len(rows),
    }

    summary: Dict[str, object] = {
        "counts": counts,
        "candidates_per_read_hist": candidates_per_read_hist,
        "coverage_fraction_hist": {
            "bin_edges": fraction_bins.tolist(),
            "counts": fraction_counts.tolist(),
        },
        "runtime_seconds": float(time.time() - t0),
    }
    return rows, summary
