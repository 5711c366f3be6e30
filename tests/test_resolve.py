from types import MappingProxyType

import pytest

from readloc.errors import IntegrityError, ParseError
from readloc.models import AlignmentRecord, CandidateMatch, CandidateRegion
from readloc.resolve import (
    assemble_results,
    group_by_read,
    partition_candidates,
    resolve_candidates,
    score_candidate,
    select_best_match,
    select_best_matches,
)
from readloc.validation import CHROMOSOME_RANKS, chromosome_rank


def make_match(
    read_id: str,
    start: int,
    end: int,
    cigar: str,
    region_start: int,
    region_end: int,
    region_id: str,
    chrom: str = "chr1",
) -> CandidateMatch:
    return CandidateMatch(
        read_id=read_id,
        alignment=AlignmentRecord(chrom=chrom, start=start, end=end, cigar=cigar),
        region=CandidateRegion(chrom=chrom, start=region_start, end=region_end, region_id=region_id),
    )


def test_chromosome_ranks():
    assert chromosome_rank("chr1") == 1
    assert chromosome_rank("chr22") == 22
    assert chromosome_rank("chrX") == 97
    assert chromosome_rank("chrY") == 98
    assert chromosome_rank("chrM") == 99
    with pytest.raises(ParseError):
        chromosome_rank("chrZ")
    with pytest.raises(TypeError):
        CHROMOSOME_RANKS["chrZ"] = 100  # type: ignore[index]


def test_partition_is_total_and_disjoint():
    rows = [
        make_match("r1", 0, 10, "10M", 0, 10, "a"),
        make_match("r2", 0, 10, "10M", 0, 10, "a"),
        make_match("r1", 0, 10, "10M", 5, 20, "b"),
        make_match("r3", 50, 60, "10M", 40, 70, "c"),
    ]
    unambiguous, ambiguous = partition_candidates(rows)
    assert [m.read_id for m in unambiguous] == ["r2", "r3"]
    assert [m.region.region_id for m in ambiguous] == ["a", "b"]
    assert {m.read_id for m in unambiguous}.isdisjoint({m.read_id for m in ambiguous})
    assert len(unambiguous) + len(ambiguous) == len(rows)


def test_group_by_read_keeps_first_seen_order():
    rows = [
        make_match("r2", 0, 10, "10M", 0, 10, "x"),
        make_match("r1", 0, 10, "10M", 0, 10, "y"),
        make_match("r2", 0, 10, "10M", 0, 10, "z"),
    ]
    groups = group_by_read(rows)
    assert list(groups) == ["r2", "r1"]
    assert [m.region.region_id for m in groups["r2"]] == ["x", "z"]


def test_select_picks_highest_coverage():
    group = [
        make_match("r1", 180, 330, "20M100N30M", 90, 200, "geneA"),
        make_match("r1", 180, 330, "20M100N30M", 250, 400, "geneB"),
    ]
    sel = select_best_match(group)
    assert sel.match.region.region_id == "geneB"
    assert sel.score == 30
    assert sel.scores == (20, 30)
    assert not sel.tied


def test_scenario_b_tie_goes_to_first_occurrence():
    first = make_match("r1", 0, 13, "5M3N5M", 0, 5, "A")
    second = make_match("r1", 0, 13, "5M3N5M", 8, 13, "B")
    assert select_best_match([first, second]).match is first
    assert select_best_match([second, first]).match is second
    assert select_best_match([first, second]).tied


def test_selector_is_deterministic_under_interleaving():
    r1 = [make_match("r1", 0, 13, "5M3N5M", 0, 5, "A"), make_match("r1", 0, 13, "5M3N5M", 8, 13, "B")]
    r2 = [make_match("r2", 0, 10, "10M", 0, 4, "C"), make_match("r2", 0, 10, "10M", 6, 10, "D")]
    interleaved = [r1[0], r2[0], r1[1], r2[1]]
    grouped = [r2[0], r2[1], r1[0], r1[1]]

    def winners(rows):
        return {s.match.read_id: s.match.region.region_id for s in select_best_matches(rows)}

    assert winners(interleaved) == winners(grouped) == {"r1": "A", "r2": "C"}


def test_select_one_per_ambiguous_read():
    rows = [
        make_match("r1", 0, 10, "10M", 0, 3, "a"),
        make_match("r2", 0, 10, "10M", 0, 3, "a"),
        make_match("r1", 0, 10, "10M", 0, 8, "b"),
        make_match("r2", 0, 10, "10M", 0, 9, "c"),
        make_match("r1", 0, 10, "10M", 0, 5, "d"),
    ]
    selections = select_best_matches(rows)
    assert [(s.match.read_id, s.match.region.region_id) for s in selections] == [("r1", "b"), ("r2", "c")]


def test_select_propagates_integrity_error():
    group = [
        make_match("r1", 0, 11, "10M", 0, 10, "a"),
        make_match("r1", 0, 11, "10M", 0, 5, "b"),
    ]
    with pytest.raises(IntegrityError):
        select_best_match(group)


def test_assemble_orders_by_rank_then_coordinates():
    rows = [
        make_match("x", 10, 20, "10M", 0, 30, "rx", chrom="chrX"),
        make_match("b", 10, 20, "10M", 5, 30, "r2", chrom="chr2"),
        make_match("c", 10, 20, "10M", 0, 30, "r3", chrom="chr10"),
        make_match("a", 10, 20, "10M", 0, 30, "r1", chrom="chr2"),
        make_match("d", 5, 20, "15M", 0, 30, "r4", chrom="chr2"),
    ]
    out = assemble_results(rows[:3], rows[3:], CHROMOSOME_RANKS)
    assert [m.read_id for m in out] == ["d", "a", "b", "c", "x"]


def test_assemble_uses_given_rank_table():
    ranks = MappingProxyType({"chr2": 1, "chr1": 2})
    rows = [make_match("a", 0, 10, "10M", 0, 10, "r", chrom="chr1"), make_match("b", 0, 10, "10M", 0, 10, "r", chrom="chr2")]
    assert [m.read_id for m in assemble_results(rows, [], ranks)] == ["b", "a"]


def test_scenario_c_unknown_chromosome():
    rows = [make_match("r1", 0, 10, "10M", 0, 10, "a", chrom="chrZ")]
    with pytest.raises(ParseError):
        resolve_candidates(rows)


def test_scenario_a_single_candidate_passes_through():
    m = make_match("r1", 100, 110, "10M", 100, 110, "geneA")
    assert score_candidate(m) == 10
    rows, summary = resolve_candidates([m])
    assert rows == [m]
    assert rows[0].to_row() == ("chr1", 100, 110, "r1", 100, 110, "geneA", "10M")
    assert summary["counts"]["reads_unambiguous"] == 1
    assert summary["counts"]["reads_ambiguous"] == 0


def test_unambiguous_rows_are_not_scored():
    # span disagrees with the CIGAR, but single-candidate reads pass through untouched
    m = make_match("r1", 100, 120, "10M", 100, 110, "geneA")
    rows, _ = resolve_candidates([m])
    assert rows == [m]


def test_resolve_one_row_per_read_and_summary():
    rows = [
        make_match("r1", 0, 13, "5M3N5M", 0, 5, "A"),
        make_match("r1", 0, 13, "5M3N5M", 8, 13, "B"),
        make_match("r2", 100, 150, "50M", 90, 200, "C"),
        make_match("r3", 300, 310, "10M", 0, 300, "D"),
        make_match("r3", 300, 310, "10M", 305, 400, "E"),
        make_match("r3", 300, 310, "10M", 0, 302, "F"),
    ]
    out, summary = resolve_candidates(rows)
    assert [m.to_row()[3] for m in out] == ["r1", "r2", "r3"]
    assert [m.region.region_id for m in out] == ["A", "C", "E"]

    counts = summary["counts"]
    assert counts["candidates_total"] == 6
    assert counts["reads_total"] == 3
    assert counts["reads_unambiguous"] == 1
    assert counts["reads_ambiguous"] == 2
    assert counts["ambiguous_ties"] == 1
    assert counts["zero_coverage_winners"] == 0
    assert counts["rows_written"] == 3
    assert summary["candidates_per_read_hist"] == {1: 1, 2: 1, 3: 1}
    assert sum(summary["coverage_fraction_hist"]["counts"]) == 2


def test_resolve_empty_input():
    out, summary = resolve_candidates([])
    assert out == []
    assert summary["counts"]["rows_written"] == 0
