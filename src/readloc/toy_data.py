from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Tuple

import pysam

from .utils import write_json

_CONTIGS = [("chr1", 1000), ("chr2", 1000)]

# name, contig, start0, cigar
_TOY_READS: List[Tuple[str, str, int, str]] = [
    ("read_single", "chr1", 100, "50M"),
    ("read_spliced", "chr1", 180, "20M100N30M"),
    ("read_tie", "chr1", 480, "20M"),
    ("read_insertion", "chr1", 700, "30M5I20M"),
    ("read_clipped", "chr2", 50, "10S40M2D8M"),
]

# file name -> BED6 rows (chrom, start, end, name, score, strand)
_TOY_REGIONS: Dict[str, List[Tuple[str, int, int, str]]] = {
    "genes_a.bed": [
        ("chr1", 90, 200, "geneA"),
        ("chr1", 400, 490, "geneC"),
        ("chr2", 0, 200, "geneE"),
    ],
    "genes_b.bed": [
        ("chr1", 250, 400, "geneB"),
        ("chr1", 490, 600, "geneD"),
        ("chr1", 650, 800, "geneF"),
    ],
}

# Rows ``readloc resolve`` is expected to write for the toy data.
TOY_EXPECTED_ROWS = [
    ("chr1", 100, 150, "read_single", 90, 200, "geneA", "50M"),
    ("chr1", 180, 330, "read_spliced", 250, 400, "geneB", "20M100N30M"),
    ("chr1", 480, 500, "read_tie", 400, 490, "geneC", "20M"),
    ("chr1", 700, 750, "read_insertion", 650, 800, "geneF", "30M5I20M"),
    ("chr2", 50, 100, "read_clipped", 0, 200, "geneE", "10S40M2D8M"),
]


def _query_length(cigar: str) -> int:
    a = pysam.AlignedSegment()
    a.cigarstring = cigar
    return int(a.infer_query_length())


def _make_read(
    name: str,
    reference_id: int,
    start0: int,
    cigar: str,
    mapq: int = 60,
) -> pysam.AlignedSegment:
    qlen = _query_length(cigar)
    a = pysam.AlignedSegment()
    a.query_name = name
    a.query_sequence = ("ACGT" * (qlen // 4 + 1))[:qlen]
    a.flag = 0
    a.reference_id = reference_id
    a.reference_start = start0
    a.mapping_quality = mapq
    a.cigarstring = cigar
    a.query_qualities = pysam.qualitystring_to_array("I" * qlen)
    return a


def make_toy_data(*, outdir: str | Path) -> Dict[str, str]:
    """Create a tiny BAM and annotation directory suitable for quick demos/tests.

    The outputs include:
    - toy.bam (+ .bai), five reads on chr1/chr2 (spliced, clipped, with an insertion)
    - regions/genes_a.bed and regions/genes_b.bed (+ a non-BED file that is ignored)

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = Path(outdir)
    outdir_p.mkdir(parents=True, exist_ok=True)

    header = {
        "HD": {"VN": "1.6", "SO": "coordinate"},
        "SQ": [{"SN": name, "LN": length} for name, length in _CONTIGS],
    }
    contig_ids = {name: i for i, (name, _) in enumerate(_CONTIGS)}

    reads = [
        _make_read(name, contig_ids[contig], start0, cigar)
        for name, contig, start0, cigar in _TOY_READS
    ]
    reads.sort(key=lambda r: (r.reference_id, r.reference_start))

    bam_path = outdir_p / "toy.bam"
    with pysam.AlignmentFile(str(bam_path), "wb", header=header) as bam:
        for r in reads:
            bam.write(r)
    pysam.index(str(bam_path))

    region_dir = outdir_p / "regions"
    region_dir.mkdir(exist_ok=True)
    for file_name, rows in _TOY_REGIONS.items():
        lines = [f"{c}\t{s}\t{e}\t{n}\t0\t+" for c, s, e, n in rows]
        (region_dir / file_name).write_text("\n".join(lines) + "\n", encoding="utf-8")
    (region_dir / "README.txt").write_text("Not an annotation file.\n", encoding="utf-8")

    summary = {
        "alignments_bam": str(bam_path),
        "region_dir": str(region_dir),
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
