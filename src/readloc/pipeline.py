"""End-to-end run: annotation directory + BAM -> one region per read.

The resolved table is written only after every check and every computation
succeeded, so a failed run leaves no output behind. Report artefacts, when
requested, are written after the table.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from . import __version__
from .external import ensure_executable_in_path
from .intersect import alignment_contigs, build_intersect_commands, collect_candidate_matches
from .models import CandidateMatch
from .plotting import plot_candidates_per_read, plot_coverage_fraction_hist
from .report import render_report
from .resolve import resolve_candidates
from .utils import read_candidate_table, write_json, write_rows_atomic
from .validation import check_input_file, check_output_dir, detect_contig_style, list_region_files

logger = logging.getLogger(__name__)


OUTPUT_SUFFIX = ".reloc.bed"

BEDTOOLS_HINT = (
    "Ubuntu: sudo apt-get install -y bedtools\n"
    "Conda/mamba: mamba install -c bioconda bedtools"
)


def task_name(path: str | Path) -> str:
    """Base name used for outputs: ``sample.bam`` -> ``sample``."""
    p = Path(path)
    if p.suffix == ".gz":
        p = Path(p.stem)
    return p.stem


def output_path(input_path: str | Path, outdir: str | Path) -> Path:
    return Path(outdir) / f"{task_name(input_path)}{OUTPUT_SUFFIX}"


def relocate(
    *,
    alignments: str | Path,
    region_dir: str | Path,
    outdir: str | Path = ".",
    stranded: bool = True,
    report: bool = False,
    progress: bool = True,
) -> Dict[str, Any]:
    """Intersect ``alignments`` with every annotation file and write the resolved table."""
    ensure_executable_in_path("bedtools", hint=BEDTOOLS_HINT)

    alignments = check_input_file(alignments, what="Alignment file")

    region_files = list_region_files(Path(region_dir).expanduser())
    out_dir = check_output_dir(Path(outdir).expanduser())

    if region_files:
        style = detect_contig_style(alignment_contigs(alignments))
        if style == "ensembl":
            logger.warning(
                "Alignment contigs look Ensembl-style (e.g. '1' instead of 'chr1'); "
                "only UCSC names chr1-chr22, chrX, chrY and chrM can be ordered."
            )

    matches, per_file = collect_candidate_matches(
        alignments=alignments,
        region_files=region_files,
        stranded=stranded,
        progress=progress,
    )

    run_info: Dict[str, Any] = {
        "alignments": str(alignments),
        "region_dir": str(Path(region_dir).expanduser().resolve()),
        "region_files": [p.name for p in region_files],
        "candidates_per_file": per_file,
        "stranded": bool(stranded),
    }
    return _resolve_and_write(
        matches,
        out_bed=output_path(alignments, out_dir),
        run_info=run_info,
        report=report,
        progress=progress,
    )


def relocate_candidates(
    *,
    candidates: str | Path,
    outdir: str | Path = ".",
    report: bool = False,
    progress: bool = True,
) -> Dict[str, Any]:
    """Resolve a pre-joined candidate table instead of running bedtools."""
    candidates = check_input_file(candidates, what="Candidate table")
    out_dir = check_output_dir(Path(outdir).expanduser())
    matches = read_candidate_table(candidates)

    run_info: Dict[str, Any] = {"candidates": str(candidates)}
    return _resolve_and_write(
        matches,
        out_bed=output_path(candidates, out_dir),
        run_info=run_info,
        report=report,
        progress=progress,
    )


def _resolve_and_write(
    matches: Sequence[CandidateMatch],
    *,
    out_bed: Path,
    run_info: Dict[str, Any],
    report: bool,
    progress: bool,
) -> Dict[str, Any]:
    rows, summary = resolve_candidates(matches, progress=progress)

    write_rows_atomic(out_bed, (m.to_row() for m in rows))
    logger.info("Results in %s (%d rows)", out_bed, len(rows))

    run: Dict[str, Any] = dict(run_info)
    run.update(summary)
    run["output_bed"] = str(out_bed)

    if report:
        run["report_html"] = str(write_run_report(run, out_bed=out_bed))
    return run


def write_run_report(run: Dict[str, Any], *, out_bed: Path) -> Path:
    """Write ``<stem>.reloc.summary.json``, plots, and ``<stem>.reloc.report.html``."""
    base = out_bed.with_suffix("")  # <dir>/<stem>.reloc
    summary_json = base.with_name(base.name + ".summary.json")
    report_html = base.with_name(base.name + ".report.html")
    plots_dir = base.with_name(base.name + "_plots")
    plots_dir.mkdir(parents=True, exist_ok=True)

    run["summary_json"] = str(summary_json)
    write_json(summary_json, run)

    candidates_png = plots_dir / "candidates_per_read.png"
    fraction_png = plots_dir / "coverage_fraction_hist.png"
    plot_candidates_per_read(candidates_hist=run["candidates_per_read_hist"], out_png=candidates_png)
    plot_coverage_fraction_hist(
        bin_edges=run["coverage_fraction_hist"]["bin_edges"],
        counts=run["coverage_fraction_hist"]["counts"],
        out_png=fraction_png,
    )

    plots_rel = {
        "candidates_per_read": str(Path(plots_dir.name) / candidates_png.name),
        "coverage_fraction_hist": str(Path(plots_dir.name) / fraction_png.name),
    }
    path = render_report(out_html=report_html, version=__version__, run=run, plots=plots_rel)
    logger.info("Report written: %s", path)
    return path


def planned_commands(
    *,
    alignments: str | Path,
    region_dir: str | Path,
    stranded: bool = True,
) -> List[List[str]]:
    """bedtools commands a ``relocate`` run would execute, in order."""
    cmds: List[List[str]] = []
    for regions_bed in list_region_files(Path(region_dir).expanduser()):
        c = build_intersect_commands(alignments=alignments, regions_bed=regions_bed, stranded=stranded)
        cmds.extend([c["cmd_bam"], c["cmd_bed"]])
    return cmds
