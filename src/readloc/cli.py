from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .doctor import collect_checks
from .external import ExternalCommandError, cmd_to_str
from .pipeline import output_path, planned_commands, relocate, relocate_candidates
from .toy_data import make_toy_data
from .validation import check_input_file, check_output_dir, list_region_files


def _setup_logging(verbosity: int, *, logfile: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)

    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    if isinstance(err, ExternalCommandError):
        msg = str(err)
    else:
        msg = f"{err.__class__.__name__}: {err}"

    sys.stderr.write(msg + "\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    return 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="readloc",
        description=(
            "readloc: remove region ambiguity for aligned reads. Each read overlapping "
            "several annotated regions is assigned to the one covering most of its aligned bases."
        ),
    )
    p.add_argument("--version", action="version", version=f"readloc {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # -----------------
    # resolve
    # -----------------
    r = sub.add_parser(
        "resolve",
        help="Assign every read overlapping annotation regions to exactly one region.",
    )
    src = r.add_mutually_exclusive_group(required=True)
    src.add_argument(
        "-a",
        "--alignments",
        help="Aligned reads (BAM).",
    )
    src.add_argument(
        "--candidates",
        help=(
            "Pre-joined candidate table instead of BAM + regions "
            "(tab-separated: chrom, align_start, align_end, read, region_start, region_end, region, cigar)."
        ),
    )
    r.add_argument(
        "-r",
        "--regions",
        default=None,
        help="Directory of region BED files (one region set per *.bed file). Required with -a.",
    )
    r.add_argument("-o", "--outdir", default=".", help="Existing output directory (default: current).")
    r.add_argument(
        "--unstranded",
        action="store_true",
        help="Report overlaps regardless of strand (drops bedtools -s).",
    )
    r.add_argument(
        "--report",
        action="store_true",
        help="Also write <name>.reloc.summary.json and <name>.reloc.report.html with plots.",
    )
    r.add_argument("--no-progress", action="store_true", help="Disable progress bars.")
    r.add_argument("--dry-run", action="store_true", help="Validate inputs and print planned commands.")
    r.add_argument("--log-file", default=None, help="Also write log messages to this file.")
    r.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")

    # -----------------
    # make-toy-data
    # -----------------
    t = sub.add_parser(
        "make-toy-data",
        help="Generate a tiny BAM and annotation directory for demos/tests.",
    )
    t.add_argument("--outdir", required=True, help="Output directory for toy data.")
    t.add_argument("--dry-run", action="store_true", help="Validate paths without writing files.")

    # -----------------
    # doctor
    # -----------------
    d = sub.add_parser(
        "doctor",
        help="Check your environment for required external tools (bedtools).",
    )
    d.add_argument("--dry-run", action="store_true", help="Print checks without exiting nonzero.")
    d.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")

    return p


def cmd_resolve(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    if args.alignments is not None and args.regions is None:
        parser.error("-r/--regions is required with -a/--alignments")
    if args.candidates is not None and args.regions is not None:
        parser.error("-r/--regions cannot be combined with --candidates")

    log_path = Path(args.log_file).expanduser().resolve() if args.log_file else None
    _setup_logging(args.verbose, logfile=None if args.dry_run else log_path)

    logger = logging.getLogger("readloc")
    logger.info("readloc %s", __version__)

    source = args.alignments if args.alignments is not None else args.candidates
    try:
        if args.dry_run:
            what = "Alignment file" if args.alignments is not None else "Candidate table"
            source_path = check_input_file(source, what=what)
            out_dir = check_output_dir(Path(args.outdir).expanduser())
            print("Dry-run: inputs look OK.")
            if args.alignments is not None:
                files = list_region_files(Path(args.regions).expanduser())
                print(f"Annotation files: {len(files)}")
                cmds = planned_commands(
                    alignments=source_path,
                    region_dir=args.regions,
                    stranded=not bool(args.unstranded),
                )
                print("Planned commands:")
                for cmd in cmds:
                    print("  " + cmd_to_str(cmd))
            else:
                print("No external commands required for --candidates.")
            print("Planned outputs:")
            print(f"  {output_path(source, out_dir)}")
            return 0

        if args.alignments is not None:
            run = relocate(
                alignments=args.alignments,
                region_dir=args.regions,
                outdir=args.outdir,
                stranded=not bool(args.unstranded),
                report=bool(args.report),
                progress=not bool(args.no_progress),
            )
        else:
            run = relocate_candidates(
                candidates=args.candidates,
                outdir=args.outdir,
                report=bool(args.report),
                progress=not bool(args.no_progress),
            )

        print(run["output_bed"])
        return 0
    except Exception as e:
        return _handle_error(e, log_path=log_path)


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    if args.dry_run:
        print(f"Would write toy data into: {outdir}")
        return 0

    summary = make_toy_data(outdir=outdir)
    print(json.dumps(summary, indent=2))
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    _setup_logging(args.verbose, logfile=None)

    checks = collect_checks()

    lines = []
    ok_all = True
    for name, r in checks.items():
        status = "OK" if r.ok else "MISSING"
        lines.append(f"{name:9s} : {status:7s}  {r.detail}")
        if not r.ok:
            ok_all = False

    print("\n".join(lines))

    for name, r in checks.items():
        if not r.ok and r.howto:
            print("\n---")
            print(f"How to install/fix '{name}':")
            print(r.howto)

    if args.dry_run:
        return 0
    return 0 if ok_all else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "resolve":
        return cmd_resolve(args, parser)
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)
    if args.cmd == "doctor":
        return cmd_doctor(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
