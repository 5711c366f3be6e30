from __future__ import annotations

import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping

from .errors import InputDirectoryError, ParseError

logger = logging.getLogger(__name__)


_UCSC_PREFIX = "chr"

REGION_SUFFIX = ".bed"


def _build_chromosome_ranks() -> Mapping[str, int]:
    ranks: Dict[str, int] = {f"{_UCSC_PREFIX}{i}": i for i in range(1, 23)}
    ranks["chrX"] = 97
    ranks["chrY"] = 98
    ranks["chrM"] = 99
    return MappingProxyType(ranks)


CHROMOSOME_RANKS: Mapping[str, int] = _build_chromosome_ranks()


def chromosome_rank(chrom: str, ranks: Mapping[str, int] = CHROMOSOME_RANKS) -> int:
    """Numeric sort rank of a chromosome; raise ParseError if unknown."""
    try:
        return ranks[chrom]
    except KeyError:
        raise ParseError(f"Unknown chromosome name: {chrom!r}") from None


def check_annotation_dir(path: str | Path) -> Path:
    """Ensure the annotation directory exists and can be listed."""
    d = Path(path)
    if not d.is_dir():
        raise InputDirectoryError(f"Annotation directory does not exist: {d}")
    if not os.access(d, os.R_OK | os.X_OK):
        raise InputDirectoryError(f"Annotation directory is not readable: {d}")
    return d.resolve()


def check_output_dir(path: str | Path) -> Path:
    """Ensure the output directory already exists; it is never created."""
    d = Path(path)
    if not d.is_dir():
        raise InputDirectoryError(f"Output directory does not exist: {d}")
    return d.resolve()


def list_region_files(region_dir: str | Path, *, suffix: str = REGION_SUFFIX) -> List[Path]:
    """Annotation files in ``region_dir`` with ``suffix``, sorted by name."""
    d = check_annotation_dir(region_dir)
    try:
        entries = list(d.iterdir())
    except OSError as e:
        raise InputDirectoryError(f"Failed to read annotation directory {d}: {e}") from e
    files = sorted((p for p in entries if p.is_file() and p.suffix == suffix), key=lambda p: p.name)
    if not files:
        logger.warning("No *%s annotation files found in %s", suffix, d)
    return files


def detect_contig_style(contigs: Iterable[str]) -> str:
    """Infer contig style: 'ucsc' if most contigs start with 'chr', else 'ensembl'."""
    names = [c for c in contigs if c]
    if not names:
        return "unknown"
    chr_like = [c for c in names if c.startswith(_UCSC_PREFIX)]
    if len(chr_like) >= max(1, int(0.5 * len(names))):
        return "ucsc"
    return "ensembl"


def check_input_file(path: str | Path, *, what: str = "Input file") -> Path:
    """Ensure an input file exists; raise FileNotFoundError otherwise."""
    p = Path(path).expanduser()
    if not p.is_file():
        raise FileNotFoundError(f"{what} not found: {p}")
    return p.resolve()
