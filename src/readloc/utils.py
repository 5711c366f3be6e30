from __future__ import annotations

import gzip
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, List, Sequence, TextIO

from .models import CandidateMatch

logger = logging.getLogger(__name__)


def open_textmaybe_gzip(path: str | Path, mode: str = "rt") -> TextIO:
    p = str(path)
    if p.endswith(".gz"):
        return gzip.open(p, mode)  # type: ignore[return-value]
    return open(p, mode)


def write_json(path: str | Path, obj: Any) -> None:
    with open(path, "wt", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, sort_keys=True)


def read_candidate_table(path: str | Path) -> List[CandidateMatch]:
    """Read pre-joined candidate rows (tab-separated, header-less, output column order)."""
    rows: List[CandidateMatch] = []
    with open_textmaybe_gzip(path, "rt") as fh:
        for line in fh:
            line = line.rstrip("\r\n")
            if not line or line.startswith("#"):
                continue
            rows.append(CandidateMatch.from_row(line.split("\t")))
    return rows


def write_rows_atomic(path: str | Path, rows: Iterable[Sequence[object]]) -> Path:
    """Write tab-separated rows without a header.

    Rows go to a temporary file next to ``path`` which is renamed into place
    only after every row was written.
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wt", encoding="utf-8", newline="\n") as fh:
            for row in rows:
                fh.write("\t".join(str(x) for x in row) + "\n")
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return path
