"""Environment self-checks.

This module powers the ``readloc doctor`` CLI command.

Rationale
---------
The interval algebra is pure Python, but overlap detection is delegated to
``bedtools intersect``. A single command that pinpoints a missing bedtools
install saves a failed run.
"""

from __future__ import annotations

import logging
import platform
import shutil
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import pysam

from .external import run_command
from .pipeline import BEDTOOLS_HINT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckResult:
    name: str
    ok: bool
    detail: str
    howto: Optional[str] = None


def check_python() -> CheckResult:
    v = platform.python_version()
    return CheckResult(name="python", ok=True, detail=f"Python {v}")


PYSAM_MIN_VERSION = (0, 21)


def _version_tuple(version: str) -> Tuple[int, ...]:
    parts = []
    for piece in version.split(".")[:3]:
        digits = "".join(ch for ch in piece if ch.isdigit())
        if not digits:
            break
        parts.append(int(digits))
    return tuple(parts)


def check_pysam(version: Optional[str] = None) -> CheckResult:
    """Report whether the installed pysam meets ``PYSAM_MIN_VERSION``."""
    v = version if version is not None else str(pysam.__version__)
    wanted = ".".join(map(str, PYSAM_MIN_VERSION))
    if _version_tuple(v) < PYSAM_MIN_VERSION:
        return CheckResult(
            name="pysam",
            ok=False,
            detail=f"pysam {v} is older than {wanted}",
            howto=f"pip install 'pysam>={wanted}'",
        )
    return CheckResult(name="pysam", ok=True, detail=f"pysam {v}")


def check_bedtools() -> CheckResult:
    p = shutil.which("bedtools")
    if p is None:
        return CheckResult(name="bedtools", ok=False, detail="not found in PATH", howto=BEDTOOLS_HINT)
    try:
        cp = run_command(["bedtools", "--version"])
    except Exception as e:
        return CheckResult(
            name="bedtools",
            ok=False,
            detail=f"bedtools present but not usable: {e}",
            howto=BEDTOOLS_HINT,
        )
    version = cp.stdout.strip() if isinstance(cp.stdout, str) else ""
    return CheckResult(name="bedtools", ok=True, detail=f"{p} ({version or 'version unknown'})")


def collect_checks() -> Dict[str, CheckResult]:
    """Run all checks and return a mapping name->result."""
    checks: Dict[str, CheckResult] = {}
    checks["python"] = check_python()
    checks["pysam"] = check_pysam()
    checks["bedtools"] = check_bedtools()
    return checks
