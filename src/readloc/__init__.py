"""readloc: resolve region ambiguity for aligned sequencing reads.

Public API is intentionally small; most users should use the CLI:

    readloc resolve -a sample.bam -r regions/ -o results/

"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
