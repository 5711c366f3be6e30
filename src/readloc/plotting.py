from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping

import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def plot_coverage_fraction_hist(
    *,
    bin_edges: List[float],
    counts: List[int],
    out_png: str | Path,
    title: str = "Winning region coverage (ambiguous reads)",
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    widths = [bin_edges[i + 1] - bin_edges[i] for i in range(len(counts))]
    centers = [bin_edges[i] + widths[i] / 2.0 for i in range(len(counts))]

    plt.figure()
    plt.bar(centers, counts, width=widths, align="center")
    plt.xlabel("Fraction of aligned bases inside chosen region")
    plt.ylabel("Read count")
    plt.title(title)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()


def plot_candidates_per_read(
    *,
    candidates_hist: Mapping[int, int],
    out_png: str | Path,
    title: str = "Candidate regions per read",
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    # JSON round-trips turn int keys into strings
    items: Dict[int, int] = {int(k): int(v) for k, v in candidates_hist.items()}
    xs = sorted(items)
    ys = [items[x] for x in xs]

    plt.figure()
    plt.bar([str(x) for x in xs], ys)
    plt.xlabel("Candidate regions")
    plt.ylabel("Read count")
    plt.title(title)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()
