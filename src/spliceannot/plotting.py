from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def plot_annotation_counts(
    *,
    annotation_counts: Dict[str, int],
    out_png: str | Path,
    title: str = "Transcript-level annotations",
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    labels = list(annotation_counts)
    values = [int(annotation_counts[k]) for k in labels]

    plt.figure()
    plt.bar(labels, values)
    plt.ylabel("Variant-transcript pairs")
    plt.title(title)
    plt.xticks(rotation=15, ha="right")
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()


def plot_distance_hist(
    *,
    counts: List[int],
    out_png: str | Path,
    title: str = "Distance to nearest exon boundary",
) -> None:
    """Bar plot of the distance histogram from ``annotate_vcf``.

    The last entry of ``counts`` holds every distance above the others and is
    labelled ``N+``.
    """
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    max_bin = len(counts) - 2
    xticklabels = [str(x) for x in range(0, max_bin + 1)] + [f"{max_bin + 1}+"]

    plt.figure()
    plt.bar(range(len(counts)), counts)
    plt.xlabel("Distance (bp)")
    plt.ylabel("Variant-transcript pairs")
    plt.title(title)
    plt.xticks(range(len(counts)), xticklabels, rotation=0)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()
