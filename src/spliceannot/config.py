from __future__ import annotations

from dataclasses import dataclass

DEFAULT_EXONIC_MIN_DISTANCE = 3
DEFAULT_INTRONIC_MIN_DISTANCE = 2


@dataclass(frozen=True)
class AnnotatorConfig:
    """Parameters shared by the classifier and the aggregator.

    Attributes
    ----------
    exonic_min_distance:
        Maximum distance from an exon start/end for an exonic variant to be
        called splicing-relevant.
    intronic_min_distance:
        Maximum distance from an exon start/end for an intronic variant to be
        called splicing-relevant. Also widens the bin search window.
    all_exonic_space:
        Annotate any variant inside an exon as ``exonic``.
    all_intronic_space:
        Annotate any variant inside an intron as ``intronic``.
    skip_single_exon_transcripts:
        Ignore transcripts with a single exon.
    """

    exonic_min_distance: int = DEFAULT_EXONIC_MIN_DISTANCE
    intronic_min_distance: int = DEFAULT_INTRONIC_MIN_DISTANCE
    all_exonic_space: bool = False
    all_intronic_space: bool = False
    skip_single_exon_transcripts: bool = True

    def __post_init__(self) -> None:
        if self.exonic_min_distance < 0:
            raise ValueError(f"exonic_min_distance must be >= 0, got {self.exonic_min_distance}")
        if self.intronic_min_distance < 0:
            raise ValueError(
                f"intronic_min_distance must be >= 0, got {self.intronic_min_distance}"
            )
