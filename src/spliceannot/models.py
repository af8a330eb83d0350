from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

NA = "NA"


class SpliceRegion(enum.Enum):
    """Where a variant sits relative to a transcript's exon/intron structure."""

    NON_SPLICE_REGION = "non_splice_region"
    EXONIC = "exonic"
    INTRONIC = "intronic"
    SPLICING_EXONIC = "splicing_exonic"
    SPLICING_INTRONIC = "splicing_intronic"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class Exon:
    """One exon of a transcript.

    Coordinates are 1-based inclusive, as in GTF. ``strand`` is the strand of
    the parent transcript.
    """

    chrom: str
    start: int
    end: int
    strand: str


@dataclass(frozen=True)
class Transcript:
    """A transcript model reduced to its exon coordinates.

    Attributes
    ----------
    transcript_id:
        GTF ``transcript_id``.
    gene_id:
        GTF ``gene_id`` of the owning gene.
    chrom:
        Contig name as present in the GTF.
    strand:
        ``+`` or ``-``.
    exons:
        Exons sorted by ascending start, independent of strand.
    """

    transcript_id: str
    gene_id: str
    chrom: str
    strand: str
    exons: Tuple[Exon, ...]

    @property
    def start(self) -> int:
        return self.exons[0].start

    @property
    def end(self) -> int:
        return max(e.end for e in self.exons)


@dataclass(frozen=True)
class SpliceClassification:
    """Per-transcript classification of one variant position."""

    region: SpliceRegion
    score: int  # -1 for NON_SPLICE_REGION
    exon_index: Optional[int] = None
    cis_effect_start: Optional[int] = None
    cis_effect_end: Optional[int] = None

    @property
    def is_splice_relevant(self) -> bool:
        return self.region is not SpliceRegion.NON_SPLICE_REGION


NON_SPLICE = SpliceClassification(region=SpliceRegion.NON_SPLICE_REGION, score=-1)


@dataclass
class AnnotatedVariant:
    """Variant-level annotation accumulated across all overlapping transcripts.

    ``pos0`` is the 0-based position of the VCF record; the coordinate compared
    against exons is ``pos0 + 1``. The cis-effect window starts as the variant
    itself and is widened by every splice-relevant transcript.
    """

    chrom: str
    pos0: int
    genes: List[str] = field(default_factory=list)
    transcripts: List[str] = field(default_factory=list)
    distances: List[int] = field(default_factory=list)
    annotations: List[SpliceRegion] = field(default_factory=list)
    hits: List[Tuple[str, str, SpliceClassification]] = field(default_factory=list)
    cis_effect_start: int = field(init=False)
    cis_effect_end: int = field(init=False)
    _seen_genes: Set[str] = field(default_factory=set, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.cis_effect_start = self.pos0
        self.cis_effect_end = self.pos0 + 1

    @property
    def position(self) -> int:
        return self.pos0 + 1

    def add(self, transcript_id: str, gene_id: str, result: SpliceClassification) -> None:
        if gene_id not in self._seen_genes:
            self._seen_genes.add(gene_id)
            self.genes.append(gene_id)
        self.transcripts.append(transcript_id)
        self.distances.append(result.score)
        self.annotations.append(result.region)
        self.hits.append((transcript_id, gene_id, result))
        if result.cis_effect_start is not None:
            self.cis_effect_start = min(self.cis_effect_start, result.cis_effect_start)
        if result.cis_effect_end is not None:
            self.cis_effect_end = max(self.cis_effect_end, result.cis_effect_end)

    def info_fields(self) -> dict:
        """The four INFO values written to the output VCF."""
        return {
            "genes": _join(self.genes),
            "transcripts": _join(self.transcripts),
            "distances": _join(str(d) for d in self.distances),
            "annotations": _join(a.label for a in self.annotations),
        }


def _join(values) -> str:
    out = ",".join(values)
    return out if out else NA
