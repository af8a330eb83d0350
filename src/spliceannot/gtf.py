"""GTF loading and the binned transcript index.

Only ``exon`` features are used. Exons are grouped by ``transcript_id``,
sorted by ascending start and each transcript is stored in the smallest
genomic bin (see :mod:`spliceannot.binning`) spanning all of its exons.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .binning import get_bin
from .errors import MissingExonsError
from .models import Exon, Transcript
from .utils import open_textmaybe_gzip

logger = logging.getLogger(__name__)

# GTF column indices
COL_SEQNAME = 0
COL_FEATURE = 2
COL_START = 3
COL_END = 4
COL_STRAND = 6
COL_ATTRIBUTES = 8

FEATURE_EXON = "exon"

_ATTR_RE = re.compile(r'\s*([^\s;]+)\s+"?([^";]*)"?\s*')


def parse_gtf_attributes(attr_string: str) -> Dict[str, str]:
    """Parse a GTF attribute column (``key "value"; key "value";``)."""
    attributes: Dict[str, str] = {}
    if not attr_string or attr_string == ".":
        return attributes
    for item in attr_string.split(";"):
        if not item.strip():
            continue
        m = _ATTR_RE.fullmatch(item)
        if m is None:
            continue
        # Keep the first occurrence (e.g. repeated "tag" keys).
        attributes.setdefault(m.group(1), m.group(2))
    return attributes


def iter_gtf_exons(path: str | Path) -> Iterator[Tuple[str, str, Exon]]:
    """Yield ``(transcript_id, gene_id, exon)`` for every exon line of a GTF."""
    with open_textmaybe_gzip(path, "rt") as fh:
        for lineno, line in enumerate(fh, start=1):
            if not line.strip() or line.startswith("#"):
                continue
            cols = line.rstrip("\n").split("\t")
            if len(cols) < 9:
                raise ValueError(f"{path}:{lineno}: expected 9 tab-separated GTF columns, got {len(cols)}")
            if cols[COL_FEATURE] != FEATURE_EXON:
                continue
            try:
                start = int(cols[COL_START])
                end = int(cols[COL_END])
            except ValueError:
                raise ValueError(
                    f"{path}:{lineno}: invalid exon coordinates {cols[COL_START]!r}-{cols[COL_END]!r}"
                ) from None
            attrs = parse_gtf_attributes(cols[COL_ATTRIBUTES])
            transcript_id = attrs.get("transcript_id")
            if not transcript_id:
                logger.debug("%s:%d: exon without transcript_id skipped", path, lineno)
                continue
            gene_id = attrs.get("gene_id", "NA")
            yield transcript_id, gene_id, Exon(
                chrom=cols[COL_SEQNAME],
                start=start,
                end=end,
                strand=cols[COL_STRAND],
            )


class GenomeFeatureStore:
    """Transcripts and exons indexed by chromosome and genomic bin.

    The store is filled once by :meth:`load` (or :meth:`from_transcripts`) and
    is read-only afterwards.
    """

    def __init__(self, gtf_path: Optional[str | Path] = None) -> None:
        self.gtf_path = None if gtf_path is None else str(gtf_path)
        self._transcripts: Dict[str, Transcript] = {}
        self._bins: Dict[str, Dict[int, List[str]]] = {}

    @classmethod
    def from_transcripts(cls, transcripts: Iterable[Transcript]) -> "GenomeFeatureStore":
        store = cls()
        for tx in transcripts:
            store._add(tx)
        return store

    def _add(self, tx: Transcript) -> None:
        if tx.transcript_id in self._transcripts:
            raise ValueError(f"Duplicate transcript id: {tx.transcript_id}")
        self._transcripts[tx.transcript_id] = tx
        if not tx.exons:
            # Still listed so lookups can report the inconsistency.
            bin_id = 0
        else:
            bin_id = get_bin(tx.start - 1, tx.end)
        self._bins.setdefault(tx.chrom, {}).setdefault(bin_id, []).append(tx.transcript_id)

    def load(self) -> "GenomeFeatureStore":
        """Parse the GTF and build the bin index."""
        if self.gtf_path is None:
            raise ValueError("No GTF path given to GenomeFeatureStore")

        exons_by_tx: Dict[str, List[Exon]] = defaultdict(list)
        gene_by_tx: Dict[str, str] = {}
        n_exons = 0
        for transcript_id, gene_id, exon in iter_gtf_exons(self.gtf_path):
            known = exons_by_tx.get(transcript_id)
            if known:
                first = known[0]
                if first.chrom != exon.chrom or first.strand != exon.strand:
                    raise ValueError(
                        f"Transcript {transcript_id} has exons on {first.chrom}{first.strand} "
                        f"and {exon.chrom}{exon.strand}"
                    )
            exons_by_tx[transcript_id].append(exon)
            gene_by_tx.setdefault(transcript_id, gene_id)
            n_exons += 1

        for transcript_id, exons in exons_by_tx.items():
            exons.sort(key=lambda e: (e.start, e.end))
            self._add(
                Transcript(
                    transcript_id=transcript_id,
                    gene_id=gene_by_tx[transcript_id],
                    chrom=exons[0].chrom,
                    strand=exons[0].strand,
                    exons=tuple(exons),
                )
            )

        logger.info(
            "Loaded %d exons in %d transcripts of %d genes from %s",
            n_exons,
            len(self._transcripts),
            len(set(gene_by_tx.values())),
            self.gtf_path,
        )
        return self

    @property
    def contigs(self) -> List[str]:
        return list(self._bins)

    def __len__(self) -> int:
        return len(self._transcripts)

    def transcripts_from_bin(self, chrom: str, bin_id: int) -> List[str]:
        """Transcript ids stored in exactly this bin, in GTF order."""
        return list(self._bins.get(chrom, {}).get(bin_id, ()))

    def get_exons_from_transcript(self, transcript_id: str) -> Tuple[Exon, ...]:
        """Exons sorted by ascending start.

        Raises
        ------
        MissingExonsError
            If the transcript is unknown or has no exons.
        """
        tx = self._transcripts.get(transcript_id)
        if tx is None or not tx.exons:
            raise MissingExonsError(transcript_id)
        return tx.exons

    def get_gene_from_transcript(self, transcript_id: str) -> str:
        return self._transcripts[transcript_id].gene_id
