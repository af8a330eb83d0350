"""Splice-region classification of a variant against one transcript.

All coordinates are 1-based inclusive. ``exons`` must be sorted by ascending
start for both strands: the scan stops at the first exon that starts more
than ``intronic_min_distance`` past the variant, which is only exact for a
sorted list.

For a ``+`` transcript the exon upstream in transcription direction is
``i - 1``; for a ``-`` transcript it is ``i + 1``. The two strand procedures
check the same four boundary cases in transcript order, so a ``-`` transcript
gets the same label and score as its mirror image on ``+``. Both scan exons by
ascending start: when a short intron puts the variant near two boundaries the
lower exon wins on either strand, and ``exon_index`` and the cis-effect window
follow that exon.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from .config import AnnotatorConfig
from .errors import UnknownStrandError
from .models import NON_SPLICE, Exon, SpliceClassification, SpliceRegion


def cis_effect_limits(
    exons: Sequence[Exon],
    strand: str,
    index: int,
    cis_start: int,
    cis_end: int,
) -> Tuple[int, int]:
    """Widen ``[cis_start, cis_end]`` to the far boundaries of the neighbouring exons.

    The neighbours are ``index - 1`` and ``index + 1``; at either end of the
    list the exon itself stands in. For ``+`` the upstream neighbour supplies
    its start and the downstream neighbour its end; for ``-`` the upstream
    neighbour (``index + 1``) supplies its end and the downstream one its start.
    The window never shrinks.
    """
    last = len(exons) - 1
    prev_exon = exons[index - 1] if index != 0 else exons[0]
    next_exon = exons[index + 1] if index != last else exons[last]

    if strand == "+":
        upstream, downstream = prev_exon, next_exon
        cis_start = min(cis_start, upstream.start)
        cis_end = max(cis_end, downstream.end)
    elif strand == "-":
        upstream, downstream = next_exon, prev_exon
        cis_end = max(cis_end, upstream.end)
        cis_start = min(cis_start, downstream.start)
    else:
        raise UnknownStrandError(strand)
    return cis_start, cis_end


def _splice_hit(
    region: SpliceRegion,
    score: int,
    exons: Sequence[Exon],
    strand: str,
    index: int,
    position: int,
) -> SpliceClassification:
    # The window starts as the variant itself, 0-based start / 1-based end.
    cis_start, cis_end = cis_effect_limits(exons, strand, index, position - 1, position)
    return SpliceClassification(
        region=region,
        score=score,
        exon_index=index,
        cis_effect_start=cis_start,
        cis_effect_end=cis_end,
    )


def _whole_space(
    exons: Sequence[Exon], i: int, v: int, config: AnnotatorConfig
) -> Optional[SpliceClassification]:
    """Exonic/intronic calls for the -E/-I modes; None when exon ``i`` does not apply."""
    exon = exons[i]
    if config.all_exonic_space and exon.start <= v <= exon.end:
        return SpliceClassification(
            region=SpliceRegion.EXONIC,
            score=min(v - exon.start, exon.end - v),
            exon_index=i,
        )
    if config.all_intronic_space and i != len(exons) - 1:
        nxt = exons[i + 1]
        if exon.end < v < nxt.start:
            return SpliceClassification(
                region=SpliceRegion.INTRONIC,
                score=min(v - exon.end, nxt.start - v),
                exon_index=i,
            )
    return None


def _outside_transcript(exons: Sequence[Exon], v: int) -> bool:
    return exons[0].start > v or exons[-1].end < v


def classify_plus_strand(
    exons: Sequence[Exon], position: int, config: AnnotatorConfig
) -> SpliceClassification:
    """Classify ``position`` against a ``+`` strand transcript."""
    if _outside_transcript(exons, position):
        return NON_SPLICE

    v = position
    last = len(exons) - 1
    exonic = config.exonic_min_distance
    intronic = config.intronic_min_distance

    for i, exon in enumerate(exons):
        hit = _whole_space(exons, i, v, config)
        if hit is not None:
            return hit

        # Later exons start even further right.
        if exon.start - intronic > v:
            break

        in_exon = exon.start <= v <= exon.end
        exon_score = min(v - exon.start, exon.end - v)

        # exonic near start, not the first exon
        if i != 0 and in_exon and v <= exon.start + exonic:
            return _splice_hit(SpliceRegion.SPLICING_EXONIC, exon_score, exons, "+", i, v)
        # intronic near start, and not inside the previous exon
        if i != 0 and exon.start - intronic <= v < exon.start and v > exons[i - 1].end:
            score = min(v - exons[i - 1].end, exon.start - v)
            return _splice_hit(SpliceRegion.SPLICING_INTRONIC, score, exons, "+", i, v)
        # exonic near end, not the last exon
        if i != last and in_exon and v >= exon.end - exonic:
            return _splice_hit(SpliceRegion.SPLICING_EXONIC, exon_score, exons, "+", i, v)
        # intronic near end, and not inside the next exon
        if i != last and exon.end < v <= exon.end + intronic and v < exons[i + 1].start:
            score = min(v - exon.end, exons[i + 1].start - v)
            return _splice_hit(SpliceRegion.SPLICING_INTRONIC, score, exons, "+", i, v)

    return NON_SPLICE


def classify_minus_strand(
    exons: Sequence[Exon], position: int, config: AnnotatorConfig
) -> SpliceClassification:
    """Classify ``position`` against a ``-`` strand transcript."""
    if _outside_transcript(exons, position):
        return NON_SPLICE

    v = position
    last = len(exons) - 1
    exonic = config.exonic_min_distance
    intronic = config.intronic_min_distance

    for i, exon in enumerate(exons):
        hit = _whole_space(exons, i, v, config)
        if hit is not None:
            return hit

        if exon.start - intronic > v:
            break

        in_exon = exon.start <= v <= exon.end
        exon_score = min(v - exon.start, exon.end - v)

        # exonic near end (5' side on this strand), not the 5'-most exon
        if i != last and in_exon and v >= exon.end - exonic:
            return _splice_hit(SpliceRegion.SPLICING_EXONIC, exon_score, exons, "-", i, v)
        # intronic past the end, and not inside the upstream exon
        if i != last and exon.end < v <= exon.end + intronic and v < exons[i + 1].start:
            score = min(v - exon.end, exons[i + 1].start - v)
            return _splice_hit(SpliceRegion.SPLICING_INTRONIC, score, exons, "-", i, v)
        # exonic near start (3' side), not the 3'-most exon
        if i != 0 and in_exon and v <= exon.start + exonic:
            return _splice_hit(SpliceRegion.SPLICING_EXONIC, exon_score, exons, "-", i, v)
        # intronic before the start, and not inside the downstream exon
        if i != 0 and exon.start - intronic <= v < exon.start and v > exons[i - 1].end:
            score = min(v - exons[i - 1].end, exon.start - v)
            return _splice_hit(SpliceRegion.SPLICING_INTRONIC, score, exons, "-", i, v)

    return NON_SPLICE


def classify(
    exons: Sequence[Exon],
    position: int,
    config: AnnotatorConfig,
    *,
    transcript_id: Optional[str] = None,
) -> SpliceClassification:
    """Classify a 1-based ``position`` against a transcript's exons.

    Parameters
    ----------
    exons:
        Non-empty, sorted by ascending start. The strand is taken from the
        first exon.
    position:
        1-based variant coordinate.
    config:
        Distance thresholds and whole-space flags.
    transcript_id:
        Only used in error messages.

    Raises
    ------
    UnknownStrandError
        If the strand is neither ``+`` nor ``-``.
    """
    strand = exons[0].strand
    if strand == "+":
        return classify_plus_strand(exons, position, config)
    if strand == "-":
        return classify_minus_strand(exons, position, config)
    raise UnknownStrandError(strand, transcript_id=transcript_id)
