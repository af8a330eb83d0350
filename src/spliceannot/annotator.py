from __future__ import annotations

import logging
import time
from contextlib import ExitStack
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import numpy as np
import pysam
from tqdm import tqdm

from .binning import iter_candidate_bins
from .config import AnnotatorConfig
from .gtf import GenomeFeatureStore
from .models import AnnotatedVariant, SpliceRegion
from .splice import classify
from .utils import ensure_outdir, open_textmaybe_gzip, write_json
from .validation import remap_contig, remap_contigs, resolve_contig_style

logger = logging.getLogger(__name__)

INFO_FIELDS = (
    ("genes", "The Variant falls in the splice region of these genes"),
    ("transcripts", "The Variant falls in the splice region of these transcripts"),
    ("distances", "Vector of Min(Distance from start/end of exon in the transcript.)"),
    (
        "annotations",
        "Does the variant fall in exonic/intronic splicing related space in the transcript.",
    ),
)

TSV_COLUMNS = (
    "chrom",
    "pos",
    "gene_id",
    "transcript_id",
    "annotation",
    "distance",
    "cis_effect_start",
    "cis_effect_end",
)


def annotate_position(
    chrom: str,
    pos0: int,
    store: GenomeFeatureStore,
    config: AnnotatorConfig,
) -> AnnotatedVariant:
    """Annotate one variant against every transcript that could be in range.

    ``pos0`` is the 0-based VCF position. Transcripts are visited bin level by
    bin level (finest first) and the output lists keep that order.

    Raises
    ------
    MissingExonsError
        If the store lists a transcript without exons.
    UnknownStrandError
        If a candidate transcript has an unusable strand.
    """
    variant = AnnotatedVariant(chrom=chrom, pos0=pos0)
    position = variant.position

    # The intronic distance widens the search: transcripts ending just short
    # of the variant can still put it in a splice region.
    for bin_id in iter_candidate_bins(pos0, config.intronic_min_distance):
        for transcript_id in store.transcripts_from_bin(chrom, bin_id):
            exons = store.get_exons_from_transcript(transcript_id)
            if config.skip_single_exon_transcripts and len(exons) == 1:
                continue
            result = classify(exons, position, config, transcript_id=transcript_id)
            if not result.is_splice_relevant:
                continue
            gene_id = store.get_gene_from_transcript(transcript_id)
            variant.add(transcript_id, gene_id, result)
    return variant


def add_annotation_header(header: pysam.VariantHeader) -> List[str]:
    """Declare the four annotation INFO fields on ``header`` (in place).

    Existing definitions with the same IDs are replaced. Returns the replaced
    keys so their old values can be dropped from each record.
    """
    replaced: List[str] = []
    for key, description in INFO_FIELDS:
        if key in header.info:
            logger.warning("Input VCF already defines INFO/%s; definition and values will be replaced.", key)
            header.info.remove_header(key)
            replaced.append(key)
        header.info.add(key, number=1, type="String", description=description)
    return replaced


def _declare_contigs(
    header: pysam.VariantHeader, gtf_contigs: List[str], target_style: Optional[str]
) -> None:
    """Add GTF contigs to a header that declares none.

    With an explicit contig style the variant names may be in either style,
    so both spellings are declared.
    """
    names = list(gtf_contigs)
    if target_style is not None:
        other = "ensembl" if target_style == "ucsc" else "ucsc"
        names += remap_contigs(gtf_contigs, other)
    for name in dict.fromkeys(names):
        header.contigs.add(name)


def _output_mode(out_path: str) -> str:
    if out_path.endswith(".bcf"):
        return "wb"
    if out_path.endswith(".gz"):
        return "wz"
    return "w"


def _distance_hist_max(config: AnnotatorConfig) -> int:
    if config.all_exonic_space or config.all_intronic_space:
        return 50
    return max(config.exonic_min_distance, config.intronic_min_distance)


def annotate_vcf(
    *,
    vcf_path: str,
    store: GenomeFeatureStore,
    config: AnnotatorConfig,
    out_path: str = "-",
    contig_style: str = "auto",
    transcripts_tsv: Optional[str] = None,
    outdir: Optional[str | Path] = None,
    progress: bool = True,
) -> Dict[str, object]:
    """Main workhorse: read the VCF, annotate each record, write the annotated VCF.

    Returns a summary dict; when ``outdir`` is given it is also written to
    ``outdir/summary.json``.
    """
    t0 = time.time()

    counts: Dict[str, int] = {
        "records_total": 0,
        "records_splice_relevant": 0,
        "transcript_hits": 0,
        "records_unknown_contig": 0,
    }
    label_counts: Dict[str, int] = {r.label: 0 for r in SpliceRegion if r is not SpliceRegion.NON_SPLICE_REGION}

    hist_max = _distance_hist_max(config)
    # Last bin collects distances above hist_max.
    distance_counts = np.zeros(hist_max + 2, dtype=np.int64)

    with ExitStack() as stack:
        vcf_in = stack.enter_context(pysam.VariantFile(vcf_path))
        vcf_contigs = list(vcf_in.header.contigs)
        target_style = resolve_contig_style(vcf_contigs, store.contigs, contig_style)
        gtf_contigs = set(store.contigs)

        header = vcf_in.header.copy()
        if not vcf_contigs:
            # htslib only learns record contigs while reading; the output
            # header must declare them before it is written.
            _declare_contigs(header, store.contigs, target_style)
        replaced = add_annotation_header(header)

        tsv_fh = None
        if transcripts_tsv is not None:
            tsv_fh = stack.enter_context(open_textmaybe_gzip(transcripts_tsv, "wt"))
            tsv_fh.write("\t".join(TSV_COLUMNS) + "\n")

        vcf_out = stack.enter_context(
            pysam.VariantFile(out_path, _output_mode(out_path), header=header)
        )
        out_contigs = set(vcf_out.header.contigs)

        it: Iterable[pysam.VariantRecord] = vcf_in
        if progress:
            it = tqdm(it, unit="variant", desc="Annotating variants")

        for rec in it:
            counts["records_total"] += 1
            if rec.contig not in out_contigs:
                raise ValueError(
                    f"Contig {rec.contig!r} of record at position {rec.pos} is not declared "
                    "in the VCF header nor present in the GTF."
                )
            chrom = rec.contig if target_style is None else remap_contig(rec.contig, target_style)
            if chrom not in gtf_contigs:
                counts["records_unknown_contig"] += 1

            variant = annotate_position(chrom, rec.start, store, config)

            if variant.transcripts:
                counts["records_splice_relevant"] += 1
                counts["transcript_hits"] += len(variant.transcripts)
                for region in variant.annotations:
                    label_counts[region.label] += 1
                dists = np.minimum(np.asarray(variant.distances, dtype=np.int64), hist_max + 1)
                np.add.at(distance_counts, dists, 1)

            if tsv_fh is not None:
                _write_tsv_rows(tsv_fh, rec.contig, variant)

            for key in replaced:
                if key in rec.info:
                    del rec.info[key]
            rec.translate(vcf_out.header)
            for key, value in variant.info_fields().items():
                rec.info[key] = value
            vcf_out.write(rec)

    dt = time.time() - t0
    logger.info(
        "Annotated %d records (%d in splice regions) in %.1fs",
        counts["records_total"],
        counts["records_splice_relevant"],
        dt,
    )
    if counts["records_total"] and counts["records_unknown_contig"] == counts["records_total"]:
        logger.warning("No variant contig was found in the GTF; all records annotated NA.")

    summary: Dict[str, object] = {
        "vcf_path": vcf_path,
        "gtf_path": store.gtf_path,
        "out_path": out_path,
        "transcripts_tsv": transcripts_tsv,
        "config": {
            "exonic_min_distance": config.exonic_min_distance,
            "intronic_min_distance": config.intronic_min_distance,
            "all_exonic_space": config.all_exonic_space,
            "all_intronic_space": config.all_intronic_space,
            "skip_single_exon_transcripts": config.skip_single_exon_transcripts,
        },
        "transcripts_loaded": len(store),
        "counts": counts,
        "annotation_counts": label_counts,
        "distance_hist": {
            "max_distance": hist_max,
            "counts": distance_counts.tolist(),
        },
        "runtime_seconds": float(dt),
    }

    if outdir is not None:
        outdir_path = ensure_outdir(outdir)
        write_json(outdir_path / "summary.json", summary)
    return summary


def _write_tsv_rows(fh, chrom: str, variant: AnnotatedVariant) -> None:
    rows: List[str] = []
    for transcript_id, gene_id, result in variant.hits:
        cis_start = "" if result.cis_effect_start is None else str(result.cis_effect_start)
        cis_end = "" if result.cis_effect_end is None else str(result.cis_effect_end)
        rows.append(
            f"{chrom}\t{variant.position}\t{gene_id}\t{transcript_id}\t"
            f"{result.region.label}\t{result.score}\t{cis_start}\t{cis_end}\n"
        )
    fh.writelines(rows)
