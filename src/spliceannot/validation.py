from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


_UCSC_PREFIX = "chr"


def check_variant_file(vcf_path: str | Path) -> None:
    """Reject inputs that are clearly not VCF/BCF; raise ValueError with a hint."""
    vcf = Path(vcf_path)
    name = vcf.name
    if name == "-":
        return
    if not (name.endswith(".vcf") or name.endswith(".vcf.gz") or name.endswith(".bcf")):
        raise ValueError(
            f"Unrecognised variant file extension: {vcf}. Expected .vcf, .vcf.gz or .bcf"
        )


def check_gtf_file(gtf_path: str | Path) -> None:
    gtf = Path(gtf_path)
    if gtf.suffix == ".gz":
        gtf = gtf.with_suffix("")
    if gtf.suffix not in {".gtf", ".gff", ".gff2"}:
        logger.warning("Annotation file %s does not look like a GTF; parsing anyway.", gtf_path)


def detect_contig_style(contigs: Iterable[str]) -> str:
    """Infer contig style: 'ucsc' if most contigs start with 'chr', else 'ensembl'."""
    names = [c for c in contigs if c]
    if not names:
        return "unknown"
    chr_like = [c for c in names if c.startswith(_UCSC_PREFIX)]
    if len(chr_like) >= max(1, int(0.5 * len(names))):
        return "ucsc"
    return "ensembl"


def remap_contig(contig: str, style: str) -> str:
    """Remap a contig name to the requested style (ucsc or ensembl)."""
    if style == "ucsc":
        if contig.startswith(_UCSC_PREFIX):
            return contig
        if contig == "MT":
            return "chrM"
        return f"{_UCSC_PREFIX}{contig}"
    if style == "ensembl":
        if contig.startswith(_UCSC_PREFIX):
            core = contig[len(_UCSC_PREFIX) :]
            if core == "M":
                return "MT"
            return core
        return contig
    return contig


def remap_contigs(contigs: Iterable[str], style: str) -> List[str]:
    """Remap a list of contigs to a requested style."""
    return [remap_contig(c, style) for c in contigs]


def resolve_contig_style(
    vcf_contigs: List[str],
    gtf_contigs: List[str],
    requested: str = "auto",
) -> Optional[str]:
    """Decide how VCF contig names are mapped onto GTF contig names.

    Returns the style VCF contigs must be remapped to before lookup, or None
    when names are used as-is. Raises ValueError if no contig is shared after
    remapping. VCFs without ``##contig`` header lines are not checked.
    """
    gtf_style = detect_contig_style(gtf_contigs)
    vcf_style = detect_contig_style(vcf_contigs)

    target: Optional[str] = None
    if requested in ("ucsc", "ensembl"):
        target = requested
    elif requested == "auto":
        if "unknown" not in (vcf_style, gtf_style) and vcf_style != gtf_style:
            target = gtf_style
            logger.warning(
                "Contig style mismatch detected (VCF=%s, GTF=%s). Remapping variant contigs to %s style.",
                vcf_style,
                gtf_style,
                target,
            )
    elif requested != "none":
        raise ValueError(f"Unknown contig style: {requested}")

    if not vcf_contigs:
        logger.info("VCF header has no ##contig lines; skipping contig compatibility check.")
        return target

    mapped = vcf_contigs if target is None else remap_contigs(vcf_contigs, target)
    if not set(mapped).intersection(gtf_contigs):
        raise ValueError(
            "Contig mismatch between VCF and GTF (e.g., chr1 vs 1). "
            "Use --contig-style {ucsc,ensembl,auto,none} to override."
        )
    return target
