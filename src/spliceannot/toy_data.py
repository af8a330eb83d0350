from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Tuple

import pysam

from .utils import ensure_outdir, write_json

TOY_CONTIG = "chr1"
TOY_CONTIG_LENGTH = 2000

# (gene_id, transcript_id, strand, exons as 1-based inclusive (start, end))
TOY_TRANSCRIPTS: List[Tuple[str, str, str, List[Tuple[int, int]]]] = [
    ("G1", "T1", "+", [(100, 200), (300, 400), (500, 600)]),
    ("G1", "T2", "+", [(100, 200), (300, 400)]),
    ("G2", "T3", "-", [(1000, 1100), (1300, 1400)]),
    ("G3", "T4", "+", [(1600, 1700)]),
]

# 1-based VCF POS of toy variants and the annotation each should receive.
TOY_VARIANTS: List[Tuple[int, str, str]] = [
    (199, "C", "T"),  # exonic, 1 bp from the T1/T2 donor
    (202, "G", "A"),  # intronic, 2 bp past the T1/T2 donor
    (250, "A", "G"),  # deep intronic
    (1102, "T", "C"),  # intronic next to the T3 acceptor (- strand)
    (1650, "G", "T"),  # inside the single-exon T4
]


def _gtf_line(contig: str, gene_id: str, transcript_id: str, strand: str, start: int, end: int, n: int) -> str:
    attrs = f'gene_id "{gene_id}"; transcript_id "{transcript_id}"; exon_number "{n}";'
    return "\t".join([contig, "toy", "exon", str(start), str(end), ".", strand, ".", attrs])


def write_toy_gtf(path: str | Path) -> Path:
    path = Path(path)
    lines = ["#!genome-build toy"]
    for gene_id, transcript_id, strand, exons in TOY_TRANSCRIPTS:
        ordered = exons if strand == "+" else list(reversed(exons))
        for n, (start, end) in enumerate(ordered, start=1):
            lines.append(_gtf_line(TOY_CONTIG, gene_id, transcript_id, strand, start, end, n))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def make_toy_data(*, outdir: str | Path) -> Dict[str, str]:
    """Create a tiny GTF and VCF suitable for quick demos/tests.

    The outputs include:
    - toy.gtf
    - variants.vcf.gz (+ .tbi)

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = ensure_outdir(outdir)

    gtf_path = write_toy_gtf(outdir_p / "toy.gtf")

    vcf_path = outdir_p / "variants.vcf"
    header = pysam.VariantHeader()
    header.contigs.add(TOY_CONTIG, length=TOY_CONTIG_LENGTH)

    with pysam.VariantFile(str(vcf_path), "w", header=header) as vcf:
        for pos, ref, alt in TOY_VARIANTS:
            rec = vcf.new_record(
                contig=TOY_CONTIG,
                start=pos - 1,
                stop=pos,
                alleles=(ref, alt),
                id=f"{TOY_CONTIG}:{pos}:{ref}:{alt}",
                qual=60,
                filter="PASS",
            )
            vcf.write(rec)

    vcf_gz = outdir_p / "variants.vcf.gz"
    pysam.tabix_compress(str(vcf_path), str(vcf_gz), force=True)
    pysam.tabix_index(str(vcf_gz), preset="vcf", force=True)

    summary = {
        "gtf": str(gtf_path),
        "vcf": str(vcf_gz),
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
