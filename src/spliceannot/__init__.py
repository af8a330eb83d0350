"""SpliceAnnot: annotate variants that fall in the splice regions of transcripts.

Public API is intentionally small; most users should use the CLI:

    spliceannot annotate variants.vcf.gz genes.gtf -o annotated.vcf.gz

"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
