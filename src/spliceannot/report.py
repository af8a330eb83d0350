from __future__ import annotations

import datetime as _dt
import logging
from pathlib import Path
from typing import Any, Dict

from jinja2 import Template

logger = logging.getLogger(__name__)


_REPORT_TEMPLATE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>SpliceAnnot Report</title>
  <style>
    body { font-family: Arial, Helvetica, sans-serif; margin: 24px; }
    code, pre { background: #f6f8fa; padding: 2px 4px; border-radius: 4px; }
    h1, h2, h3 { margin-top: 1.2em; }
    table { border-collapse: collapse; margin-top: 0.6em; }
    th, td { border: 1px solid #ddd; padding: 8px; }
    th { background: #f2f2f2; text-align: left; }
    .grid { display: grid; grid-template-columns: 1fr 1fr; gap: 16px; }
    .card { border: 1px solid #ddd; border-radius: 8px; padding: 12px; }
    .small { color: #666; font-size: 0.9em; }
    img { max-width: 100%; height: auto; border: 1px solid #eee; border-radius: 6px; }
  </style>
</head>
<body>

<h1>SpliceAnnot Report</h1>
<p class="small">Generated: {{ generated_at }}</p>

<h2>Run summary</h2>
<div class="grid">
  <div class="card">
    <h3>Inputs</h3>
    <table>
      <tr><th>VCF</th><td><code>{{ vcf_path }}</code></td></tr>
      <tr><th>GTF</th><td><code>{{ gtf_path }}</code></td></tr>
      <tr><th>Transcripts loaded</th><td>{{ transcripts_loaded }}</td></tr>
    </table>
  </div>
  <div class="card">
    <h3>Settings</h3>
    <table>
      <tr><th>Exonic distance</th><td>{% if config.all_exonic_space %}whole exon{% else %}{{ config.exonic_min_distance }}{% endif %}</td></tr>
      <tr><th>Intronic distance</th><td>{% if config.all_intronic_space %}whole intron{% else %}{{ config.intronic_min_distance }}{% endif %}</td></tr>
      <tr><th>Skip single-exon transcripts</th><td>{{ config.skip_single_exon_transcripts }}</td></tr>
    </table>
  </div>
</div>

<h2>Variants</h2>
<table>
  <tr><th>Records annotated</th><td>{{ counts.records_total }}</td></tr>
  <tr><th>In a splice-relevant region</th><td>{{ counts.records_splice_relevant }}</td></tr>
  <tr><th>Variant-transcript hits</th><td>{{ counts.transcript_hits }}</td></tr>
  <tr><th>On contigs absent from the GTF</th><td>{{ counts.records_unknown_contig }}</td></tr>
  {% for label, n in annotation_counts.items() %}
  <tr><th><code>{{ label }}</code></th><td>{{ n }}</td></tr>
  {% endfor %}
</table>

<h2>Plots</h2>
<div class="grid">
  <div class="card">
    <h3>Annotations</h3>
    <img src="{{ plots.annotation_counts }}" alt="annotation counts">
  </div>
  <div class="card">
    <h3>Distances</h3>
    <img src="{{ plots.distance_hist }}" alt="distance histogram">
  </div>
</div>

<h2>Outputs</h2>
<ul>
  <li><code>{{ out_path }}</code> (annotated VCF)</li>
  {% if transcripts_tsv %}
  <li><code>{{ transcripts_tsv }}</code> (per-transcript hits with cis-effect windows)</li>
  {% endif %}
  <li><code>summary.json</code> (machine-readable summary)</li>
</ul>

<hr>
<p class="small">SpliceAnnot {{ version }}</p>
</body>
</html>"""
)


def render_report(
    *,
    outdir: str | Path,
    version: str,
    run: Dict[str, Any],
    plots: Dict[str, str],
) -> Path:
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    html = _REPORT_TEMPLATE.render(
        generated_at=_dt.datetime.now().isoformat(timespec="seconds"),
        version=version,
        vcf_path=run.get("vcf_path"),
        gtf_path=run.get("gtf_path"),
        out_path=run.get("out_path"),
        transcripts_tsv=run.get("transcripts_tsv"),
        transcripts_loaded=run.get("transcripts_loaded"),
        config=run.get("config", {}),
        counts=run.get("counts", {}),
        annotation_counts=run.get("annotation_counts", {}),
        plots=plots,
    )

    out_path = outdir / "report.html"
    out_path.write_text(html, encoding="utf-8")
    logger.debug("Report written to %s", out_path)
    return out_path
