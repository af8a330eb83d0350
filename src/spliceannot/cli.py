from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

from . import __version__
from .annotator import annotate_vcf
from .config import DEFAULT_EXONIC_MIN_DISTANCE, DEFAULT_INTRONIC_MIN_DISTANCE, AnnotatorConfig
from .errors import AnnotationError
from .gtf import GenomeFeatureStore
from .plotting import plot_annotation_counts, plot_distance_hist
from .report import render_report
from .toy_data import make_toy_data
from .utils import ensure_outdir
from .validation import check_gtf_file, check_variant_file


def _setup_logging(verbosity: int, *, logfile: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)

    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def _path_exists(p: str) -> str:
    if not Path(p).exists():
        raise argparse.ArgumentTypeError(f"Path does not exist: {p}")
    return p


def _non_negative_int(s: str) -> int:
    try:
        v = int(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected an integer, got {s!r}") from None
    if v < 0:
        raise argparse.ArgumentTypeError(f"Expected a non-negative integer, got {v}")
    return v


def _log_path(outdir: Path, name: str) -> Path:
    return outdir / "logs" / name


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    if isinstance(err, AnnotationError):
        msg = f"Annotation aborted: {err.__class__.__name__}: {err}"
    else:
        msg = f"{err.__class__.__name__}: {err}"

    sys.stderr.write(msg + "\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    return 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="spliceannot",
        description=(
            "SpliceAnnot: annotate VCF variants that fall in the splice regions "
            "(exon/intron boundaries) of GTF transcripts."
        ),
    )
    p.add_argument("--version", action="version", version=f"spliceannot {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # -----------------
    # quickstart
    # -----------------
    sub.add_parser(
        "quickstart",
        help="Print ready-to-run recipes for common scenarios.",
    )

    # -----------------
    # make-toy-data
    # -----------------
    t = sub.add_parser(
        "make-toy-data",
        help="Generate a tiny GTF and VCF for demos/tests.",
    )
    t.add_argument("--outdir", required=True, help="Output directory for toy data.")
    t.add_argument("--dry-run", action="store_true", help="Validate paths without writing files.")

    # -----------------
    # annotate
    # -----------------
    a = sub.add_parser(
        "annotate",
        help="Annotate variants with the genes/transcripts whose splice regions they hit.",
    )
    a.add_argument("vcf", type=_path_exists, help="Input variants (.vcf/.vcf.gz/.bcf).")
    a.add_argument("gtf", type=_path_exists, help="Transcript annotations (.gtf/.gtf.gz).")
    a.add_argument(
        "-o",
        "--output",
        default="-",
        help="Annotated VCF to write (.vcf/.vcf.gz/.bcf). Default: stdout.",
    )
    a.add_argument(
        "-e",
        "--exonic-distance",
        type=_non_negative_int,
        default=None,
        help=(
            "Maximum distance from the start/end of an exon to annotate an exonic "
            f"variant as relevant to splicing. [{DEFAULT_EXONIC_MIN_DISTANCE}]"
        ),
    )
    a.add_argument(
        "-i",
        "--intronic-distance",
        type=_non_negative_int,
        default=None,
        help=(
            "Maximum distance from the start/end of an exon to annotate an intronic "
            f"variant as relevant to splicing. [{DEFAULT_INTRONIC_MIN_DISTANCE}]"
        ),
    )
    a.add_argument(
        "-I",
        "--all-intronic-space",
        action="store_true",
        help="Annotate variants anywhere in intronic space within a transcript (not to be used with -i).",
    )
    a.add_argument(
        "-E",
        "--all-exonic-space",
        action="store_true",
        help="Annotate variants anywhere in exonic space within a transcript (not to be used with -e).",
    )
    a.add_argument(
        "-S",
        "--keep-single-exon-transcripts",
        action="store_true",
        help="Don't skip single exon transcripts.",
    )
    a.add_argument(
        "--contig-style",
        choices=["ucsc", "ensembl", "auto", "none"],
        default="auto",
        help="Contig naming style used to match VCF contigs to GTF contigs.",
    )
    a.add_argument(
        "--transcripts-tsv",
        default=None,
        help="Optional per-transcript TSV(.GZ) with distances and cis-effect windows.",
    )
    a.add_argument(
        "--outdir",
        default=None,
        help="Optional directory for summary.json, plots, report.html and logs.",
    )
    a.add_argument("--no-progress", action="store_true", help="Disable the progress bar.")
    a.add_argument("--dry-run", action="store_true", help="Validate inputs and print planned outputs.")
    a.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")

    return p


# -----------------
# Command handlers
# -----------------

def cmd_quickstart() -> int:
    lines = [
        "SpliceAnnot quickstart (copy/paste):",
        "",
        "1) Default splice regions (3 bp exonic, 2 bp intronic):",
        "   spliceannot annotate variants.vcf.gz genes.gtf -o annotated.vcf.gz",
        "",
        "2) Wider windows, with a report and per-transcript table:",
        "   spliceannot annotate variants.vcf.gz genes.gtf \\",
        "     -e 5 -i 20 \\",
        "     -o annotated.vcf.gz \\",
        "     --transcripts-tsv hits.tsv.gz \\",
        "     --outdir results/",
        "   Outputs: results/report.html, results/summary.json",
        "",
        "3) Every exonic and intronic variant, including single-exon transcripts:",
        "   spliceannot annotate variants.vcf.gz genes.gtf -E -I -S -o annotated.vcf",
        "",
        "Tip: spliceannot make-toy-data --outdir toy/ writes a small GTF+VCF to try these on.",
    ]
    print("\n".join(lines))
    return 0


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    if args.dry_run:
        print(f"Would write toy data into: {outdir}")
        return 0

    summary = make_toy_data(outdir=outdir)
    print(json.dumps(summary, indent=2))
    return 0


def _config_from_args(args: argparse.Namespace) -> AnnotatorConfig:
    logger = logging.getLogger("spliceannot")
    if args.all_intronic_space and args.intronic_distance is not None:
        logger.warning("-I given together with -i; intronic variants are annotated in whole-intron mode.")
    if args.all_exonic_space and args.exonic_distance is not None:
        logger.warning("-E given together with -e; exonic variants are annotated in whole-exon mode.")

    return AnnotatorConfig(
        exonic_min_distance=(
            DEFAULT_EXONIC_MIN_DISTANCE if args.exonic_distance is None else args.exonic_distance
        ),
        intronic_min_distance=(
            DEFAULT_INTRONIC_MIN_DISTANCE if args.intronic_distance is None else args.intronic_distance
        ),
        all_exonic_space=bool(args.all_exonic_space),
        all_intronic_space=bool(args.all_intronic_space),
        skip_single_exon_transcripts=not bool(args.keep_single_exon_transcripts),
    )


def _write_plots(outdir: Path, run: Dict[str, object]) -> Dict[str, str]:
    plots_dir = outdir / "plots"
    plots_dir.mkdir(parents=True, exist_ok=True)

    annotation_png = plots_dir / "annotation_counts.png"
    distance_png = plots_dir / "distance_hist.png"

    plot_annotation_counts(annotation_counts=run["annotation_counts"], out_png=annotation_png)
    plot_distance_hist(counts=run["distance_hist"]["counts"], out_png=distance_png)

    return {
        "annotation_counts": str(Path("plots") / annotation_png.name),
        "distance_hist": str(Path("plots") / distance_png.name),
    }


def cmd_annotate(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve() if args.outdir else None
    log_path = _log_path(outdir, "annotate.log") if outdir is not None and not args.dry_run else None
    _setup_logging(args.verbose, logfile=log_path)

    logger = logging.getLogger("spliceannot")
    logger.info("spliceannot %s", __version__)

    try:
        check_variant_file(args.vcf)
        check_gtf_file(args.gtf)
        config = _config_from_args(args)

        logger.info("Variant file: %s", args.vcf)
        logger.info("GTF file: %s", args.gtf)
        logger.info("Output VCF: %s", "stdout" if args.output == "-" else args.output)
        if not config.all_intronic_space:
            logger.info("Intronic min distance: %d", config.intronic_min_distance)
        if not config.all_exonic_space:
            logger.info("Exonic min distance: %d", config.exonic_min_distance)
        if not config.skip_single_exon_transcripts:
            logger.info("Not skipping single exon transcripts.")

        if args.dry_run:
            print("Dry-run: inputs look OK.")
            print("Planned outputs:")
            print(f"  annotated VCF -> {'stdout' if args.output == '-' else args.output}")
            if args.transcripts_tsv:
                print(f"  transcripts TSV -> {args.transcripts_tsv}")
            if outdir is not None:
                print(f"  report.html -> {outdir / 'report.html'}")
                print(f"  summary.json -> {outdir / 'summary.json'}")
            return 0

        if outdir is not None:
            ensure_outdir(outdir)

        store = GenomeFeatureStore(args.gtf).load()

        run = annotate_vcf(
            vcf_path=args.vcf,
            store=store,
            config=config,
            out_path=args.output,
            contig_style=args.contig_style,
            transcripts_tsv=args.transcripts_tsv,
            outdir=outdir,
            progress=not bool(args.no_progress),
        )

        if outdir is not None:
            plots_rel = _write_plots(outdir, run)
            report_path = render_report(
                outdir=outdir,
                version=__version__,
                run=run,
                plots=plots_rel,
            )
            logger.info("Report written: %s", report_path)
        return 0
    except Exception as e:
        return _handle_error(e, log_path=log_path)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "quickstart":
        return cmd_quickstart()
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)
    if args.cmd == "annotate":
        return cmd_annotate(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
