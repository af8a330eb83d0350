import json
import subprocess
import sys
from pathlib import Path
from typing import Dict

from spliceannot.toy_data import make_toy_data


def _run_cli(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", "spliceannot"] + args,
        check=False,
        capture_output=True,
        text=True,
    )


def _info_by_pos(vcf_text: str) -> Dict[int, Dict[str, str]]:
    out: Dict[int, Dict[str, str]] = {}
    for line in vcf_text.splitlines():
        if line.startswith("#"):
            continue
        cols = line.split("\t")
        out[int(cols[1])] = dict(kv.split("=", 1) for kv in cols[7].split(";") if "=" in kv)
    return out


def test_quickstart_output() -> None:
    cp = _run_cli(["quickstart"])
    assert cp.returncode == 0
    assert "spliceannot annotate" in cp.stdout


def test_make_toy_data_and_annotate(tmp_path: Path) -> None:
    toy_dir = tmp_path / "toy"
    cp = _run_cli(["make-toy-data", "--outdir", str(toy_dir)])
    assert cp.returncode == 0
    toy = json.loads(cp.stdout)

    out_vcf = tmp_path / "annotated.vcf"
    outdir = tmp_path / "run"
    cp = _run_cli(
        [
            "annotate",
            toy["vcf"],
            toy["gtf"],
            "-o",
            str(out_vcf),
            "--outdir",
            str(outdir),
            "--transcripts-tsv",
            str(outdir / "hits.tsv"),
            "--no-progress",
        ]
    )
    assert cp.returncode == 0, cp.stderr

    info = _info_by_pos(out_vcf.read_text())
    assert info[199] == {
        "genes": "G1",
        "transcripts": "T1,T2",
        "distances": "1,1",
        "annotations": "splicing_exonic,splicing_exonic",
    }
    assert info[202]["annotations"] == "splicing_intronic,splicing_intronic"
    assert info[250]["transcripts"] == "NA"
    assert info[1102] == {
        "genes": "G2",
        "transcripts": "T3",
        "distances": "2",
        "annotations": "splicing_intronic",
    }
    # single-exon transcript skipped by default
    assert info[1650]["genes"] == "NA"

    assert (outdir / "report.html").exists()
    assert (outdir / "summary.json").exists()
    assert (outdir / "plots" / "annotation_counts.png").exists()
    assert (outdir / "logs" / "annotate.log").exists()
    assert (outdir / "hits.tsv").read_text().count("\n") == 6


def test_whole_space_and_keep_single_exon(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    out_vcf = tmp_path / "annotated.vcf"
    cp = _run_cli(
        ["annotate", toy["vcf"], toy["gtf"], "-E", "-I", "-S", "-o", str(out_vcf), "--no-progress"]
    )
    assert cp.returncode == 0, cp.stderr

    info = _info_by_pos(out_vcf.read_text())
    assert info[1650] == {
        "genes": "G3",
        "transcripts": "T4",
        "distances": "50",
        "annotations": "exonic",
    }
    assert info[250]["annotations"] == "intronic,intronic"
    assert info[250]["distances"] == "50,50"


def test_annotate_to_stdout(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    cp = _run_cli(["annotate", toy["vcf"], toy["gtf"], "--no-progress"])
    assert cp.returncode == 0, cp.stderr
    assert cp.stdout.startswith("##fileformat=VCF")
    assert "transcripts=T1,T2" in cp.stdout


def test_annotate_dry_run_does_not_write_outputs(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    outdir = tmp_path / "run"
    cp = _run_cli(
        ["annotate", toy["vcf"], toy["gtf"], "-o", str(tmp_path / "x.vcf"), "--outdir", str(outdir), "--dry-run"]
    )
    assert cp.returncode == 0
    assert "Dry-run" in cp.stdout
    assert not (tmp_path / "x.vcf").exists()
    assert not (outdir / "summary.json").exists()


def test_unknown_strand_aborts(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    gtf = tmp_path / "bad.gtf"
    gtf.write_text(
        'chr1\tt\texon\t100\t200\t.\t.\t.\tgene_id "G1"; transcript_id "T1";\n'
        'chr1\tt\texon\t300\t400\t.\t.\t.\tgene_id "G1"; transcript_id "T1";\n',
        encoding="utf-8",
    )
    cp = _run_cli(["annotate", toy["vcf"], str(gtf), "-o", str(tmp_path / "out.vcf"), "--no-progress"])
    assert cp.returncode == 2
    assert "UnknownStrandError" in cp.stderr


def test_negative_distance_rejected(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    cp = _run_cli(["annotate", toy["vcf"], toy["gtf"], "-e", "-1"])
    assert cp.returncode != 0


def test_missing_input_rejected(tmp_path: Path) -> None:
    cp = _run_cli(["annotate", str(tmp_path / "nope.vcf"), str(tmp_path / "nope.gtf")])
    assert cp.returncode != 0
    assert "Path does not exist" in cp.stderr
