import gzip
from pathlib import Path

import pytest

from spliceannot.binning import get_bin
from spliceannot.errors import MissingExonsError
from spliceannot.gtf import GenomeFeatureStore, parse_gtf_attributes
from spliceannot.models import Transcript

GTF_LINES = [
    "#!genome-build test",
    'chr1\ttest\tgene\t100\t400\t.\t+\t.\tgene_id "G1";',
    'chr1\ttest\texon\t300\t400\t.\t+\t.\tgene_id "G1"; transcript_id "T1"; exon_number "2";',
    'chr1\ttest\texon\t100\t200\t.\t+\t.\tgene_id "G1"; transcript_id "T1"; exon_number "1";',
    'chr2\ttest\texon\t1300\t1400\t.\t-\t.\tgene_id "G2"; transcript_id "T3"; gene_name "My Gene";',
    'chr2\ttest\texon\t1000\t1100\t.\t-\t.\tgene_id "G2"; transcript_id "T3"; gene_name "My Gene";',
    'chr2\ttest\texon\t5000\t5100\t.\t-\t.\tgene_id "G3";',
]


def _write_gtf(path: Path, lines) -> Path:
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_parse_gtf_attributes():
    attrs = parse_gtf_attributes('gene_id "G1"; transcript_id "T1"; exon_number 2; gene_name "A B";')
    assert attrs == {"gene_id": "G1", "transcript_id": "T1", "exon_number": "2", "gene_name": "A B"}
    assert parse_gtf_attributes(".") == {}


def test_load_sorts_exons_ascending(tmp_path: Path) -> None:
    store = GenomeFeatureStore(_write_gtf(tmp_path / "a.gtf", GTF_LINES)).load()
    assert len(store) == 2
    assert sorted(store.contigs) == ["chr1", "chr2"]

    t1 = store.get_exons_from_transcript("T1")
    assert [(e.start, e.end) for e in t1] == [(100, 200), (300, 400)]

    t3 = store.get_exons_from_transcript("T3")
    assert [(e.start, e.end) for e in t3] == [(1000, 1100), (1300, 1400)]
    assert all(e.strand == "-" for e in t3)
    assert store.get_gene_from_transcript("T3") == "G2"


def test_transcripts_indexed_by_bin(tmp_path: Path) -> None:
    store = GenomeFeatureStore(_write_gtf(tmp_path / "a.gtf", GTF_LINES)).load()
    assert store.transcripts_from_bin("chr1", get_bin(99, 400)) == ["T1"]
    assert store.transcripts_from_bin("chr2", get_bin(99, 400)) == []
    assert store.transcripts_from_bin("chrX", get_bin(99, 400)) == []


def test_load_gzipped_gtf(tmp_path: Path) -> None:
    gz = tmp_path / "a.gtf.gz"
    with gzip.open(gz, "wt") as fh:
        fh.write("\n".join(GTF_LINES) + "\n")
    store = GenomeFeatureStore(gz).load()
    assert len(store) == 2


def test_malformed_line_reports_line_number(tmp_path: Path) -> None:
    path = _write_gtf(tmp_path / "bad.gtf", GTF_LINES[:2] + ["chr1\ttest\texon\t100"])
    with pytest.raises(ValueError, match=":3:"):
        GenomeFeatureStore(path).load()


def test_bad_coordinates(tmp_path: Path) -> None:
    path = _write_gtf(
        tmp_path / "bad.gtf",
        ['chr1\ttest\texon\tabc\t200\t.\t+\t.\tgene_id "G1"; transcript_id "T1";'],
    )
    with pytest.raises(ValueError, match="invalid exon coordinates"):
        GenomeFeatureStore(path).load()


def test_transcript_on_two_strands_is_rejected(tmp_path: Path) -> None:
    path = _write_gtf(
        tmp_path / "bad.gtf",
        [
            'chr1\ttest\texon\t100\t200\t.\t+\t.\tgene_id "G1"; transcript_id "T1";',
            'chr1\ttest\texon\t300\t400\t.\t-\t.\tgene_id "G1"; transcript_id "T1";',
        ],
    )
    with pytest.raises(ValueError, match="T1"):
        GenomeFeatureStore(path).load()


def test_missing_exons() -> None:
    store = GenomeFeatureStore.from_transcripts(
        [Transcript(transcript_id="T9", gene_id="G9", chrom="chr1", strand="+", exons=())]
    )
    with pytest.raises(MissingExonsError):
        store.get_exons_from_transcript("T9")
    with pytest.raises(MissingExonsError):
        store.get_exons_from_transcript("unknown")


def test_load_without_path() -> None:
    with pytest.raises(ValueError):
        GenomeFeatureStore().load()
