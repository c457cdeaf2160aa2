"""Tests for the DIAMOND wrapper with the executable mocked out."""

import subprocess
from unittest.mock import patch

import polars as pl
import pytest

from pdg_pipeline.alignment import (
    build_diamond_database,
    count_top_targets,
    filter_high_confidence,
    run_diamond_blastp,
)
from pdg_pipeline.config.schema import SearchConfig

from conftest import make_hits


@pytest.fixture
def mock_diamond():
    """Patch PATH lookup and subprocess.run for the diamond executable."""
    with patch("pdg_pipeline.alignment.diamond.shutil.which", return_value="/usr/bin/diamond"), \
         patch("pdg_pipeline.alignment.diamond.subprocess.run") as mock_run:
        yield mock_run


@pytest.fixture
def fasta(tmp_path):
    path = tmp_path / "proteins.faa"
    path.write_text(">PDG001\nMKTAYIAKQR\n")
    return path


def test_build_database_command(mock_diamond, fasta, tmp_path):
    db_prefix = tmp_path / "db" / "pdg_db_diamond"

    db_file = build_diamond_database(fasta, db_prefix, threads=4)

    assert db_file == tmp_path / "db" / "pdg_db_diamond.dmnd"
    cmd = mock_diamond.call_args[0][0]
    assert cmd[:2] == ["/usr/bin/diamond", "makedb"]
    assert cmd[cmd.index("--in") + 1] == str(fasta)
    assert cmd[cmd.index("--db") + 1] == str(db_prefix)
    assert cmd[cmd.index("--threads") + 1] == "4"


def test_build_database_reuses_existing(mock_diamond, fasta, tmp_path):
    db_prefix = tmp_path / "pdg_db_diamond"
    (tmp_path / "pdg_db_diamond.dmnd").write_bytes(b"")

    build_diamond_database(fasta, db_prefix)
    mock_diamond.assert_not_called()

    build_diamond_database(fasta, db_prefix, force=True)
    mock_diamond.assert_called_once()


def test_build_database_missing_fasta(mock_diamond, tmp_path):
    with pytest.raises(FileNotFoundError, match="PDG-DB sequence file"):
        build_diamond_database(tmp_path / "absent.faa", tmp_path / "db")


def test_diamond_not_installed(fasta, tmp_path):
    with patch("pdg_pipeline.alignment.diamond.shutil.which", return_value=None):
        with pytest.raises(FileNotFoundError, match="diamond not found"):
            build_diamond_database(fasta, tmp_path / "db")


def test_diamond_failure_raises_runtime_error(mock_diamond, fasta, tmp_path):
    mock_diamond.side_effect = subprocess.CalledProcessError(
        1, ["diamond"], stderr="Error: invalid input\n"
    )

    with pytest.raises(RuntimeError, match="diamond makedb failed: Error: invalid input"):
        build_diamond_database(fasta, tmp_path / "db")


def test_blastp_command(mock_diamond, fasta, tmp_path):
    output = tmp_path / "out" / "hits.tsv"
    params = SearchConfig(threads=16, evalue=1e-10, max_target_seqs=5, sensitivity="fast")

    result = run_diamond_blastp(tmp_path / "db", fasta, output, params=params)

    assert result == output
    assert output.parent.is_dir()
    cmd = mock_diamond.call_args[0][0]
    assert cmd[1] == "blastp"
    assert cmd[cmd.index("--query") + 1] == str(fasta)
    assert cmd[cmd.index("--out") + 1] == str(output)
    assert cmd[cmd.index("--outfmt") + 1] == "6"
    assert cmd[cmd.index("--threads") + 1] == "16"
    assert cmd[cmd.index("--evalue") + 1] == "1e-10"
    assert cmd[cmd.index("--max-target-seqs") + 1] == "5"
    assert cmd[-1] == "--fast"


def test_blastp_default_params(mock_diamond, fasta, tmp_path):
    run_diamond_blastp(tmp_path / "db", fasta, tmp_path / "hits.tsv")

    cmd = mock_diamond.call_args[0][0]
    assert cmd[cmd.index("--evalue") + 1] == "1e-05"
    assert cmd[-1] == "--more-sensitive"


def test_blastp_missing_query(mock_diamond, tmp_path):
    with pytest.raises(FileNotFoundError, match="Query sequence file"):
        run_diamond_blastp(tmp_path / "db", tmp_path / "absent.faa", tmp_path / "hits.tsv")


def test_count_top_targets():
    hits = make_hits([
        ("q1", "PDG002"), ("q2", "PDG002"), ("q3", "PDG001"),
        ("q4", "PDG001"), ("q5", "PDG003"),
    ])

    top = count_top_targets(hits, n=2)

    assert top.rows() == [("PDG001", 2), ("PDG002", 2)]


def test_filter_high_confidence_strict_bounds():
    hits = make_hits([("q1", "t1"), ("q2", "t2"), ("q3", "t3"), ("q4", "t4")])
    hits = hits.with_columns(
        pl.Series("evalue", [1e-20, 1e-10, 1e-30, 1e-15]),
        pl.Series("identity", [85.0, 90.0, 40.0, 40.1]),
    )

    kept = filter_high_confidence(hits)

    assert kept["query_id"].to_list() == ["q1", "q4"]
