"""Shared fixtures: small PDG-DB reference tables and DIAMOND hit reports."""

from pathlib import Path

import polars as pl
import pytest

DEFAULT_CONFIG = Path(__file__).resolve().parent.parent / "config" / "default.yaml"

GENE_TYPE_HEADER = ["label", "Gene_name", "Plastic"]
PLASTIC_CLASS_HEADER = [
    "Abbreviation",
    "Plastic name",
    "Backbone Type (L2)",
    "Degradability",
    "Feedstock",
]


def make_hit(
    query_id: str,
    target_id: str,
    identity: float = 90.0,
    bitscore: float = 200.0,
    evalue: float = 1e-50,
) -> list[str]:
    """One outfmt 6 row as strings."""
    return [
        query_id, target_id, str(identity), "300", "10", "1",
        "1", "300", "5", "304", str(evalue), str(bitscore),
    ]


def write_tsv(path: Path, rows: list[list[str]], header: list[str] | None = None) -> Path:
    lines = []
    if header is not None:
        lines.append("\t".join(header))
    lines.extend("\t".join(row) for row in rows)
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def hits_tsv(tmp_path):
    """Hit report: q1 and q2 hit annotated genes, q3 hits an unknown label."""
    return write_tsv(tmp_path / "hits.tsv", [
        make_hit("q1", "PDG001", identity=99.0, bitscore=500.0),
        make_hit("q1", "PDG002", identity=60.0, bitscore=150.0),
        make_hit("q2", "PDG001", identity=80.0, bitscore=300.0),
        make_hit("q2", "PDG003", identity=45.0, bitscore=90.0),
        make_hit("q3", "PDG999", identity=30.0, bitscore=40.0),
    ])


@pytest.fixture
def gene_type_tsv(tmp_path):
    """Gene types: PDG001 degrades PET and PLA, PDG002 PBAT, PDG003 unannotated."""
    return write_tsv(tmp_path / "PDG_DB_gene_type.tsv", [
        ["PDG001", "PETase", "PET, PLA"],
        ["PDG002", "cutinase", "PBAT"],
        ["PDG003", "hypothetical", "NA"],
    ], header=GENE_TYPE_HEADER)


@pytest.fixture
def plastic_class_tsv(tmp_path):
    return write_tsv(tmp_path / "Plastic_classification.txt", [
        ["PET", "Polyethylene terephthalate", "polyester", "biodegradable", "fossil"],
        ["PLA", "Polylactic acid", "polyester", "biodegradable", "bio"],
        ["PE", "Polyethylene", "polyolefin", "non-biodegradable", "fossil"],
    ], header=PLASTIC_CLASS_HEADER)


@pytest.fixture
def test_config(tmp_path, gene_type_tsv, plastic_class_tsv):
    """Config YAML pointing at the fixture tables, DuckDB in tmp_path."""
    config_path = tmp_path / "test_config.yaml"
    config_path.write_text(f"""
data_dir: {tmp_path / "data"}
output_dir: {tmp_path / "results"}
duckdb_path: {tmp_path / "test.duckdb"}
database:
  fasta_path: {tmp_path / "PDG_DB_protein.faa"}
  gene_type_path: {gene_type_tsv}
  plastic_class_path: {plastic_class_tsv}
  diamond_db: {tmp_path / "data" / "pdg_db_diamond"}
search:
  threads: 2
  evalue: 1.0e-5
  max_target_seqs: 10
  sensitivity: more-sensitive
annotation:
  malformed_rows: halt
  top_n_plot: 20
output:
  write_parquet: true
  write_plots: true
""")
    return config_path


def make_hits(pairs: list[tuple[str, str]], identity: float = 90.0) -> pl.DataFrame:
    """Hit table with one row per (query_id, target_id) pair."""
    n = len(pairs)
    return pl.DataFrame({
        "query_id": [q for q, _ in pairs],
        "target_id": [t for _, t in pairs],
        "identity": [identity] * n,
        "length": [300] * n,
        "mismatch": [10] * n,
        "gapopen": [1] * n,
        "qstart": [1] * n,
        "qend": [300] * n,
        "tstart": [5] * n,
        "tend": [304] * n,
        "evalue": [1e-50] * n,
        "bitscore": [200.0] * n,
    }, schema={
        "query_id": pl.Utf8, "target_id": pl.Utf8, "identity": pl.Float64,
        "length": pl.Int64, "mismatch": pl.Int64, "gapopen": pl.Int64,
        "qstart": pl.Int64, "qend": pl.Int64, "tstart": pl.Int64, "tend": pl.Int64,
        "evalue": pl.Float64, "bitscore": pl.Float64,
    })


def make_gene_types(rows: list[tuple[str, str | None]]) -> pl.DataFrame:
    return pl.DataFrame(
        {"label": [r[0] for r in rows], "plastic": [r[1] for r in rows]},
        schema={"label": pl.Utf8, "plastic": pl.Utf8},
    )


def make_classes(rows: list[tuple[str, str, str, str, str]]) -> pl.DataFrame:
    columns = ["abbreviation", "plastic_name", "backbone_type", "degradability", "feedstock"]
    return pl.DataFrame(
        {c: [r[i] for r in rows] for i, c in enumerate(columns)},
        schema={c: pl.Utf8 for c in columns},
    )


