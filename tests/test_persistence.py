"""Tests for persistence layer (DuckDB store and provenance tracking)."""

import hashlib
import json

import polars as pl
import pytest

from pdg_pipeline.annotation import ANNOTATED_HITS_TABLE_NAME, process_hit_annotations
from pdg_pipeline.annotation.load import load_to_duckdb, query_plastic_hits
from pdg_pipeline.config.loader import load_config
from pdg_pipeline.persistence import PipelineStore, ProvenanceTracker


@pytest.fixture
def pipeline_config(test_config):
    return load_config(test_config)


@pytest.fixture
def annotation_result(hits_tsv, gene_type_tsv, plastic_class_tsv):
    return process_hit_annotations(hits_tsv, gene_type_tsv, plastic_class_tsv)


# ============================================================================
# DuckDB Store Tests
# ============================================================================

def test_store_creates_database(tmp_path):
    """Test that PipelineStore creates .duckdb file at specified path."""
    db_path = tmp_path / "nested" / "test.duckdb"
    assert not db_path.exists()

    store = PipelineStore(db_path)
    store.close()

    assert db_path.exists()


def test_save_and_load_polars(tmp_path):
    """Test saving and loading polars DataFrame."""
    store = PipelineStore(tmp_path / "test.duckdb")

    df = pl.DataFrame({
        "plastic": ["PET", "PLA", "PBAT"],
        "hit_count": [12, 7, 3],
        "plastic_name": ["Polyethylene terephthalate", "Polylactic acid", None],
    })

    store.save_dataframe(df, "plastic_summary", "test summary")
    loaded = store.load_dataframe("plastic_summary")

    assert loaded.shape == df.shape
    assert loaded.columns == df.columns
    assert loaded["plastic"].to_list() == df["plastic"].to_list()
    assert loaded["plastic_name"].to_list() == df["plastic_name"].to_list()

    store.close()


def test_save_rejects_non_polars(tmp_path):
    store = PipelineStore(tmp_path / "test.duckdb")

    with pytest.raises(ValueError):
        store.save_dataframe({"plastic": ["PET"]}, "bad")

    store.close()


def test_save_replace_and_append(tmp_path):
    store = PipelineStore(tmp_path / "test.duckdb")
    df = pl.DataFrame({"val": [1, 2]})

    store.save_dataframe(df, "t", "first")
    store.save_dataframe(df, "t", "second")
    assert store.load_dataframe("t").height == 2

    store.save_dataframe(df, "t", "append", replace=False)
    assert store.load_dataframe("t").height == 4

    store.close()


def test_list_checkpoints(tmp_path):
    """Test listing checkpoints returns metadata."""
    store = PipelineStore(tmp_path / "test.duckdb")

    for i in range(3):
        df = pl.DataFrame({"val": list(range(i + 1))})
        store.save_dataframe(df, f"table_{i}", f"description {i}")

    checkpoints = store.list_checkpoints()

    assert len(checkpoints) == 3
    for ckpt in checkpoints:
        assert set(ckpt) == {"table_name", "created_at", "row_count", "description"}

    table_0 = [c for c in checkpoints if c["table_name"] == "table_0"][0]
    assert table_0["row_count"] == 1
    assert table_0["description"] == "description 0"
    assert store.has_checkpoint("table_2")
    assert not store.has_checkpoint("table_3")

    store.close()


def test_load_nonexistent_returns_none(tmp_path):
    store = PipelineStore(tmp_path / "test.duckdb")

    assert store.load_dataframe("nonexistent_table") is None

    store.close()


def test_context_manager(tmp_path):
    """Data persists after the context manager closes the connection."""
    db_path = tmp_path / "test.duckdb"
    df = pl.DataFrame({"col": [1, 2, 3]})

    with PipelineStore(db_path) as store:
        store.save_dataframe(df, "test_table", "test")
        assert store.has_checkpoint("test_table")

    with PipelineStore(db_path) as store:
        loaded = store.load_dataframe("test_table")
        assert loaded is not None
        assert loaded.shape == df.shape


def test_from_config(pipeline_config):
    with PipelineStore.from_config(pipeline_config) as store:
        assert store.db_path == pipeline_config.duckdb_path


def test_from_config_without_duckdb_path(pipeline_config):
    config = pipeline_config.model_copy(update={"duckdb_path": None})

    with pytest.raises(ValueError, match="duckdb_path"):
        PipelineStore.from_config(config)


# ============================================================================
# Annotation load tests
# ============================================================================

def test_load_to_duckdb(tmp_path, pipeline_config, annotation_result):
    store = PipelineStore(tmp_path / "annot.duckdb")
    provenance = ProvenanceTracker("0.1.0", pipeline_config)

    load_to_duckdb(annotation_result, store, provenance)

    annotated = store.load_dataframe(ANNOTATED_HITS_TABLE_NAME)
    assert annotated.height == annotation_result.expanded.height
    assert annotated.columns == annotation_result.expanded.columns

    plastic = store.load_dataframe("plastic_type_summary")
    assert plastic["plastic"].to_list() == ["PET", "PLA", "PBAT"]

    tables = {c["table_name"] for c in store.list_checkpoints()}
    assert tables == {
        ANNOTATED_HITS_TABLE_NAME,
        "plastic_type_summary",
        "backbone_type_summary",
        "degradability_summary",
        "feedstock_summary",
    }

    steps = provenance.get_steps()
    assert steps[-1]["step_name"] == "load_annotated_hits"
    assert steps[-1]["details"]["annotated_hits"] == 3
    assert steps[-1]["details"]["unclassified_hits"] == 1

    store.close()


def test_load_to_duckdb_idempotent(tmp_path, pipeline_config, annotation_result):
    store = PipelineStore(tmp_path / "annot.duckdb")
    provenance = ProvenanceTracker("0.1.0", pipeline_config)

    load_to_duckdb(annotation_result, store, provenance)
    load_to_duckdb(annotation_result, store, provenance)

    annotated = store.load_dataframe(ANNOTATED_HITS_TABLE_NAME)
    assert annotated.height == annotation_result.expanded.height

    store.close()


def test_query_plastic_hits(tmp_path, pipeline_config, annotation_result):
    store = PipelineStore(tmp_path / "annot.duckdb")
    load_to_duckdb(annotation_result, store, ProvenanceTracker("0.1.0", pipeline_config))

    pet = query_plastic_hits(store, "PET")

    assert pet["query_id"].to_list() == ["q1", "q2"]
    assert pet["bitscore"].to_list() == [500.0, 300.0]
    assert set(pet["plastic"].to_list()) == {"PET"}
    assert query_plastic_hits(store, "PE").height == 0

    store.close()


# ============================================================================
# Provenance Tests
# ============================================================================

def test_provenance_metadata_structure(pipeline_config):
    """Test that provenance metadata has all required keys."""
    tracker = ProvenanceTracker("0.1.0", pipeline_config)

    metadata = tracker.create_metadata()

    assert set(metadata) == {
        "pipeline_version",
        "settings",
        "config_hash",
        "created_at",
        "inputs",
        "processing_steps",
    }
    assert metadata["pipeline_version"] == "0.1.0"
    assert metadata["settings"]["search"]["threads"] == 2
    assert metadata["settings"]["annotation"]["malformed_rows"] == "halt"
    assert metadata["config_hash"] == pipeline_config.config_hash()
    assert metadata["processing_steps"] == []
    assert metadata["inputs"] == {}


def test_provenance_records_steps(pipeline_config):
    """Test that processing steps are recorded with timestamps."""
    tracker = ProvenanceTracker("0.1.0", pipeline_config)

    tracker.record_step("build_database")
    tracker.record_step("search", {"hit_count": 42})

    steps = tracker.create_metadata()["processing_steps"]

    assert len(steps) == 2
    assert steps[0]["step_name"] == "build_database"
    assert "details" not in steps[0]
    assert steps[1]["details"]["hit_count"] == 42
    assert all("timestamp" in step for step in steps)
    assert all(step["elapsed_seconds"] >= 0 for step in steps)


def test_provenance_records_input_checksums(pipeline_config, gene_type_tsv):
    tracker = ProvenanceTracker("0.1.0", pipeline_config)

    entry = tracker.record_input("gene_types", gene_type_tsv)

    assert entry["path"] == str(gene_type_tsv)
    assert entry["size_bytes"] == gene_type_tsv.stat().st_size
    assert entry["sha256"] == hashlib.sha256(gene_type_tsv.read_bytes()).hexdigest()
    assert tracker.create_metadata()["inputs"] == {"gene_types": entry}


def test_provenance_sidecar_roundtrip(pipeline_config, tmp_path):
    """Test saving and loading provenance sidecar."""
    tracker = ProvenanceTracker("0.1.0", pipeline_config)
    tracker.record_step("test_step", {"key": "value"})

    sidecar_path = tracker.save_sidecar(tmp_path / "out" / "annotate")

    assert sidecar_path == tmp_path / "out" / "annotate.provenance.json"
    loaded = ProvenanceTracker.load_sidecar(sidecar_path)
    assert loaded["pipeline_version"] == "0.1.0"
    assert loaded["config_hash"] == pipeline_config.config_hash()
    assert loaded["processing_steps"][0]["details"] == {"key": "value"}


def test_provenance_from_config_uses_package_version(pipeline_config):
    from pdg_pipeline import __version__

    tracker = ProvenanceTracker.from_config(pipeline_config)

    assert tracker.pipeline_version == __version__


def test_provenance_save_to_store(pipeline_config, gene_type_tsv, tmp_path):
    """Test saving provenance to DuckDB store."""
    store = PipelineStore(tmp_path / "test.duckdb")
    tracker = ProvenanceTracker("0.1.0", pipeline_config)
    tracker.record_step("test_step")
    tracker.record_input("gene_types", gene_type_tsv)

    tracker.save_to_store(store)

    rows = store.conn.execute("SELECT * FROM _provenance").fetchall()
    assert len(rows) == 1
    assert rows[0][0] == "0.1.0"
    assert rows[0][1] == pipeline_config.config_hash()

    steps = json.loads(rows[0][3])
    assert steps[0]["step_name"] == "test_step"
    inputs = json.loads(rows[0][4])
    assert inputs["gene_types"]["path"] == str(gene_type_tsv)

    store.close()
