"""Persistence layer for result tables and provenance tracking."""

from pdg_pipeline.persistence.duckdb_store import PipelineStore
from pdg_pipeline.persistence.provenance import ProvenanceTracker

__all__ = ["PipelineStore", "ProvenanceTracker"]
