"""Provenance tracking for annotation runs."""

import hashlib
import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


def file_checksum(path: Path, chunk_size: int = 1 << 20) -> str:
    """SHA-256 of a file's bytes."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ProvenanceTracker:
    """
    Records what produced an output directory.

    Holds the pipeline version, config hash and the search/annotation
    settings, a checksum for each input table, and the ordered processing
    steps with the wall time each one took.
    """

    def __init__(self, pipeline_version: str, config: "PipelineConfig"):
        """
        Args:
            pipeline_version: Pipeline version string (e.g., "0.1.0")
            config: PipelineConfig instance
        """
        self.pipeline_version = pipeline_version
        self.config_hash = config.config_hash()
        self.settings = {
            "search": config.search.model_dump(),
            "annotation": config.annotation.model_dump(),
        }
        self.inputs: dict[str, dict] = {}
        self.processing_steps: list[dict] = []
        self.created_at = datetime.now(timezone.utc)
        self._last_mark = time.perf_counter()

    def record_input(self, role: str, path: Path) -> dict:
        """
        Fingerprint an input file so a rerun can confirm it saw the same data.

        Args:
            role: What the file is, e.g. "hits" or "gene_types"
            path: Path to the file

        Returns:
            The recorded entry (path, size_bytes, sha256)
        """
        path = Path(path)
        entry = {
            "path": str(path),
            "size_bytes": path.stat().st_size,
            "sha256": file_checksum(path),
        }
        self.inputs[role] = entry
        return entry

    def record_step(self, step_name: str, details: Optional[dict] = None) -> None:
        """
        Append a processing step.

        elapsed_seconds is the time since the previous step, or since the
        tracker was created for the first step.
        """
        now = time.perf_counter()
        step = {
            "step_name": step_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "elapsed_seconds": round(now - self._last_mark, 3),
        }
        self._last_mark = now
        if details:
            step["details"] = details
        self.processing_steps.append(step)

    def get_steps(self) -> list[dict]:
        return self.processing_steps

    def create_metadata(self) -> dict:
        return {
            "pipeline_version": self.pipeline_version,
            "config_hash": self.config_hash,
            "created_at": self.created_at.isoformat(),
            "settings": self.settings,
            "inputs": self.inputs,
            "processing_steps": self.processing_steps,
        }

    def save_sidecar(self, output_path: Path) -> Path:
        """
        Save provenance metadata as a JSON sidecar file.

        Args:
            output_path: Path to the main output file.
                         Sidecar will be saved as {path}.provenance.json

        Returns:
            Path to the written sidecar
        """
        sidecar_path = Path(output_path).with_suffix(".provenance.json")
        sidecar_path.parent.mkdir(parents=True, exist_ok=True)

        with open(sidecar_path, "w") as f:
            json.dump(self.create_metadata(), f, indent=2, default=str)
        return sidecar_path

    def save_to_store(self, store: "PipelineStore") -> None:
        """
        Append one row for this run to the DuckDB _provenance table.

        Args:
            store: PipelineStore instance
        """
        metadata = self.create_metadata()

        store.conn.execute("""
            CREATE TABLE IF NOT EXISTS _provenance (
                version VARCHAR,
                config_hash VARCHAR,
                created_at TIMESTAMP,
                steps_json VARCHAR,
                inputs_json VARCHAR
            )
        """)

        store.conn.execute("""
            INSERT INTO _provenance (version, config_hash, created_at, steps_json, inputs_json)
            VALUES (?, ?, ?, ?, ?)
        """, [
            metadata["pipeline_version"],
            metadata["config_hash"],
            metadata["created_at"],
            json.dumps(metadata["processing_steps"], default=str),
            json.dumps(metadata["inputs"]),
        ])

    @staticmethod
    def load_sidecar(sidecar_path: Path) -> dict:
        """Load provenance metadata from a sidecar file."""
        with open(sidecar_path) as f:
            return json.load(f)

    @classmethod
    def from_config(
        cls,
        config: "PipelineConfig",
        version: Optional[str] = None
    ) -> "ProvenanceTracker":
        """
        Create ProvenanceTracker from a PipelineConfig.

        Args:
            config: PipelineConfig instance
            version: Pipeline version string. If None, uses pdg_pipeline.__version__
        """
        if version is None:
            from pdg_pipeline import __version__
            version = __version__

        return cls(version, config)
