"""Pydantic models for pipeline configuration."""

import hashlib
import json
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    """Locations of the PDG-DB reference files."""

    fasta_path: Path = Field(
        default=Path("PDG_DB/PDG_DB_protein.faa"),
        description="PDG-DB protein sequences (FASTA)",
    )
    gene_type_path: Path = Field(
        default=Path("PDG_DB/PDG_DB_gene_type.tsv"),
        description="Gene-type annotation table (label -> plastic types)",
    )
    plastic_class_path: Path = Field(
        default=Path("PDG_DB/Plastic_classification.txt"),
        description="Plastic classification table (abbreviation -> categories)",
    )
    diamond_db: Path = Field(
        default=Path("pdg_db_diamond"),
        description="DIAMOND database prefix (.dmnd is appended by diamond)",
    )


class SearchConfig(BaseModel):
    """Parameters passed to diamond blastp."""

    threads: int = Field(
        default=8,
        ge=1,
        description="Number of CPU threads for diamond",
    )
    evalue: float = Field(
        default=1e-5,
        gt=0.0,
        description="Maximum e-value to report",
    )
    max_target_seqs: int = Field(
        default=10,
        ge=1,
        description="Maximum number of target sequences per query",
    )
    sensitivity: Literal[
        "fast",
        "mid-sensitive",
        "sensitive",
        "more-sensitive",
        "very-sensitive",
        "ultra-sensitive",
    ] = Field(
        default="more-sensitive",
        description="diamond sensitivity mode",
    )


class AnnotationConfig(BaseModel):
    """Behaviour of the join-expand-aggregate stage."""

    malformed_rows: Literal["halt", "skip"] = Field(
        default="halt",
        description="Rows with a wrong field count: halt the run or skip and log",
    )
    top_n_plot: int = Field(
        default=20,
        ge=1,
        description="Number of plastic types shown in the plastic type chart",
    )


class OutputConfig(BaseModel):
    """Which optional outputs to produce."""

    write_parquet: bool = Field(
        default=True,
        description="Also write the fully annotated table as Parquet",
    )
    write_plots: bool = Field(
        default=True,
        description="Render bar charts for each summary dimension",
    )


class PipelineConfig(BaseModel):
    """Main pipeline configuration."""

    data_dir: Path = Field(
        ...,
        description="Working directory for alignment results",
    )
    output_dir: Path = Field(
        ...,
        description="Directory for annotated tables, summaries and plots",
    )
    duckdb_path: Optional[Path] = Field(
        default=None,
        description="DuckDB file for persisting result tables (None disables)",
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig,
        description="PDG-DB reference file locations",
    )
    search: SearchConfig = Field(
        default_factory=SearchConfig,
        description="diamond blastp parameters",
    )
    annotation: AnnotationConfig = Field(
        default_factory=AnnotationConfig,
        description="Annotation pipeline behaviour",
    )
    output: OutputConfig = Field(
        default_factory=OutputConfig,
        description="Optional output switches",
    )

    @field_validator("data_dir", "output_dir")
    @classmethod
    def create_directory(cls, v: Path) -> Path:
        """Create directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        useful for tracking which settings produced a given output.
        """
        config_dict = self.model_dump(mode="python")
        # Path objects are not JSON serializable
        config_json = json.dumps(
            config_dict,
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
