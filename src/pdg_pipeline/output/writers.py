"""TSV (+ Parquet) writers for annotated hits and summaries with provenance sidecar."""

import logging
from datetime import datetime, timezone
from pathlib import Path

import polars as pl
import yaml

from pdg_pipeline.annotation.transform import AnnotationResult

logger = logging.getLogger(__name__)

ANNOTATED_FILENAME = "blast_results_fully_annotated"
PROVENANCE_FILENAME = "annotation.provenance.yaml"


def write_tsv(df: pl.DataFrame, path: Path) -> Path:
    """
    Write a DataFrame as an unquoted tab-separated file with header.

    Nulls are written as "NA".

    Args:
        df: DataFrame to write
        path: Output path

    Returns:
        The path written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    df.write_csv(
        path,
        separator="\t",
        include_header=True,
        quote_style="never",
        null_value="NA",
    )
    return path


def write_annotation_output(
    result: AnnotationResult,
    output_dir: Path,
    write_parquet: bool = True,
) -> dict[str, Path]:
    """
    Write the fully annotated hit table, the four summaries and a provenance sidecar.

    Called only once every stage has completed, so a failed run leaves no
    partial output behind.

    Args:
        result: AnnotationResult from process_hit_annotations
        output_dir: Directory to write output files (created if doesn't exist)
        write_parquet: Also write the annotated table as Parquet

    Returns:
        Dictionary mapping output name to path:
        {
            "annotated": TSV of expanded hits,
            "annotated_parquet": Parquet copy (if requested),
            "plastic_type_summary": ..., "backbone_type_summary": ...,
            "degradability_summary": ..., "feedstock_summary": ...,
            "provenance": YAML sidecar
        }

    Notes:
        - Row order is the pipeline order; summaries are already sorted
        - The provenance YAML is the only file carrying a timestamp
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths: dict[str, Path] = {}

    paths["annotated"] = write_tsv(
        result.expanded, output_dir / f"{ANNOTATED_FILENAME}.tsv"
    )

    if write_parquet:
        parquet_path = output_dir / f"{ANNOTATED_FILENAME}.parquet"
        result.expanded.write_parquet(parquet_path, compression="snappy", use_pyarrow=True)
        paths["annotated_parquet"] = parquet_path

    for stem, df in result.summary.tables().items():
        paths[stem] = write_tsv(df, output_dir / f"{stem}.tsv")

    provenance_path = output_dir / PROVENANCE_FILENAME
    provenance = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "output_files": [p.name for p in paths.values()],
        "statistics": {
            **result.summary.statistics.to_dict(),
            "expanded_hits": result.expanded.height,
        },
        "table_rows": {
            stem: df.height for stem, df in result.summary.tables().items()
        },
        "column_names": result.expanded.columns,
    }

    with open(provenance_path, "w") as f:
        yaml.dump(provenance, f, default_flow_style=False, sort_keys=False)
    paths["provenance"] = provenance_path

    logger.info(f"Wrote {len(paths)} output files to {output_dir}")
    return paths
