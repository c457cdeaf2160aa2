"""Load annotated hits and summaries to DuckDB with provenance tracking."""

import polars as pl
import structlog

from pdg_pipeline.annotation.models import ANNOTATED_HITS_TABLE_NAME
from pdg_pipeline.annotation.transform import AnnotationResult
from pdg_pipeline.persistence import PipelineStore, ProvenanceTracker

logger = structlog.get_logger()


def load_to_duckdb(
    result: AnnotationResult,
    store: PipelineStore,
    provenance: ProvenanceTracker,
    description: str = "",
) -> None:
    """Save the annotated hit table and the four summaries to DuckDB.

    Creates or replaces each table (idempotent) and records one provenance
    step with the run statistics.

    Args:
        result: AnnotationResult from process_hit_annotations
        store: PipelineStore instance for DuckDB persistence
        provenance: ProvenanceTracker instance for metadata recording
        description: Optional description for checkpoint metadata
    """
    logger.info("annotation_load_start", row_count=result.expanded.height)

    store.save_dataframe(
        df=result.expanded,
        table_name=ANNOTATED_HITS_TABLE_NAME,
        description=description or "DIAMOND hits joined to PDG-DB gene types and plastic classification",
        replace=True,
    )

    table_rows = {ANNOTATED_HITS_TABLE_NAME: result.expanded.height}
    for table_name, df in result.summary.tables().items():
        store.save_dataframe(
            df=df,
            table_name=table_name,
            description=f"Hit counts grouped by {df.columns[0]}",
            replace=True,
        )
        table_rows[table_name] = df.height

    unclassified_count = result.expanded.filter(
        pl.col("plastic_name").is_null()
    ).height

    provenance.record_step("load_annotated_hits", {
        **result.summary.statistics.to_dict(),
        "expanded_hits": result.expanded.height,
        "unclassified_hits": unclassified_count,
        "table_rows": table_rows,
    })

    logger.info(
        "annotation_load_complete",
        tables=list(table_rows),
        expanded_hits=result.expanded.height,
        unclassified_hits=unclassified_count,
    )


def query_plastic_hits(store: PipelineStore, plastic: str) -> pl.DataFrame:
    """Query annotated hits for one plastic abbreviation.

    Args:
        store: PipelineStore instance
        plastic: Plastic abbreviation, e.g. "PET"

    Returns:
        Annotated hit rows for that plastic, best bit score first
    """
    logger.info("annotation_query_plastic", plastic=plastic)

    df = store.execute_query(
        f"""
        SELECT *
        FROM {ANNOTATED_HITS_TABLE_NAME}
        WHERE plastic = ?
        ORDER BY bitscore DESC, query_id ASC, target_id ASC
        """,
        params=[plastic],
    )

    logger.info("annotation_query_complete", result_count=len(df))
    return df
