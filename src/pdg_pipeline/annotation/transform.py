"""Join DIAMOND hits to PDG-DB annotations and expand multi-plastic genes."""

import warnings
from dataclasses import dataclass
from pathlib import Path

import polars as pl
import structlog

from pdg_pipeline.annotation.fetch import (
    MalformedRowPolicy,
    read_gene_type_table,
    read_hit_table,
    read_plastic_class_table,
)
from pdg_pipeline.annotation.models import (
    CLASSIFICATION_COLUMNS,
    EXPANDED_COLUMNS,
    HIT_COLUMNS,
)
from pdg_pipeline.annotation.summarize import HitSummary, summarize_hits
from pdg_pipeline.errors import EmptyJoinResultError

logger = structlog.get_logger()

PLASTIC_DELIMITER = ","


def split_plastic_types(value: str) -> list[str]:
    """Split a multi-valued plastic field into trimmed tokens.

    Splits on a comma followed by optional whitespace. Empty tokens are
    kept, so "PET,,PLA" gives ["PET", "", "PLA"] and "" gives [""].

    Args:
        value: Raw plastic field, e.g. "PET, PBAT"

    Returns:
        List of plastic abbreviations in field order
    """
    return [token.strip() for token in value.split(PLASTIC_DELIMITER)]


def join_gene_types(hits: pl.DataFrame, gene_types: pl.DataFrame) -> pl.DataFrame:
    """Attach the plastic field of each hit's target gene.

    Left join on target_id = label. A label listed k times yields k rows
    per matching hit. Rows whose plastic field is null, empty or blank
    after the join are dropped, which also removes hits on unknown labels.

    Args:
        hits: DataFrame with HIT_COLUMNS
        gene_types: DataFrame with label and plastic columns

    Returns:
        DataFrame with HIT_COLUMNS + plastic, ordered by hit then by
        gene-type row
    """
    logger.info(
        "join_gene_types_start",
        hit_count=hits.height,
        gene_type_count=gene_types.height,
    )

    joined = hits.with_row_index("_hit_idx").join(
        gene_types.select(["label", "plastic"]).with_row_index("_gene_idx"),
        left_on="target_id",
        right_on="label",
        how="left",
    )

    annotated = (
        joined
        .filter(
            pl.col("plastic").is_not_null()
            & (pl.col("plastic").str.strip_chars() != "")
        )
        .sort(["_hit_idx", "_gene_idx"])
        .select(HIT_COLUMNS + ["plastic"])
    )

    logger.info(
        "join_gene_types_complete",
        joined_count=joined.height,
        retained_count=annotated.height,
        dropped_count=joined.height - annotated.height,
    )
    return annotated


def expand_plastic_types(df: pl.DataFrame) -> pl.DataFrame:
    """Fan out the plastic column to one row per plastic token.

    Each field is split with split_plastic_types. Row order follows the
    input, then token order within each field.

    Args:
        df: DataFrame with a plastic column holding delimited values

    Returns:
        DataFrame with the same columns, plastic holding single tokens
    """
    expanded = (
        df
        .with_columns(
            pl.col("plastic").map_elements(
                split_plastic_types, return_dtype=pl.List(pl.Utf8)
            )
        )
        .explode("plastic")
    )

    logger.info(
        "expand_plastic_types_complete",
        input_count=df.height,
        expanded_count=expanded.height,
    )
    return expanded


def join_plastic_classes(
    df: pl.DataFrame,
    plastic_classes: pl.DataFrame,
) -> pl.DataFrame:
    """Attach classification categories to each plastic token.

    Left join on plastic = abbreviation. Tokens without a classification
    keep their row with null category fields. A duplicated abbreviation
    fans out like any other join key.

    Args:
        df: Expanded DataFrame with HIT_COLUMNS + plastic
        plastic_classes: DataFrame from read_plastic_class_table

    Returns:
        DataFrame with EXPANDED_COLUMNS
    """
    joined = (
        df
        .with_row_index("_expanded_idx")
        .join(
            plastic_classes
            .select(["abbreviation"] + CLASSIFICATION_COLUMNS)
            .with_row_index("_class_idx"),
            left_on="plastic",
            right_on="abbreviation",
            how="left",
        )
        .sort(["_expanded_idx", "_class_idx"], nulls_last=True)
        .select(EXPANDED_COLUMNS)
    )

    unclassified = joined.filter(
        pl.all_horizontal(pl.col(CLASSIFICATION_COLUMNS).is_null())
    )
    if unclassified.height:
        logger.warning(
            "plastic_tokens_unclassified",
            row_count=unclassified.height,
            tokens=sorted(unclassified["plastic"].unique().to_list()),
        )

    return joined


def join_and_expand(
    hits: pl.DataFrame,
    gene_types: pl.DataFrame,
    plastic_classes: pl.DataFrame,
) -> pl.DataFrame:
    """Join hits to gene types, expand plastic tokens, attach classifications.

    Args:
        hits: DataFrame from read_hit_table
        gene_types: DataFrame from read_gene_type_table
        plastic_classes: DataFrame from read_plastic_class_table

    Returns:
        DataFrame with EXPANDED_COLUMNS, one row per hit and plastic token
    """
    annotated = join_gene_types(hits, gene_types)
    expanded = expand_plastic_types(annotated)
    return join_plastic_classes(expanded, plastic_classes)


@dataclass(frozen=True)
class AnnotationResult:
    """All tables produced by one pipeline run."""

    hits: pl.DataFrame
    annotated: pl.DataFrame
    expanded: pl.DataFrame
    plastic_classes: pl.DataFrame
    summary: HitSummary


def process_hit_annotations(
    hits_path: Path | str,
    gene_type_path: Path | str,
    plastic_class_path: Path | str,
    malformed_rows: MalformedRowPolicy = "halt",
) -> AnnotationResult:
    """End-to-end hit annotation pipeline.

    Composes: read inputs -> gene-type join/filter -> plastic expansion ->
    classification join -> per-dimension summaries.

    An empty gene-type join issues EmptyJoinResultError as a warning; the
    summaries are then empty but keep their full schema.

    Args:
        hits_path: DIAMOND outfmt 6 report
        gene_type_path: PDG-DB gene-type table
        plastic_class_path: Plastic classification table
        malformed_rows: "halt" or "skip" for rows with a wrong field count

    Returns:
        AnnotationResult with every intermediate table and the summary
    """
    logger.info("process_hit_annotations_start", hits_path=str(hits_path))

    hits = read_hit_table(hits_path, malformed_rows=malformed_rows)
    gene_types = read_gene_type_table(gene_type_path, malformed_rows=malformed_rows)
    plastic_classes = read_plastic_class_table(
        plastic_class_path, malformed_rows=malformed_rows
    )

    annotated = join_gene_types(hits, gene_types)
    if annotated.height == 0:
        logger.warning("empty_join_result", hit_count=hits.height)
        warnings.warn(
            EmptyJoinResultError(
                "No hits matched an annotated PDG-DB gene",
                source=Path(hits_path).name,
            ),
            stacklevel=2,
        )

    expanded = join_plastic_classes(expand_plastic_types(annotated), plastic_classes)
    summary = summarize_hits(hits, annotated, expanded, plastic_classes)

    logger.info(
        "process_hit_annotations_complete",
        **summary.statistics.to_dict(),
        expanded_hits=expanded.height,
    )

    return AnnotationResult(
        hits=hits,
        annotated=annotated,
        expanded=expanded,
        plastic_classes=plastic_classes,
        summary=summary,
    )
