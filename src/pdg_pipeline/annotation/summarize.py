"""Grouped hit statistics along plastic classification dimensions."""

from dataclasses import asdict, dataclass

import polars as pl
import structlog

logger = structlog.get_logger()

# Summary dimension column -> output file stem
SUMMARY_DIMENSIONS = {
    "plastic": "plastic_type_summary",
    "backbone_type": "backbone_type_summary",
    "degradability": "degradability_summary",
    "feedstock": "feedstock_summary",
}


@dataclass(frozen=True)
class RunStatistics:
    """Whole-run counters.

    Attributes:
        total_hits: Rows in the hit report
        annotated_hits: Rows retained after the gene-type join and filter
            (before plastic expansion)
        unique_queries: Distinct query IDs with at least one hit
        unique_targets: Distinct PDG-DB labels hit
    """

    total_hits: int
    annotated_hits: int
    unique_queries: int
    unique_targets: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class HitSummary:
    """The four dimension summaries plus run statistics."""

    plastic_types: pl.DataFrame
    backbone_types: pl.DataFrame
    degradability: pl.DataFrame
    feedstock: pl.DataFrame
    statistics: RunStatistics

    def tables(self) -> dict[str, pl.DataFrame]:
        """Summary tables keyed by output file stem."""
        return {
            SUMMARY_DIMENSIONS["plastic"]: self.plastic_types,
            SUMMARY_DIMENSIONS["backbone_type"]: self.backbone_types,
            SUMMARY_DIMENSIONS["degradability"]: self.degradability,
            SUMMARY_DIMENSIONS["feedstock"]: self.feedstock,
        }


def _sort_summary(df: pl.DataFrame, column: str) -> pl.DataFrame:
    """Sort by hit_count descending, then group key ascending (null last)."""
    return df.sort(
        ["hit_count", column],
        descending=[True, False],
        nulls_last=True,
    )


def summarize_dimension(expanded: pl.DataFrame, column: str) -> pl.DataFrame:
    """Count hits and distinct queries per value of one dimension.

    Null values form their own group (unclassified tokens).

    Args:
        expanded: DataFrame from join_and_expand
        column: Dimension column to group by

    Returns:
        DataFrame with columns [column, hit_count, unique_queries]
    """
    summary = expanded.group_by(column).agg(
        pl.len().cast(pl.Int64).alias("hit_count"),
        pl.col("query_id").n_unique().cast(pl.Int64).alias("unique_queries"),
    )
    return _sort_summary(summary, column)


def summarize_plastic_types(
    expanded: pl.DataFrame,
    plastic_classes: pl.DataFrame,
) -> pl.DataFrame:
    """Per-plastic hit counts with mean identity and bit score.

    Plastic name and backbone type are joined back from the classification
    table for display. A duplicated abbreviation takes its first
    classification row, so each plastic appears once.

    Args:
        expanded: DataFrame from join_and_expand
        plastic_classes: DataFrame from read_plastic_class_table

    Returns:
        DataFrame with columns plastic, hit_count, unique_queries,
        avg_identity, avg_bitscore, plastic_name, backbone_type
    """
    summary = expanded.group_by("plastic").agg(
        pl.len().cast(pl.Int64).alias("hit_count"),
        pl.col("query_id").n_unique().cast(pl.Int64).alias("unique_queries"),
        pl.col("identity").mean().alias("avg_identity"),
        pl.col("bitscore").mean().alias("avg_bitscore"),
    )
    summary = _sort_summary(summary, "plastic")

    return (
        summary
        .with_row_index("_summary_idx")
        .join(
            plastic_classes
            .select(["abbreviation", "plastic_name", "backbone_type"])
            .unique(subset="abbreviation", keep="first", maintain_order=True),
            left_on="plastic",
            right_on="abbreviation",
            how="left",
        )
        .sort("_summary_idx")
        .select([
            "plastic",
            "hit_count",
            "unique_queries",
            "avg_identity",
            "avg_bitscore",
            "plastic_name",
            "backbone_type",
        ])
    )


def compute_run_statistics(
    hits: pl.DataFrame,
    annotated: pl.DataFrame,
) -> RunStatistics:
    """Count loaded hits, annotated hits, distinct queries and targets.

    Query and target counts are taken over the unfiltered hit table.
    """
    return RunStatistics(
        total_hits=hits.height,
        annotated_hits=annotated.height,
        unique_queries=hits["query_id"].n_unique(),
        unique_targets=hits["target_id"].n_unique(),
    )


def summarize_hits(
    hits: pl.DataFrame,
    annotated: pl.DataFrame,
    expanded: pl.DataFrame,
    plastic_classes: pl.DataFrame,
) -> HitSummary:
    """Build all four dimension summaries and the run statistics.

    Args:
        hits: Hit table as loaded
        annotated: Output of join_gene_types
        expanded: Output of join_and_expand
        plastic_classes: Classification table, for display columns

    Returns:
        HitSummary
    """
    statistics = compute_run_statistics(hits, annotated)

    summary = HitSummary(
        plastic_types=summarize_plastic_types(expanded, plastic_classes),
        backbone_types=summarize_dimension(expanded, "backbone_type"),
        degradability=summarize_dimension(expanded, "degradability"),
        feedstock=summarize_dimension(expanded, "feedstock"),
        statistics=statistics,
    )

    logger.info(
        "summarize_hits_complete",
        plastic_groups=summary.plastic_types.height,
        backbone_groups=summary.backbone_types.height,
        degradability_groups=summary.degradability.height,
        feedstock_groups=summary.feedstock.height,
    )
    return summary
