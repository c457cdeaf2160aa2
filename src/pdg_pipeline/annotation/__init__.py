"""Hit annotation layer: load, join, expand and summarize DIAMOND hits."""

from pdg_pipeline.annotation.models import (
    ANNOTATED_HITS_TABLE_NAME,
    EXPANDED_COLUMNS,
    HIT_COLUMNS,
    ExpandedHit,
    GeneTypeAnnotation,
    HitRecord,
    PlasticClassification,
)
from pdg_pipeline.annotation.fetch import (
    read_gene_type_table,
    read_hit_table,
    read_plastic_class_table,
    resolve_columns,
)
from pdg_pipeline.annotation.summarize import (
    SUMMARY_DIMENSIONS,
    HitSummary,
    RunStatistics,
    compute_run_statistics,
    summarize_dimension,
    summarize_hits,
    summarize_plastic_types,
)
from pdg_pipeline.annotation.transform import (
    AnnotationResult,
    expand_plastic_types,
    join_and_expand,
    join_gene_types,
    join_plastic_classes,
    process_hit_annotations,
    split_plastic_types,
)

__all__ = [
    "ANNOTATED_HITS_TABLE_NAME",
    "EXPANDED_COLUMNS",
    "HIT_COLUMNS",
    "HitRecord",
    "GeneTypeAnnotation",
    "PlasticClassification",
    "ExpandedHit",
    "read_hit_table",
    "read_gene_type_table",
    "read_plastic_class_table",
    "resolve_columns",
    "split_plastic_types",
    "join_gene_types",
    "expand_plastic_types",
    "join_plastic_classes",
    "join_and_expand",
    "process_hit_annotations",
    "AnnotationResult",
    "SUMMARY_DIMENSIONS",
    "HitSummary",
    "RunStatistics",
    "compute_run_statistics",
    "summarize_dimension",
    "summarize_plastic_types",
    "summarize_hits",
]
