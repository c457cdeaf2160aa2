"""DIAMOND database construction and homology search."""

from pdg_pipeline.alignment.diamond import (
    build_diamond_database,
    count_top_targets,
    filter_high_confidence,
    run_diamond_blastp,
)

__all__ = [
    "build_diamond_database",
    "run_diamond_blastp",
    "count_top_targets",
    "filter_high_confidence",
]
