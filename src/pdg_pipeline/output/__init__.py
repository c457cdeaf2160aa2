"""Output generation: annotated tables, summaries and charts."""

from pdg_pipeline.output.visualizations import (
    generate_all_plots,
    plot_dimension_counts,
    write_plots_pdf,
)
from pdg_pipeline.output.writers import write_annotation_output, write_tsv

__all__ = [
    "write_annotation_output",
    "write_tsv",
    "generate_all_plots",
    "plot_dimension_counts",
    "write_plots_pdf",
]
