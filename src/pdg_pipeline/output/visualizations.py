"""Bar charts of hit counts per classification dimension."""

import logging
from pathlib import Path
from typing import Optional

import matplotlib
import polars as pl

# Use Agg backend (non-interactive, safe for headless/CLI use)
matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import seaborn as sns  # noqa: E402
from matplotlib.backends.backend_pdf import PdfPages  # noqa: E402

from pdg_pipeline.annotation.summarize import SUMMARY_DIMENSIONS, HitSummary  # noqa: E402

logger = logging.getLogger(__name__)

UNCLASSIFIED_LABEL = "Unclassified"
PDF_FILENAME = "blast_results_analysis.pdf"

# Dimension column -> (axis label, title, bar color)
DIMENSION_STYLES = {
    "plastic": ("Plastic Type", "Top {top_n} Plastic Types by BLAST Hit Count", "#1F78B4"),
    "backbone_type": ("Backbone Type", "BLAST Hits by Polymer Backbone Type", "#33A02C"),
    "degradability": ("Degradability", "BLAST Hits by Plastic Degradability", "#E31A1C"),
    "feedstock": ("Feedstock", "BLAST Hits by Plastic Feedstock", "#FF7F00"),
}


def _dimension_figure(
    summary_df: pl.DataFrame,
    column: str,
    top_n: Optional[int] = None,
) -> plt.Figure:
    """Build a horizontal bar chart of hit_count per group, largest on top."""
    axis_label, title, color = DIMENSION_STYLES[column]

    df = summary_df if top_n is None else summary_df.head(top_n)

    labels = [
        UNCLASSIFIED_LABEL if value is None else value
        for value in df[column].to_list()
    ]
    values = df["hit_count"].to_list()

    sns.set_theme(style="whitegrid", context="paper")
    fig, ax = plt.subplots(figsize=(10, max(4, 0.35 * len(labels) + 2)))

    if labels:
        sns.barplot(x=values, y=labels, color=color, orient="h", ax=ax)
    else:
        ax.text(0.5, 0.5, "No annotated hits", ha="center", va="center",
                transform=ax.transAxes)

    ax.set_xlabel("Number of BLAST Hits", fontsize=12, fontweight="bold")
    ax.set_ylabel(axis_label, fontsize=12, fontweight="bold")
    if top_n is None:
        title = title.replace("Top {top_n} ", "")
    ax.set_title(title.format(top_n=top_n))
    ax.tick_params(labelsize=10)

    return fig


def plot_dimension_counts(
    summary_df: pl.DataFrame,
    column: str,
    output_path: Path,
    top_n: Optional[int] = None,
) -> Path:
    """
    Create a bar chart of hit counts for one summary dimension.

    Args:
        summary_df: Sorted summary table with column and hit_count
        column: Dimension column (key of DIMENSION_STYLES)
        output_path: Path where PNG will be saved
        top_n: Show only the first top_n groups (None = all)

    Returns:
        Path to the saved PNG file
    """
    fig = _dimension_figure(summary_df, column, top_n)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=300, bbox_inches="tight")

    # CRITICAL: Close figure to prevent memory leak
    plt.close(fig)

    logger.info(f"Saved {column} plot to {output_path}")
    return output_path


def _summary_by_dimension(summary: HitSummary) -> dict[str, pl.DataFrame]:
    tables = summary.tables()
    return {column: tables[stem] for column, stem in SUMMARY_DIMENSIONS.items()}


def write_plots_pdf(summary: HitSummary, output_path: Path, top_n: int = 20) -> Path:
    """
    Write all four charts as pages of one PDF.

    Args:
        summary: HitSummary from summarize_hits
        output_path: Path of the PDF file
        top_n: Number of plastic types on the plastic chart

    Returns:
        Path to the saved PDF
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with PdfPages(output_path) as pdf:
        for column, df in _summary_by_dimension(summary).items():
            fig = _dimension_figure(df, column, top_n if column == "plastic" else None)
            pdf.savefig(fig, bbox_inches="tight")
            plt.close(fig)

    logger.info(f"Saved combined plots to {output_path}")
    return output_path


def generate_all_plots(
    summary: HitSummary,
    output_dir: Path,
    top_n: int = 20,
) -> dict[str, Path]:
    """
    Generate one PNG per summary dimension plus the combined PDF.

    Args:
        summary: HitSummary from summarize_hits
        output_dir: Directory where plots will be saved
        top_n: Number of plastic types shown (other dimensions show all)

    Returns:
        Dictionary mapping plot name to file path

    Notes:
        - Plot names are the summary file stems, plus "pdf"
        - Each plot is wrapped in try/except so one failure does not stop the rest
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    plots = {}

    for column, df in _summary_by_dimension(summary).items():
        stem = SUMMARY_DIMENSIONS[column]
        try:
            plots[stem] = plot_dimension_counts(
                df,
                column,
                output_dir / f"{stem}.png",
                top_n=top_n if column == "plastic" else None,
            )
        except Exception as e:
            logger.warning(f"Failed to create {stem} plot: {e}")

    try:
        plots["pdf"] = write_plots_pdf(summary, output_dir / PDF_FILENAME, top_n=top_n)
    except Exception as e:
        logger.warning(f"Failed to create combined PDF: {e}")

    logger.info(f"Generated {len(plots)} plots in {output_dir}")
    return plots
