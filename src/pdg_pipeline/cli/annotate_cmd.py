"""Annotate command: join DIAMOND hits to PDG-DB annotations and summarize.

Orchestrates the full annotation pipeline:
- Reads the hit report, gene-type table and plastic classification
- Joins, expands multi-plastic genes and attaches classifications
- Summarizes by plastic type, backbone type, degradability and feedstock
- Writes TSV (+ Parquet) outputs, plots, DuckDB tables and provenance
"""

import logging
import sys
import warnings
from pathlib import Path

import click

from pdg_pipeline.annotation import process_hit_annotations
from pdg_pipeline.annotation.load import load_to_duckdb
from pdg_pipeline.config.loader import load_config_with_overrides
from pdg_pipeline.errors import EmptyJoinResultError
from pdg_pipeline.output import generate_all_plots, write_annotation_output
from pdg_pipeline.output.writers import ANNOTATED_FILENAME
from pdg_pipeline.persistence import PipelineStore, ProvenanceTracker

logger = logging.getLogger(__name__)


@click.command('annotate')
@click.argument(
    'hits_tsv',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    '--gene-types',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='Gene-type table (default: database.gene_type_path from config)'
)
@click.option(
    '--plastic-classes',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='Plastic classification table (default: database.plastic_class_path)'
)
@click.option(
    '--output-dir',
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help='Output directory (default: output_dir from config)'
)
@click.option(
    '--skip-malformed',
    is_flag=True,
    help='Skip rows with a wrong field count instead of halting'
)
@click.option(
    '--skip-viz',
    is_flag=True,
    help='Skip plot generation'
)
@click.option(
    '--skip-db',
    is_flag=True,
    help='Do not persist result tables to DuckDB'
)
@click.option(
    '--force',
    is_flag=True,
    help='Overwrite existing output files'
)
@click.pass_context
def annotate(ctx, hits_tsv, gene_types, plastic_classes, output_dir,
             skip_malformed, skip_viz, skip_db, force):
    """Annotate a DIAMOND hit report with PDG-DB plastic classifications.

    Pipeline steps:
    1. Load hits and reference tables
    2. Join gene types, expand plastic types, attach classifications
    3. Summarize per plastic type, backbone type, degradability, feedstock
    4. Write annotated table and summaries (TSV, optional Parquet)
    5. Generate plots (unless --skip-viz)
    6. Persist tables to DuckDB (unless --skip-db or no duckdb_path)

    Examples:

        pdg-pipeline annotate pdg_db_blastp_result.tsv

        pdg-pipeline annotate hits.tsv --output-dir results/run1 --skip-viz
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== PDG-DB Hit Annotation ===", bold=True))
    click.echo()

    store = None
    try:
        config = load_config_with_overrides(config_path, {
            "output_dir": output_dir,
            "database.gene_type_path": gene_types,
            "database.plastic_class_path": plastic_classes,
            "annotation.malformed_rows": "skip" if skip_malformed else None,
        })
        provenance = ProvenanceTracker.from_config(config)
        output_dir = Path(config.output_dir)

        annotated_tsv = output_dir / f"{ANNOTATED_FILENAME}.tsv"
        if annotated_tsv.exists() and not force:
            click.echo(click.style(
                f"Warning: Output files already exist at {output_dir}",
                fg='yellow'
            ))
            click.echo(click.style(
                "  Use --force to overwrite existing files.",
                fg='yellow'
            ))
            return

        # Steps 1-3: pure computation, nothing is written until it succeeds
        click.echo(click.style("Step 1: Loading, joining and summarizing hits...", bold=True))
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", EmptyJoinResultError)
            result = process_hit_annotations(
                hits_tsv,
                config.database.gene_type_path,
                config.database.plastic_class_path,
                malformed_rows=config.annotation.malformed_rows,
            )
        for warning in caught:
            if issubclass(warning.category, EmptyJoinResultError):
                click.echo(click.style(f"  Warning: {warning.message}", fg='yellow'))

        stats = result.summary.statistics
        click.echo(f"  Total BLAST hits:                  {stats.total_hits}")
        click.echo(f"  Annotated hits:                    {stats.annotated_hits}")
        click.echo(f"  Unique query sequences with hits:  {stats.unique_queries}")
        click.echo(f"  Unique PDG genes hit:              {stats.unique_targets}")
        click.echo(f"  Expanded hit rows:                 {result.expanded.height}")
        click.echo()
        provenance.record_input('hits', hits_tsv)
        provenance.record_input('gene_types', config.database.gene_type_path)
        provenance.record_input('plastic_classes', config.database.plastic_class_path)
        provenance.record_step('process_hit_annotations', {
            **stats.to_dict(),
            'expanded_hits': result.expanded.height,
        })

        # Step 4: Write tables
        click.echo(click.style("Step 2: Writing annotated table and summaries...", bold=True))
        output_paths = write_annotation_output(
            result,
            output_dir,
            write_parquet=config.output.write_parquet,
        )
        for name, path in output_paths.items():
            click.echo(click.style(f"  {name}: {path}", fg='green'))
        click.echo()
        provenance.record_step('write_annotation_output', {
            'output_dir': str(output_dir),
            'files': [p.name for p in output_paths.values()],
        })

        # Step 5: Plots
        if skip_viz or not config.output.write_plots:
            click.echo(click.style("Step 3: Skipping plots", fg='yellow'))
        else:
            click.echo(click.style("Step 3: Generating plots...", bold=True))
            plots_dir = output_dir / "plots"
            try:
                plot_paths = generate_all_plots(
                    result.summary,
                    plots_dir,
                    top_n=config.annotation.top_n_plot,
                )
                for plot_name, plot_path in plot_paths.items():
                    click.echo(click.style(f"  {plot_name}: {plot_path}", fg='green'))
                provenance.record_step('generate_plots', {
                    'plots_dir': str(plots_dir),
                    'plot_count': len(plot_paths),
                })
            except Exception as e:
                click.echo(click.style(f"  Warning: Plot generation failed: {e}", fg='yellow'))
                logger.exception("Failed to generate plots")
        click.echo()

        # Step 6: DuckDB
        if skip_db or config.duckdb_path is None:
            click.echo(click.style("Step 4: Skipping DuckDB persistence", fg='yellow'))
        else:
            click.echo(click.style("Step 4: Saving tables to DuckDB...", bold=True))
            store = PipelineStore.from_config(config)
            load_to_duckdb(result, store, provenance)
            provenance.save_to_store(store)
            click.echo(click.style(f"  DuckDB: {config.duckdb_path}", fg='green'))
        click.echo()

        provenance_path = provenance.save_sidecar(output_dir / "annotate")
        click.echo(click.style(f"Provenance saved: {provenance_path}", fg='green'))
        click.echo()

        click.echo(click.style("=== Plastic Type Summary (top 10) ===", bold=True))
        for row in result.summary.plastic_types.head(10).iter_rows(named=True):
            click.echo(
                f"  {row['plastic']:<12} hits={row['hit_count']:<6} "
                f"queries={row['unique_queries']}"
            )
        click.echo()
        click.echo(click.style("Annotation complete!", fg='green', bold=True))

    except Exception as e:
        click.echo(click.style(f"Annotate command failed: {e}", fg='red'), err=True)
        logger.exception("Annotate command failed")
        sys.exit(1)
    finally:
        if store is not None:
            store.close()
