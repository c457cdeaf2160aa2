"""Main CLI entry point for pdg-pipeline.

Provides command group with global options and subcommands for pipeline operations.
"""

import logging
from pathlib import Path

import click

from pdg_pipeline import __version__
from pdg_pipeline.config.loader import load_config
from pdg_pipeline.cli.annotate_cmd import annotate
from pdg_pipeline.cli.search_cmd import search


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@click.group()
@click.version_option(__version__, prog_name="pdg-pipeline")
@click.option(
    '--config',
    type=click.Path(exists=True, path_type=Path),
    default='config/default.yaml',
    help='Path to pipeline configuration YAML file'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose logging (DEBUG level)'
)
@click.pass_context
def cli(ctx, config, verbose):
    """pdg-pipeline: search proteins against PDG-DB and summarize plastic-degradation hits.

    Wraps DIAMOND database construction and blastp search, then joins the
    hits to PDG-DB gene types and plastic classifications and summarizes
    them by plastic type, backbone, degradability and feedstock.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Verbose logging enabled")


@cli.command()
@click.pass_context
def info(ctx):
    """Display pipeline information and configuration summary."""
    config_path = ctx.obj['config_path']

    click.echo(f"PDG Pipeline v{__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)

        config_hash = config.config_hash()
        click.echo(f"Config Hash: {config_hash[:16]}...")
        click.echo()

        click.echo(click.style("PDG-DB Files:", bold=True))
        click.echo(f"  Protein FASTA:   {config.database.fasta_path}")
        click.echo(f"  Gene Types:      {config.database.gene_type_path}")
        click.echo(f"  Classification:  {config.database.plastic_class_path}")
        click.echo(f"  DIAMOND DB:      {config.database.diamond_db}")
        click.echo()

        click.echo(click.style("Paths:", bold=True))
        click.echo(f"  Data Directory:   {config.data_dir}")
        click.echo(f"  Output Directory: {config.output_dir}")
        click.echo(f"  DuckDB Path:      {config.duckdb_path or 'disabled'}")
        click.echo()

        click.echo(click.style("Search Parameters:", bold=True))
        click.echo(f"  Threads:          {config.search.threads}")
        click.echo(f"  E-value:          {config.search.evalue}")
        click.echo(f"  Max Target Seqs:  {config.search.max_target_seqs}")
        click.echo(f"  Sensitivity:      {config.search.sensitivity}")
        click.echo()

        click.echo(click.style("Annotation:", bold=True))
        click.echo(f"  Malformed Rows:   {config.annotation.malformed_rows}")
        click.echo(f"  Top N (plot):     {config.annotation.top_n_plot}")

    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)


# Register commands
cli.add_command(search)
cli.add_command(annotate)


if __name__ == '__main__':
    cli()
