"""Search command: build the PDG-DB DIAMOND database and run blastp."""

import logging
import sys
from pathlib import Path

import click

from pdg_pipeline.alignment import (
    build_diamond_database,
    count_top_targets,
    run_diamond_blastp,
)
from pdg_pipeline.annotation import read_hit_table
from pdg_pipeline.config.loader import load_config_with_overrides

logger = logging.getLogger(__name__)

HIT_REPORT_FILENAME = "pdg_db_blastp_result.tsv"


@click.command('search')
@click.argument(
    'query_fasta',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    '--output',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f'Hit report path (default: {{data_dir}}/{HIT_REPORT_FILENAME})'
)
@click.option(
    '--threads',
    type=int,
    default=None,
    help='Override search.threads from config'
)
@click.option(
    '--evalue',
    type=float,
    default=None,
    help='Override search.evalue from config'
)
@click.option(
    '--force-db',
    is_flag=True,
    help='Rebuild the DIAMOND database even if it exists'
)
@click.pass_context
def search(ctx, query_fasta, output, threads, evalue, force_db):
    """Search QUERY_FASTA against PDG-DB with diamond blastp.

    Builds the DIAMOND database from the PDG-DB protein FASTA on first use,
    then writes an outfmt 6 hit report ready for 'pdg-pipeline annotate'.

    Examples:

        pdg-pipeline search query.fasta

        pdg-pipeline search query.fasta --threads 16 --output hits.tsv
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== PDG-DB DIAMOND Search ===", bold=True))
    click.echo()

    try:
        config = load_config_with_overrides(config_path, {
            "search.threads": threads,
            "search.evalue": evalue,
        })

        if output is None:
            output = Path(config.data_dir) / HIT_REPORT_FILENAME

        click.echo(click.style("Step 1: Building DIAMOND database...", bold=True))
        db_file = build_diamond_database(
            config.database.fasta_path,
            config.database.diamond_db,
            threads=config.search.threads,
            force=force_db,
        )
        click.echo(click.style(f"  Database: {db_file}", fg='green'))
        click.echo()

        click.echo(click.style("Step 2: Running DIAMOND blastp...", bold=True))
        hits_path = run_diamond_blastp(
            config.database.diamond_db,
            query_fasta,
            output,
            params=config.search,
        )
        click.echo(click.style(f"  Hit report: {hits_path}", fg='green'))
        click.echo()

        hits = read_hit_table(hits_path)
        top_targets = count_top_targets(hits, n=10)

        click.echo(click.style("Top 10 most frequently matched PDG-DB genes:", bold=True))
        for row in top_targets.iter_rows(named=True):
            click.echo(f"  {row['hit_count']:>6}  {row['target_id']}")
        click.echo()
        click.echo(f"Next: pdg-pipeline annotate {hits_path}")

    except Exception as e:
        click.echo(click.style(f"Search command failed: {e}", fg='red'), err=True)
        logger.exception("Search command failed")
        sys.exit(1)
