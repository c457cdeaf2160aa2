"""Build a DIAMOND database from PDG-DB and search query proteins against it."""

import shutil
import subprocess
import time
from pathlib import Path

import polars as pl
import structlog

from pdg_pipeline.config.schema import SearchConfig

logger = structlog.get_logger()

DIAMOND_EXECUTABLE = "diamond"


def _diamond_path() -> str:
    """Locate the diamond executable on PATH.

    Raises:
        FileNotFoundError: If diamond is not installed
    """
    path = shutil.which(DIAMOND_EXECUTABLE)
    if path is None:
        raise FileNotFoundError(
            "diamond not found on PATH. Install it from https://github.com/bbuchfink/diamond"
        )
    return path


def _run(cmd: list[str], step: str) -> float:
    """Run a diamond command, returning its wall time in seconds.

    Raises:
        RuntimeError: If the command exits non-zero
    """
    logger.debug("diamond_command", step=step, cmd=" ".join(cmd))
    start_time = time.perf_counter()
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"diamond {step} failed: {e.stderr.strip()}") from e
    return time.perf_counter() - start_time


def build_diamond_database(
    fasta_path: Path,
    db_prefix: Path,
    threads: int = 8,
    force: bool = False,
) -> Path:
    """Run `diamond makedb` on the PDG-DB protein FASTA.

    Checkpoint pattern: an existing <db_prefix>.dmnd is reused unless
    force is set.

    Args:
        fasta_path: PDG-DB protein sequences
        db_prefix: Database path without the .dmnd suffix
        threads: CPU threads for diamond
        force: Rebuild even if the database exists

    Returns:
        Path to the .dmnd database file

    Raises:
        FileNotFoundError: If the FASTA file or diamond is missing
        RuntimeError: If makedb fails
    """
    fasta_path = Path(fasta_path)
    db_prefix = Path(db_prefix)
    db_file = db_prefix.with_name(db_prefix.name + ".dmnd")

    if db_file.exists() and not force:
        logger.info("diamond_db_exists", path=str(db_file))
        return db_file

    if not fasta_path.exists():
        raise FileNotFoundError(f"PDG-DB sequence file not found: {fasta_path}")

    db_prefix.parent.mkdir(parents=True, exist_ok=True)

    logger.info("diamond_makedb_start", fasta=str(fasta_path), db=str(db_prefix))
    elapsed = _run(
        [
            _diamond_path(),
            "makedb",
            "--in", str(fasta_path),
            "--db", str(db_prefix),
            "--threads", str(threads),
        ],
        step="makedb",
    )
    logger.info("diamond_makedb_complete", path=str(db_file), seconds=round(elapsed, 2))

    return db_file


def run_diamond_blastp(
    db_prefix: Path,
    query_fasta: Path,
    output_tsv: Path,
    params: SearchConfig | None = None,
) -> Path:
    """Run `diamond blastp` and write an outfmt 6 hit report.

    Args:
        db_prefix: Database path (with or without .dmnd)
        query_fasta: Query protein sequences
        output_tsv: Where to write the 12-column hit report
        params: Search parameters (threads, evalue, max_target_seqs, sensitivity)

    Returns:
        Path to the hit report

    Raises:
        FileNotFoundError: If the query FASTA or diamond is missing
        RuntimeError: If blastp fails
    """
    if params is None:
        params = SearchConfig()

    query_fasta = Path(query_fasta)
    output_tsv = Path(output_tsv)

    if not query_fasta.exists():
        raise FileNotFoundError(f"Query sequence file not found: {query_fasta}")

    output_tsv.parent.mkdir(parents=True, exist_ok=True)

    logger.info(
        "diamond_blastp_start",
        query=str(query_fasta),
        db=str(db_prefix),
        evalue=params.evalue,
        max_target_seqs=params.max_target_seqs,
        sensitivity=params.sensitivity,
    )
    elapsed = _run(
        [
            _diamond_path(),
            "blastp",
            "--db", str(db_prefix),
            "--query", str(query_fasta),
            "--out", str(output_tsv),
            "--outfmt", "6",
            "--threads", str(params.threads),
            "--evalue", str(params.evalue),
            "--max-target-seqs", str(params.max_target_seqs),
            f"--{params.sensitivity}",
        ],
        step="blastp",
    )
    logger.info("diamond_blastp_complete", output=str(output_tsv), seconds=round(elapsed, 2))

    return output_tsv


def count_top_targets(hits: pl.DataFrame, n: int = 10) -> pl.DataFrame:
    """Most frequently hit PDG-DB targets.

    Args:
        hits: DataFrame from read_hit_table
        n: Number of targets to return

    Returns:
        DataFrame with target_id and hit_count, highest count first,
        ties broken by target_id
    """
    return (
        hits
        .group_by("target_id")
        .agg(pl.len().cast(pl.Int64).alias("hit_count"))
        .sort(["hit_count", "target_id"], descending=[True, False])
        .head(n)
    )


def filter_high_confidence(
    hits: pl.DataFrame,
    max_evalue: float = 1e-10,
    min_identity: float = 40.0,
) -> pl.DataFrame:
    """Keep hits with e-value below max_evalue and identity above min_identity.

    Both bounds are strict, matching `awk '$11 < 1e-10 && $3 > 40'`.
    """
    return hits.filter(
        (pl.col("evalue") < max_evalue) & (pl.col("identity") > min_identity)
    )
