"""Parse DIAMOND hit reports and PDG-DB reference tables into typed DataFrames."""

from pathlib import Path
from typing import Literal, Optional

import polars as pl
import structlog

from pdg_pipeline.annotation.models import (
    GENE_TYPE_COLUMN_VARIANTS,
    GENE_TYPE_SCHEMA,
    HIT_COLUMNS,
    HIT_SCHEMA,
    NULL_VALUES,
    PLASTIC_CLASS_COLUMN_VARIANTS,
    PLASTIC_CLASS_SCHEMA,
)
from pdg_pipeline.errors import (
    MalformedInputError,
    MissingColumnError,
    TypeMismatchError,
)

logger = structlog.get_logger()

MalformedRowPolicy = Literal["halt", "skip"]


def resolve_columns(
    header: list[str],
    variants: dict[str, list[str]],
    source: str,
) -> dict[str, int]:
    """Map canonical column names to their positions in a file header.

    The first variant present in the header wins.

    Args:
        header: Column names as read from the file
        variants: Canonical name -> accepted header spellings
        source: Source name used in error messages

    Returns:
        Dict of canonical column name -> field index

    Raises:
        MissingColumnError: If no variant of a required column is present
    """
    positions = {}
    for canonical, names in variants.items():
        for name in names:
            if name in header:
                positions[canonical] = header.index(name)
                break
        else:
            raise MissingColumnError(
                f"Required column not found in header; expected one of {names}",
                source=source,
                column=canonical,
            )
    return positions


def _read_tsv_rows(
    path: Path,
    has_header: bool,
    malformed_rows: MalformedRowPolicy,
    expected_fields: Optional[int] = None,
    header_variants: Optional[dict[str, list[str]]] = None,
) -> tuple[list[str], list[tuple[int, list[str]]]]:
    """Split a tab-separated file into header and (line number, fields) rows.

    Empty lines are ignored; a line holding only tabs is a row of empty
    fields. Each line is decoded on its own so a bad byte is reported with
    its line number. When has_header is set the field count of the header
    is the expected count for every row, and required columns are resolved
    before any data row is examined.
    """
    source = path.name
    header: list[str] = []
    rows: list[tuple[int, list[str]]] = []
    skipped = 0

    with open(path, "rb") as f:
        for line_number, raw_line in enumerate(f, start=1):
            try:
                line = raw_line.decode("utf-8-sig" if line_number == 1 else "utf-8")
            except UnicodeDecodeError as e:
                raise MalformedInputError(
                    f"Invalid UTF-8 byte at position {e.start}",
                    source=source,
                    row=line_number,
                ) from e
            line = line.rstrip("\r\n")
            if line == "":
                continue

            fields = line.split("\t")

            if has_header and not header:
                header = fields
                expected_fields = len(header)
                if header_variants is not None:
                    resolve_columns(header, header_variants, source)
                continue

            if len(fields) != expected_fields:
                if malformed_rows == "halt":
                    raise MalformedInputError(
                        f"Expected {expected_fields} fields, found {len(fields)}",
                        source=source,
                        row=line_number,
                    )
                logger.warning(
                    "malformed_row_skipped",
                    source=source,
                    row=line_number,
                    expected_fields=expected_fields,
                    actual_fields=len(fields),
                )
                skipped += 1
                continue

            rows.append((line_number, fields))

    if has_header and not header:
        raise MissingColumnError("File is empty, header line not found", source=source)

    if skipped:
        logger.warning("malformed_rows_total", source=source, skipped=skipped)

    return header, rows


def _cast_columns(
    raw: pl.DataFrame,
    schema: dict[str, pl.DataType],
    line_numbers: list[int],
    source: str,
) -> pl.DataFrame:
    """Cast string columns to their declared numeric types.

    Raises:
        TypeMismatchError: On the first cell that fails to parse, naming
            the file line number and the column
    """
    cast_columns = []
    for column, dtype in schema.items():
        if dtype == pl.Utf8:
            continue

        parsed = raw[column].str.strip_chars().cast(dtype, strict=False)
        failed = parsed.is_null() & raw[column].is_not_null()
        if failed.any():
            idx = failed.arg_true()[0]
            raise TypeMismatchError(
                f"Cannot parse {raw[column][idx]!r} as {dtype}",
                source=source,
                row=line_numbers[idx],
                column=column,
            )
        cast_columns.append(parsed.alias(column))

    return raw.with_columns(cast_columns)


def read_hit_table(
    path: Path | str,
    malformed_rows: MalformedRowPolicy = "halt",
) -> pl.DataFrame:
    """Parse a DIAMOND/BLAST outfmt 6 report into a DataFrame.

    The report has no header; the 12 columns follow HIT_COLUMNS order.

    Args:
        path: Path to the tab-separated hit report
        malformed_rows: "halt" raises on a wrong field count, "skip" drops
            and logs the row

    Returns:
        DataFrame with HIT_SCHEMA columns in file order

    Raises:
        MalformedInputError: Row with other than 12 fields (halt mode)
        TypeMismatchError: Numeric column that fails to parse
    """
    path = Path(path)
    logger.info("hit_table_parse_start", path=str(path))

    _, rows = _read_tsv_rows(
        path,
        has_header=False,
        malformed_rows=malformed_rows,
        expected_fields=len(HIT_COLUMNS),
    )

    raw = pl.DataFrame(
        {
            column: [fields[i] for _, fields in rows]
            for i, column in enumerate(HIT_COLUMNS)
        },
        schema={column: pl.Utf8 for column in HIT_COLUMNS},
    )
    df = _cast_columns(raw, HIT_SCHEMA, [n for n, _ in rows], path.name)

    logger.info("hit_table_parse_complete", row_count=df.height)
    return df


def _read_reference_table(
    path: Path,
    schema: dict[str, pl.DataType],
    variants: dict[str, list[str]],
    malformed_rows: MalformedRowPolicy,
) -> pl.DataFrame:
    """Read a headed reference table, keeping only the canonical columns.

    Cells in NULL_VALUES become null.
    """
    header, rows = _read_tsv_rows(
        path,
        has_header=True,
        malformed_rows=malformed_rows,
        header_variants=variants,
    )
    positions = resolve_columns(header, variants, path.name)

    columns = {}
    for column, idx in positions.items():
        columns[column] = [
            None if fields[idx] in NULL_VALUES else fields[idx]
            for _, fields in rows
        ]

    return pl.DataFrame(columns, schema=schema)


def read_gene_type_table(
    path: Path | str,
    malformed_rows: MalformedRowPolicy = "halt",
) -> pl.DataFrame:
    """Parse the PDG-DB gene-type table.

    Args:
        path: Path to PDG_DB_gene_type.tsv
        malformed_rows: Policy for rows with a wrong field count

    Returns:
        DataFrame with columns label, plastic (plastic may be null)

    Raises:
        MissingColumnError: If the label or plastic column is absent
        MalformedInputError: Row field count differs from header (halt mode)
    """
    path = Path(path)
    logger.info("gene_type_parse_start", path=str(path))

    df = _read_reference_table(
        path, GENE_TYPE_SCHEMA, GENE_TYPE_COLUMN_VARIANTS, malformed_rows
    )

    logger.info(
        "gene_type_parse_complete",
        row_count=df.height,
        unique_labels=df["label"].n_unique(),
        null_plastic=df["plastic"].null_count(),
    )
    return df


def read_plastic_class_table(
    path: Path | str,
    malformed_rows: MalformedRowPolicy = "halt",
) -> pl.DataFrame:
    """Parse the plastic classification table.

    Args:
        path: Path to Plastic_classification.txt
        malformed_rows: Policy for rows with a wrong field count

    Returns:
        DataFrame with columns abbreviation, plastic_name, backbone_type,
        degradability, feedstock

    Raises:
        MissingColumnError: If any classification column is absent
        MalformedInputError: Row field count differs from header (halt mode)
    """
    path = Path(path)
    logger.info("plastic_class_parse_start", path=str(path))

    df = _read_reference_table(
        path, PLASTIC_CLASS_SCHEMA, PLASTIC_CLASS_COLUMN_VARIANTS, malformed_rows
    )

    duplicated = df.height - df["abbreviation"].n_unique()
    if duplicated:
        logger.warning("plastic_class_duplicate_abbreviations", duplicated=duplicated)

    logger.info("plastic_class_parse_complete", row_count=df.height)
    return df
