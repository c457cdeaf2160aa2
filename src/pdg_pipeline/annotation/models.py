"""Data models for DIAMOND hits and PDG-DB reference annotations."""

import polars as pl
from pydantic import BaseModel

# Table names for DuckDB storage
ANNOTATED_HITS_TABLE_NAME = "annotated_hits"

# DIAMOND/BLAST outfmt 6 column order. The hit report has no header,
# so this order is a contract with the aligner.
HIT_SCHEMA: dict[str, pl.DataType] = {
    "query_id": pl.Utf8,
    "target_id": pl.Utf8,
    "identity": pl.Float64,
    "length": pl.Int64,
    "mismatch": pl.Int64,
    "gapopen": pl.Int64,
    "qstart": pl.Int64,
    "qend": pl.Int64,
    "tstart": pl.Int64,
    "tend": pl.Int64,
    "evalue": pl.Float64,
    "bitscore": pl.Float64,
}
HIT_COLUMNS = list(HIT_SCHEMA)

GENE_TYPE_SCHEMA: dict[str, pl.DataType] = {
    "label": pl.Utf8,
    "plastic": pl.Utf8,
}

PLASTIC_CLASS_SCHEMA: dict[str, pl.DataType] = {
    "abbreviation": pl.Utf8,
    "plastic_name": pl.Utf8,
    "backbone_type": pl.Utf8,
    "degradability": pl.Utf8,
    "feedstock": pl.Utf8,
}
CLASSIFICATION_COLUMNS = [c for c in PLASTIC_CLASS_SCHEMA if c != "abbreviation"]

# Column order of the fully annotated output table
EXPANDED_COLUMNS = HIT_COLUMNS + ["plastic"] + CLASSIFICATION_COLUMNS

# Header name variants seen in PDG-DB releases. R's read.delim mangles
# "Backbone Type (L2)" into "Backbone.Type..L2.", so both spellings occur.
GENE_TYPE_COLUMN_VARIANTS = {
    "label": ["label", "Label", "gene_id", "id"],
    "plastic": ["Plastic", "plastic", "Plastic_type", "plastic_type"],
}

PLASTIC_CLASS_COLUMN_VARIANTS = {
    "abbreviation": ["Abbreviation", "abbreviation", "Abbr"],
    "plastic_name": ["Plastic name", "Plastic.name", "Plastic_name", "plastic_name"],
    "backbone_type": [
        "Backbone Type (L2)",
        "Backbone.Type..L2.",
        "Backbone_Type_L2",
        "backbone_type",
    ],
    "degradability": ["Degradability", "degradability"],
    "feedstock": ["Feedstock", "feedstock"],
}

# Cell values read as null in the annotated reference tables
NULL_VALUES = {"", "NA"}


class HitRecord(BaseModel):
    """One row of a DIAMOND blastp outfmt 6 report.

    Attributes:
        query_id: Query sequence identifier
        target_id: PDG-DB sequence label the query aligned against
        identity: Percent identity (0-100)
        length: Alignment length
        mismatch: Number of mismatches
        gapopen: Number of gap openings
        qstart, qend: Alignment span on the query (1-based)
        tstart, tend: Alignment span on the target (1-based)
        evalue: Expect value
        bitscore: Bit score
    """

    query_id: str
    target_id: str
    identity: float
    length: int
    mismatch: int
    gapopen: int
    qstart: int
    qend: int
    tstart: int
    tend: int
    evalue: float
    bitscore: float


class GeneTypeAnnotation(BaseModel):
    """Gene-type row of PDG-DB.

    plastic holds zero or more abbreviations joined by commas, e.g.
    "PET, PBAT". None means the gene has no plastic annotation.
    Labels are not guaranteed unique; duplicates fan out on join.
    """

    label: str
    plastic: str | None = None


class PlasticClassification(BaseModel):
    """Classification categories for one plastic abbreviation."""

    abbreviation: str
    plastic_name: str | None = None
    backbone_type: str | None = None
    degradability: str | None = None
    feedstock: str | None = None


class ExpandedHit(HitRecord):
    """A hit paired with exactly one plastic token and its classification.

    Classification fields are None when the token has no entry in the
    classification table (left join, the row is kept).
    """

    plastic: str
    plastic_name: str | None = None
    backbone_type: str | None = None
    degradability: str | None = None
    feedstock: str | None = None
