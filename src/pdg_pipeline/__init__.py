"""pdg-pipeline: annotate DIAMOND hits against the plastic-degrading gene database."""

__version__ = "0.1.0"
