"""Command-line interface for pdg-pipeline."""
