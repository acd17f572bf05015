"""Incremental report-card analysis for a dog daycare portal."""

__version__ = "0.1.0"
