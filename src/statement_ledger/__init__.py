"""Bank statement extraction: recognized text in, an editable ledger out."""

__version__ = "0.1.0"
