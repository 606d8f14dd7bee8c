"""
PairLog - Translation pair ingestion service

A FastAPI-based endpoint that accepts translation-pair records, suppresses
recent duplicates and appends accepted records to a JSON-lines dataset.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
