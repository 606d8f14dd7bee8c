"""
Pydantic data models package.

Contains the canonical dataset entry and the API request/response bodies.
"""

from .dataset_entry import (
    DatasetEntry,
    HealthResponse,
    IngestResponse,
    MetricsResponse,
)

__all__ = [
    "DatasetEntry",
    "HealthResponse",
    "IngestResponse",
    "MetricsResponse",
]
