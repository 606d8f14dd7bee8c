"""
Dataset entry data models.

- DatasetEntry: canonical record persisted as one JSON line
- IngestResponse / MetricsResponse / HealthResponse: API bodies
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DatasetEntry(BaseModel):
    """
    Canonical translation-pair record.

    Field order here is the field order of every line in the dataset log.
    """

    source_text: str = Field(min_length=1, description="Trimmed, truncated source text")
    translated_text: str = Field(default="", description="Translated text (may be empty)")
    timestamp: str = Field(description="ISO-8601 timestamp of the record")
    language: str = Field(default="", description="Language tag supplied by the caller")
    model: str = Field(default="", description="Translation model supplied by the caller")

    model_config = ConfigDict(frozen=True)

    def to_line(self) -> bytes:
        """Serialize as a single newline-terminated UTF-8 JSON line."""
        return (self.model_dump_json() + "\n").encode("utf-8")


class IngestResponse(BaseModel):
    """Response from the ingestion endpoint: either ok or skipped is set."""

    ok: Optional[bool] = Field(default=None, description="Record persisted")
    skipped: Optional[bool] = Field(default=None, description="Record was a recent duplicate")


class MetricsResponse(BaseModel):
    """Process-lifetime ingestion counters."""

    total: int = Field(description="Records received (including invalid ones)")
    saved: int = Field(description="Records appended to the dataset log")
    skipped: int = Field(description="Records dropped as recent duplicates")
    uptime: float = Field(description="Seconds since service start")


class HealthResponse(BaseModel):
    status: str = Field(default="ok")
