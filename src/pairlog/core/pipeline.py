"""
Ingestion pipeline.

Orchestrates a single admitted record:
1. Normalization (counts toward total, even when invalid)
2. Duplicate check against the recent-key cache
3. Append to the dataset log
4. Counter updates
"""

from enum import Enum
from typing import Any, Optional

import structlog

from ..config import Settings
from .dedup import RecentKeyCache
from .exceptions import ValidationError, WriteError
from .metrics import MetricsCollector
from .normalizer import dedup_key, normalize_record
from .writer import AppendLogWriter

logger = structlog.get_logger(__name__)


class IngestOutcome(str, Enum):
    """Result of ingesting one record."""

    SAVED = "saved"
    SKIPPED = "skipped"


class IngestionPipeline:
    """
    Main processing pipeline for dataset ingestion.

    Owns no state of its own; cache, writer and metrics are injected.
    """

    def __init__(
        self,
        settings: Settings,
        cache: RecentKeyCache,
        writer: AppendLogWriter,
        metrics: MetricsCollector,
    ) -> None:
        self.settings = settings
        self.cache = cache
        self.writer = writer
        self.metrics = metrics

    async def ingest(self, raw: Any, request_id: Optional[str] = None) -> IngestOutcome:
        """
        Process one raw record through the complete pipeline.

        Raises ValidationError, WriteError or WriterClosedError.
        """
        self.metrics.record_received()

        try:
            entry = normalize_record(
                raw,
                max_source_len=self.settings.max_source_len,
                max_translated_len=self.settings.max_translated_len,
            )
        except ValidationError as e:
            self.metrics.record_rejected("validation")
            logger.info("Record rejected", request_id=request_id, reason=e.message)
            raise

        key = dedup_key(entry)
        # No await between check and mark: concurrent duplicates cannot both pass
        if self.cache.seen_recently(key):
            self.metrics.record_skipped()
            logger.info("Duplicate skipped", request_id=request_id, source_text=entry.source_text[:80])
            return IngestOutcome.SKIPPED
        self.cache.mark_seen(key)

        try:
            await self.writer.append(entry)
        except WriteError:
            self.metrics.record_write_error()
            logger.error("Record not saved", request_id=request_id, source_text=entry.source_text[:80])
            raise

        self.metrics.record_saved()
        logger.info("Saved", request_id=request_id, source_text=entry.source_text[:80])
        return IngestOutcome.SAVED
