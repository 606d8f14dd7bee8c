"""
Ingestion metrics.

Process-lifetime counters owned by one collector instance and injected into
the pipeline. Every counter is mirrored to a Prometheus registry for scraping.
"""

import time
from typing import Any, Dict, Optional

import structlog
from prometheus_client import CollectorRegistry, Counter, Gauge, Info

logger = structlog.get_logger(__name__)


class MetricsCollector:
    """
    Centralized metrics collection for PairLog.

    total/saved/skipped are plain ints mutated only from the event loop
    thread; snapshot() reads them without locking.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()

        self.total = 0
        self.saved = 0
        self.skipped = 0
        self.write_errors = 0
        self._start_time = time.monotonic()

        # Service info
        self.service_info = Info(
            "pairlog_service",
            "PairLog service information",
            registry=self.registry,
        )
        self.service_info.info({
            "version": "0.1.0",
            "service": "pairlog",
        })

        self.records_received_total = Counter(
            "pairlog_records_received_total",
            "Records that reached normalization, valid or not",
            registry=self.registry,
        )

        self.records_saved_total = Counter(
            "pairlog_records_saved_total",
            "Records appended to the dataset log",
            registry=self.registry,
        )

        self.records_skipped_total = Counter(
            "pairlog_records_skipped_total",
            "Records dropped as recent duplicates",
            registry=self.registry,
        )

        self.write_errors_total = Counter(
            "pairlog_write_errors_total",
            "Failed appends to the dataset log",
            registry=self.registry,
        )

        self.requests_rejected_total = Counter(
            "pairlog_requests_rejected_total",
            "Requests rejected before or during normalization",
            ["reason"],
            registry=self.registry,
        )

        self.uptime_seconds = Gauge(
            "pairlog_uptime_seconds",
            "Service uptime in seconds",
            registry=self.registry,
        )
        self.uptime_seconds.set_function(self.uptime)

    def uptime(self) -> float:
        return time.monotonic() - self._start_time

    def track_cache(self, cache: Any) -> None:
        """Expose dedup cache occupancy, read from ``cache.stats()`` at scrape time."""
        cache_entries = Gauge(
            "pairlog_dedup_cache_entries",
            "Keys currently held by the dedup cache",
            registry=self.registry,
        )
        cache_entries.set_function(lambda: cache.stats()["size"])

        cache_evictions = Gauge(
            "pairlog_dedup_cache_evictions",
            "Keys evicted from the dedup cache because it was full",
            registry=self.registry,
        )
        cache_evictions.set_function(lambda: cache.stats()["evictions"])

    def record_received(self) -> None:
        self.total += 1
        self.records_received_total.inc()

    def record_saved(self) -> None:
        self.saved += 1
        self.records_saved_total.inc()

    def record_skipped(self) -> None:
        self.skipped += 1
        self.records_skipped_total.inc()

    def record_write_error(self) -> None:
        """Failed appends count toward neither saved nor skipped."""
        self.write_errors += 1
        self.write_errors_total.inc()

    def record_rejected(self, reason: str) -> None:
        """Record an admission or validation rejection (does not touch total)."""
        self.requests_rejected_total.labels(reason=reason).inc()

    def snapshot(self) -> Dict[str, Any]:
        """Read-only view served by /api/metrics."""
        return {
            "total": self.total,
            "saved": self.saved,
            "skipped": self.skipped,
            "uptime": self.uptime(),
        }
