"""
Core business logic components.

This package contains the ingestion pipeline components:
- Admission control (body size, per-caller rate limiting)
- Record normalization
- Recent-duplicate cache
- Append-only dataset writer
- Metrics collection
"""
