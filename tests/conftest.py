"""
Pytest configuration and shared fixtures.

Contains common test fixtures and setup for all test modules.
"""

import json
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List

import pytest
from fastapi.testclient import TestClient

from pairlog.config import CacheSettings, RateLimitSettings, Settings
from pairlog.main import create_app


@pytest.fixture
def temp_data_dir() -> Generator[Path, None, None]:
    """Create temporary directory for the dataset log."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def data_path(temp_data_dir: Path) -> Path:
    return temp_data_dir / "dataset.jsonl"


@pytest.fixture
def make_settings(data_path: Path) -> Callable[..., Settings]:
    """Build test settings; keyword arguments override the defaults below."""
    def _make(**overrides: Any) -> Settings:
        values: Dict[str, Any] = {
            "data_path": data_path,
            "log_level": "DEBUG",
            "max_source_len": 1000,
            "max_body_bytes": 1048576,
            "rate_limit": RateLimitSettings(max=60, window_seconds=60),
            "cache": CacheSettings(ttl_ms=24 * 60 * 60 * 1000, max=50000),
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def test_settings(make_settings: Callable[..., Settings]) -> Settings:
    return make_settings()


@pytest.fixture
def test_client(test_settings: Settings) -> Generator[TestClient, None, None]:
    """FastAPI test client with test configuration."""
    with TestClient(create_app(test_settings)) as client:
        yield client


@pytest.fixture
def read_dataset(data_path: Path) -> Callable[[], List[Dict[str, Any]]]:
    """Parse every line of the dataset log."""
    def _read() -> List[Dict[str, Any]]:
        if not data_path.exists():
            return []
        with open(data_path, encoding="utf-8") as f:
            return [json.loads(line) for line in f.read().splitlines()]

    return _read


@pytest.fixture
def valid_record() -> Dict[str, Any]:
    """Sample valid translation pair."""
    return {
        "source_text": "Guten Morgen",
        "translated_text": "Good morning",
        "timestamp": "2025-09-22T10:30:00.000Z",
        "language": "de",
        "model": "gpt-4o-mini",
    }
