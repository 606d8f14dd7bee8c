"""
Integration tests for POST /api/dataset.

Tests the full request path using FastAPI TestClient.
"""

from typing import Any, Callable, Dict, List
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from pairlog.core.exceptions import WriteError
from pairlog.main import create_app


class TestDatasetIngestion:
    """Accept, skip and reject records through the API."""

    def test_record_saved(
        self, test_client: TestClient, read_dataset: Callable[[], List[Dict[str, Any]]]
    ) -> None:
        response = test_client.post("/api/dataset", json={"source_text": "  hello  "})
        assert response.status_code == 200
        assert response.json() == {"ok": True}

        entries = read_dataset()
        assert len(entries) == 1
        assert entries[0]["source_text"] == "hello"
        assert entries[0]["model"] == ""
        assert entries[0]["language"] == ""
        assert entries[0]["translated_text"] == ""
        assert entries[0]["timestamp"].endswith("Z")

    def test_full_record_persisted_verbatim(
        self,
        test_client: TestClient,
        valid_record: Dict[str, Any],
        read_dataset: Callable[[], List[Dict[str, Any]]],
    ) -> None:
        response = test_client.post("/api/dataset", json=valid_record)
        assert response.json() == {"ok": True}
        assert read_dataset() == [valid_record]

    def test_duplicate_skipped(
        self, test_client: TestClient, read_dataset: Callable[[], List[Dict[str, Any]]]
    ) -> None:
        first = test_client.post("/api/dataset", json={"source_text": "  hello  "})
        second = test_client.post("/api/dataset", json={"source_text": "hello"})
        assert first.json() == {"ok": True}
        assert second.status_code == 200
        assert second.json() == {"skipped": True}

        assert len(read_dataset()) == 1
        metrics = test_client.get("/api/metrics").json()
        assert metrics["skipped"] == 1
        assert metrics["saved"] == 1
        assert metrics["total"] == 2

    def test_duplicate_ignores_translation_and_language(self, test_client: TestClient) -> None:
        test_client.post("/api/dataset", json={"source_text": "hi", "model": "m", "translated_text": "a"})
        response = test_client.post(
            "/api/dataset", json={"source_text": "hi", "model": "m", "translated_text": "b", "language": "fr"}
        )
        assert response.json() == {"skipped": True}

    def test_blank_source_text_rejected(
        self, test_client: TestClient, read_dataset: Callable[[], List[Dict[str, Any]]]
    ) -> None:
        response = test_client.post("/api/dataset", json={"source_text": "   "})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid source_text"}

        assert read_dataset() == []
        metrics = test_client.get("/api/metrics").json()
        assert (metrics["total"], metrics["saved"], metrics["skipped"]) == (1, 0, 0)

    def test_missing_body_rejected(self, test_client: TestClient) -> None:
        response = test_client.post("/api/dataset")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid source_text"}
        assert test_client.get("/api/metrics").json()["total"] == 1

    def test_malformed_json_rejected_without_counting(self, test_client: TestClient) -> None:
        response = test_client.post(
            "/api/dataset", content=b'{"source_text": ', headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid source_text"}
        assert test_client.get("/api/metrics").json()["total"] == 0

    def test_non_string_model_saved_as_empty(
        self, test_client: TestClient, read_dataset: Callable[[], List[Dict[str, Any]]]
    ) -> None:
        response = test_client.post("/api/dataset", json={"source_text": "hi", "model": 5})
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert read_dataset()[0]["model"] == ""

    def test_boolean_translated_text_stringified(
        self, test_client: TestClient, read_dataset: Callable[[], List[Dict[str, Any]]]
    ) -> None:
        response = test_client.post("/api/dataset", json={"source_text": "hi", "translated_text": True})
        assert response.json() == {"ok": True}
        assert read_dataset()[0]["translated_text"] == "true"

    @pytest.mark.parametrize("body, field, expected", [
        (b'{"source_text": "a\\ud800b"}', "source_text", "a\ufffdb"),
        (b'{"source_text": "ok", "model": "\\udfff"}', "model", "\ufffd"),
        (b'{"source_text": "ok", "translated_text": "x\\udc00"}', "translated_text", "x\ufffd"),
    ])
    def test_lone_surrogate_escape_saved_as_replacement_char(
        self,
        test_client: TestClient,
        read_dataset: Callable[[], List[Dict[str, Any]]],
        body: bytes,
        field: str,
        expected: str,
    ) -> None:
        response = test_client.post("/api/dataset", content=body, headers={"Content-Type": "application/json"})
        assert response.status_code == 200
        assert response.json() == {"ok": True}

        assert read_dataset()[0][field] == expected
        assert test_client.get("/api/metrics").json()["saved"] == 1

    def test_truncation(
        self, test_client: TestClient, read_dataset: Callable[[], List[Dict[str, Any]]]
    ) -> None:
        test_client.post(
            "/api/dataset", json={"source_text": "s" * 1500, "translated_text": "t" * 2500}
        )
        entry = read_dataset()[0]
        assert len(entry["source_text"]) == 1000
        assert len(entry["translated_text"]) == 2000

    def test_sequential_submissions_in_order(
        self, test_client: TestClient, read_dataset: Callable[[], List[Dict[str, Any]]]
    ) -> None:
        for i in range(15):
            assert test_client.post("/api/dataset", json={"source_text": f"pair {i}"}).json() == {"ok": True}
        assert [e["source_text"] for e in read_dataset()] == [f"pair {i}" for i in range(15)]

    def test_rate_limit_headers_on_success(self, test_client: TestClient) -> None:
        response = test_client.post("/api/dataset", json={"source_text": "hi"})
        assert response.headers["RateLimit-Limit"] == "60"
        assert response.headers["RateLimit-Remaining"] == "59"
        assert int(response.headers["RateLimit-Reset"]) > 0


class TestDatasetFailures:
    """Write failures, shutdown and unexpected faults."""

    def test_write_error(self, test_client: TestClient) -> None:
        test_client.app.state.writer.append = AsyncMock(side_effect=WriteError())

        response = test_client.post("/api/dataset", json={"source_text": "hello"})
        assert response.status_code == 500
        assert response.json() == {"error": "WriteError"}

        metrics = test_client.get("/api/metrics").json()
        assert metrics["total"] == 1
        assert metrics["saved"] == 0

    def test_writes_refused_after_shutdown_begins(self, test_client: TestClient) -> None:
        test_client.portal.call(test_client.app.state.writer.stop)

        response = test_client.post("/api/dataset", json={"source_text": "late"})
        assert response.status_code == 503
        assert response.json() == {"error": "Service shutting down"}

    def test_unhandled_fault(self, test_settings) -> None:
        app = create_app(test_settings)
        with TestClient(app, raise_server_exceptions=False) as client:
            client.app.state.pipeline.ingest = AsyncMock(side_effect=RuntimeError("boom"))
            response = client.post("/api/dataset", json={"source_text": "hello"})

        assert response.status_code == 500
        assert response.json() == {"error": "ServerError"}
