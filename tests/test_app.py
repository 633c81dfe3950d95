"""
test_app.py: Request tracing headers and the structured log line.
"""
import json
import logging
import sys

from floortrack.core.logging_config import JSONFormatter


class TestRequestTracing:

    def test_every_response_is_stamped(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.headers["X-Request-ID"]
        assert float(response.headers["X-Process-Time"]) >= 0

    def test_caller_request_id_is_kept(self, client):
        response = client.get("/health", headers={"X-Request-ID": "line-3-terminal"})
        assert response.headers["X-Request-ID"] == "line-3-terminal"

    def test_error_responses_are_stamped_too(self, client):
        response = client.get("/api/v1/users/me")
        assert response.status_code == 401
        assert "X-Request-ID" in response.headers


class TestJSONFormatter:

    def record(self, **extra):
        record = logging.LogRecord("floortrack.approvals", logging.INFO, __file__, 10, "Entry %s", (7,), None)
        record.__dict__.update(extra)
        return record

    def test_context_ids_are_included(self):
        line = json.loads(JSONFormatter().format(self.record(entry_id=7, supervisor_id=3, unrelated="x")))

        assert line["message"] == "Entry 7"
        assert line["level"] == "INFO"
        assert line["logger"] == "floortrack.approvals"
        assert line["entry_id"] == 7
        assert line["supervisor_id"] == 3
        assert "unrelated" not in line

    def test_exception_is_rendered(self):
        try:
            raise RuntimeError("subscriber failed")
        except RuntimeError:
            record = logging.LogRecord("floortrack.events", logging.ERROR, __file__, 1, "boom", None,
                                       sys.exc_info())

        line = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: subscriber failed" in line["exception"]
