"""
Name: Worker HTTP Server Tests

Responsibilities:
  - Validate /healthz, /readyz and /metrics on the worker HTTP server
  - Validate readiness combines Redis, DB and the queue backlog
"""

import json
import urllib.error
import urllib.request
from unittest.mock import patch

import pytest

from compliance_backend.worker import worker_health
from compliance_backend.worker.worker_health import QueueBacklog
from compliance_backend.worker.worker_server import start_worker_http_server


pytestmark = pytest.mark.unit


@pytest.fixture
def server():
    srv = start_worker_http_server(0)
    assert srv is not None
    yield srv
    srv.shutdown()
    srv.server_close()


def _get(server, path):
    port = server.server_address[1]
    return urllib.request.urlopen(f"http://127.0.0.1:{port}{path}", timeout=5)


def test_healthz_reports_worker_mode(server):
    with _get(server, "/healthz") as response:
        body = json.loads(response.read())

    assert response.status == 200
    assert body["ok"] is True
    assert body["concurrency"] == 1
    assert body["classifier"] == "fake"


def test_readyz_is_503_when_redis_is_down(server):
    with patch.object(worker_health, "queue_backlog", return_value=None):
        with pytest.raises(urllib.error.HTTPError) as exc_info:
            _get(server, "/readyz")

    assert exc_info.value.code == 503
    body = json.loads(exc_info.value.read())
    assert body["redis"] == "disconnected"
    assert body["queue"] == {"name": "identifications"}


def test_metrics_exposes_prometheus_text(server):
    with _get(server, "/metrics") as response:
        body = response.read().decode("utf-8")

    assert "identification_jobs_processed_total" in body


def test_unknown_path_is_404(server):
    with pytest.raises(urllib.error.HTTPError) as exc_info:
        _get(server, "/nope")

    assert exc_info.value.code == 404


def test_readiness_reports_backlog_and_skips_db_in_test_env():
    backlog = QueueBacklog(waiting=3, active=1)
    with patch.object(
        worker_health, "queue_backlog", return_value=backlog
    ), patch.object(worker_health, "check_db") as check_db:
        payload = worker_health.readiness_payload()

    assert payload["ok"] is True
    assert payload["db"] == "connected"
    assert payload["queue"] == {"name": "identifications", "waiting": 3, "active": 1}
    check_db.assert_not_called()


def test_queue_backlog_without_redis_url_is_none():
    assert worker_health.queue_backlog("") is None
