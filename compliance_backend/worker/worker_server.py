"""
===============================================================================
TARJETA CRC — worker/worker_server.py (HTTP operativo del Worker)
===============================================================================

Responsabilidades:
  - Servir endpoints operativos en un thread daemon, al lado del loop RQ:
      * GET /healthz  liveness
      * GET /readyz   readiness (Redis + DB) y backlog de la cola
      * GET /metrics  Prometheus (jobs procesados, duración, reintentos LLM)
  - Loguear requests con el logger estructurado.

Colaboradores:
  - worker_health.health_payload / readiness_payload
  - crosscutting.metrics.get_metrics_response

Notas:
  - Sin auth en /metrics: el puerto del worker es interno al cluster.
  - Best-effort: si el puerto está ocupado, el worker sigue procesando jobs.
===============================================================================
"""

from __future__ import annotations

import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable
from urllib.parse import urlparse

from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from . import worker_health

# (status, body, content-type)
_Response = tuple[int, bytes, str]


def _json(status: int, payload: dict) -> _Response:
    return status, json.dumps(payload).encode("utf-8"), "application/json"


def _healthz() -> _Response:
    return _json(200, worker_health.health_payload())


def _readyz() -> _Response:
    payload = worker_health.readiness_payload()
    return _json(200 if payload["ok"] else 503, payload)


def _metrics() -> _Response:
    body, content_type = get_metrics_response()
    return 200, body, content_type


_ROUTES: dict[str, Callable[[], _Response]] = {
    "/healthz": _healthz,
    "/readyz": _readyz,
    "/metrics": _metrics,
}


class _WorkerHandler(BaseHTTPRequestHandler):
    def do_GET(self) -> None:
        route = _ROUTES.get(urlparse(self.path).path)
        status, body, content_type = (
            route() if route else _json(404, {"detail": "Not found"})
        )
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args) -> None:
        logger.debug(
            "Worker HTTP request",
            extra={"path": self.path, "client": self.client_address[0]},
        )


def start_worker_http_server(port: int) -> ThreadingHTTPServer | None:
    """
    Arranca el server en un thread daemon.

    Returns:
        El server (para shutdown) o None si no pudo bindear el puerto.
    """
    try:
        server = ThreadingHTTPServer(("0.0.0.0", port), _WorkerHandler)
    except OSError as exc:
        logger.warning("Worker HTTP server no pudo iniciar", extra={"error": str(exc)})
        return None

    threading.Thread(
        target=server.serve_forever, name="worker-http", daemon=True
    ).start()
    logger.info("Worker HTTP server iniciado", extra={"port": server.server_address[1]})
    return server


__all__ = ["start_worker_http_server"]
