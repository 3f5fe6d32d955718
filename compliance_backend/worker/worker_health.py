"""
===============================================================================
TARJETA CRC — worker/worker_health.py (Diagnóstico del Worker)
===============================================================================

Responsabilidades:
  - Diagnosticar dependencias del worker de identificaciones: Redis (cola)
    y Postgres (catálogo + vínculos).
  - Reportar el backlog de la cola (jobs en espera / en ejecución) para que
    el orquestador de contenedores decida si escalar.
  - Exponer CLI de healthcheck para contenedores (exit code 0/1).

Patrones aplicados:
  - Fail-safe diagnostics: cada chequeo devuelve un estado, nunca lanza.

Colaboradores:
  - crosscutting.config.get_settings
  - redis.Redis, rq.Queue (backlog)
  - psycopg (ping directo, sin pasar por el pool)
===============================================================================
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass
from typing import Any

import psycopg
from redis import Redis
from redis.exceptions import RedisError
from rq import Queue

from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger

_STARTED_AT = time.monotonic()
_TIMEOUT_SECONDS = 2


@dataclass
class QueueBacklog:
    waiting: int = 0
    active: int = 0


def check_db(database_url: str) -> bool:
    if not database_url:
        return False
    try:
        with psycopg.connect(database_url, connect_timeout=_TIMEOUT_SECONDS) as conn:
            conn.execute("SELECT 1")
    except psycopg.Error as exc:
        logger.warning("Readiness worker: DB no disponible", extra={"error": str(exc)})
        return False
    return True


def queue_backlog(redis_url: str, queue_name: str | None = None) -> QueueBacklog | None:
    """
    Backlog de la cola de identificaciones.

    Returns:
        None si Redis no responde (equivale a "disconnected").
    """
    if not redis_url:
        return None
    name = queue_name or get_settings().identification_queue_name
    try:
        redis = Redis.from_url(
            redis_url,
            socket_connect_timeout=_TIMEOUT_SECONDS,
            socket_timeout=_TIMEOUT_SECONDS,
        )
        queue = Queue(name=name, connection=redis)
        return QueueBacklog(
            waiting=queue.count, active=queue.started_job_registry.count
        )
    except RedisError as exc:
        logger.warning(
            "Readiness worker: Redis no disponible", extra={"error": str(exc)}
        )
        return None


def readiness_payload() -> dict[str, Any]:
    """
    Readiness del worker.

    ok = Redis accesible y (salvo en test, donde los repos son in-memory) DB
    accesible. El backlog se informa pero no afecta `ok`.
    """
    settings = get_settings()
    backlog = queue_backlog(settings.redis_url, settings.identification_queue_name)
    redis_ok = backlog is not None
    db_ok = settings.is_test_env() or check_db(settings.database_url)

    return {
        "ok": redis_ok and db_ok,
        "db": "connected" if db_ok else "disconnected",
        "redis": "connected" if redis_ok else "disconnected",
        "queue": {
            "name": settings.identification_queue_name,
            **(asdict(backlog) if backlog else {}),
        },
    }


def health_payload() -> dict[str, Any]:
    """Liveness: el proceso responde. No toca dependencias."""
    settings = get_settings()
    return {
        "ok": True,
        "uptime_seconds": int(time.monotonic() - _STARTED_AT),
        "concurrency": settings.identification_concurrency,
        "classifier": "fake" if settings.fake_llm else "google",
    }


def main() -> None:
    payload = readiness_payload()
    print(json.dumps(payload))
    raise SystemExit(0 if payload["ok"] else 1)


if __name__ == "__main__":
    main()
