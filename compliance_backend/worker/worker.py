"""
===============================================================================
TARJETA CRC — worker/worker.py (Entrypoint del proceso Worker)
===============================================================================

Responsabilidades:
  - Consumir la cola de identificaciones con `identification_concurrency`
    consumidores RQ (un job nunca lo ejecutan dos consumidores).
  - Preparar recursos del proceso: conexión Redis y pool de BD.
  - Levantar el HTTP operativo (health / ready / metrics).
  - Liberar recursos al salir.

Patrones aplicados:
  - Fail-fast: sin Redis no hay cola; el proceso no arranca.

Colaboradores:
  - crosscutting.config.get_settings
  - infrastructure.db.pool.init_pool / close_pool
  - rq.Worker (1 consumidor) / rq.worker_pool.WorkerPool (N procesos)
  - worker_server.start_worker_http_server
===============================================================================
"""

from __future__ import annotations

from http.server import ThreadingHTTPServer

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue, Worker
from rq.worker_pool import WorkerPool

from ..crosscutting.config import Settings, get_settings
from ..crosscutting.logger import logger
from ..infrastructure.db.pool import close_pool, init_pool
from .worker_server import start_worker_http_server


def _connect_redis(settings: Settings) -> Redis:
    """
    Conexión del worker.

    Sin socket_timeout: el consumidor queda bloqueado en BLPOP esperando jobs.

    Raises:
        SystemExit: REDIS_URL vacío o Redis no responde.
    """
    redis_url = settings.redis_url.strip()
    if not redis_url:
        raise SystemExit("REDIS_URL es requerido para ejecutar el worker.")

    connection = Redis.from_url(
        redis_url, socket_connect_timeout=2, health_check_interval=30
    )
    try:
        connection.ping()
    except RedisError as exc:
        logger.error("Redis no disponible para worker", extra={"error": str(exc)})
        raise SystemExit("Redis no disponible.") from exc
    return connection


def run_consumers(queue: Queue, connection: Redis, concurrency: int) -> None:
    """
    Bloquea consumiendo la cola.

    concurrency == 1 corre en este proceso; con más, WorkerPool forkea N
    procesos hijos que heredan el pool de BD inicializado acá.
    """
    if concurrency == 1:
        Worker([queue], connection=connection).work(with_scheduler=False)
        return
    WorkerPool([queue], connection=connection, num_workers=concurrency).start()


def _stop_http(server: ThreadingHTTPServer | None) -> None:
    if server is None:
        return
    try:
        server.shutdown()
        server.server_close()
    except OSError as exc:
        logger.warning("Worker HTTP server no cerró limpio", extra={"error": str(exc)})


def main() -> None:
    settings = get_settings()
    connection = _connect_redis(settings)

    # R: En test los repos son in-memory y DATABASE_URL puede faltar.
    if settings.database_url:
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    server = start_worker_http_server(settings.worker_http_port)
    queue = Queue(name=settings.identification_queue_name, connection=connection)
    logger.info(
        "Worker arrancando",
        extra={
            "queue": queue.name,
            "concurrency": settings.identification_concurrency,
            "classifier": "fake" if settings.fake_llm else "google",
            "http_port": settings.worker_http_port,
        },
    )

    try:
        run_consumers(queue, connection, settings.identification_concurrency)
    except KeyboardInterrupt:
        logger.info("Worker detenido por señal (KeyboardInterrupt)")
    finally:
        _stop_http(server)
        close_pool()
        logger.info("Worker apagado")


if __name__ == "__main__":
    main()
