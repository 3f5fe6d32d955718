"""
===============================================================================
CRC CARD — infrastructure/db/pool.py
===============================================================================

Componente:
  Pool de conexiones PostgreSQL (uno por proceso)

Responsabilidades:
  - Inicializar, exponer y cerrar el pool de conexiones.
  - Aplicar statement_timeout a cada conexión.
  - Reabrir el pool en procesos hijos: los consumidores de WorkerPool se
    forkean después de init_pool() y no pueden usar los sockets del padre.

Colaboradores:
  - psycopg_pool.ConnectionPool
  - worker/worker.py (init/close en el ciclo de vida del proceso)
  - repositories/postgres/* (get_pool)

Principios:
  - Fail-fast (doble init, uso sin init)
===============================================================================
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Optional

from psycopg import Connection
from psycopg_pool import ConnectionPool

from ...crosscutting.config import get_settings
from ...crosscutting.logger import logger
from .errors import PoolAlreadyInitializedError, PoolNotInitializedError


@dataclass(frozen=True)
class _PoolConfig:
    database_url: str
    min_size: int
    max_size: int


_pool: Optional[ConnectionPool] = None
_pool_pid: Optional[int] = None
_pool_config: Optional[_PoolConfig] = None
_pool_lock = threading.Lock()


def _configure_connection(conn: Connection) -> None:
    timeout_ms = int(get_settings().db_statement_timeout_ms)
    if timeout_ms > 0:
        conn.execute(f"SET statement_timeout = {timeout_ms}")
        conn.commit()


def _open(config: _PoolConfig) -> ConnectionPool:
    return ConnectionPool(
        conninfo=config.database_url,
        min_size=config.min_size,
        max_size=config.max_size,
        configure=_configure_connection,
        open=True,
    )


def init_pool(database_url: str, min_size: int, max_size: int) -> ConnectionPool:
    """
    Inicializa el pool del proceso.

    Raises:
        PoolAlreadyInitializedError: ya hay un pool en este proceso.
    """
    global _pool, _pool_pid, _pool_config

    with _pool_lock:
        if _pool is not None and _pool_pid == os.getpid():
            raise PoolAlreadyInitializedError("El pool ya fue inicializado.")

        _pool_config = _PoolConfig(database_url, min_size, max_size)
        _pool = _open(_pool_config)
        _pool_pid = os.getpid()
        logger.info(
            "Pool DB inicializado",
            extra={"min_size": min_size, "max_size": max_size, "pid": _pool_pid},
        )
        return _pool


def get_pool() -> ConnectionPool:
    """
    Pool del proceso actual.

    En un hijo forkeado se abre un pool nuevo con la misma configuración;
    el heredado se descarta sin cerrarlo (sus sockets pertenecen al padre).
    """
    global _pool, _pool_pid

    if _pool_config is None:
        raise PoolNotInitializedError(
            "Pool no inicializado. Llamar init_pool() primero."
        )
    if _pool_pid == os.getpid() and _pool is not None:
        return _pool

    with _pool_lock:
        if _pool_pid != os.getpid() or _pool is None:
            _pool = _open(_pool_config)
            _pool_pid = os.getpid()
            logger.info("Pool DB reabierto en proceso hijo", extra={"pid": _pool_pid})
        return _pool


def close_pool() -> None:
    """Cierra el pool del proceso (idempotente)."""
    global _pool, _pool_pid, _pool_config

    with _pool_lock:
        pool, owned = _pool, _pool_pid == os.getpid()
        _pool, _pool_pid, _pool_config = None, None, None

    if pool is not None and owned:
        pool.close()
        logger.info("Pool DB cerrado")
