"""
===============================================================================
MÓDULO: Logger estructurado (JSON) con contexto de job
===============================================================================

Objetivo
--------
Cada evento del worker sale como una línea JSON con el contexto del job
(job_id / identification_id) para poder seguir una identificación completa
en el agregador de logs.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  JSONFormatter + setup_logger()

Responsabilidades:
  - Formatear logs como JSON
  - Enriquecer con contexto (request_id, job_id, identification_id, component)
  - Redactar credenciales (API key del LLM, URLs con password)
  - Recortar textos largos (cuerpos de artículos, prompts, respuestas)

Colaboradores:
  - compliance_backend/context.py (ContextVars)
  - crosscutting/config.py (nivel y formato)
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

# Atributos estándar de LogRecord: todo lo demás vino por `extra=`.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

_REDACTED = "***REDACTADO***"
_SECRET_MARKERS = ("password", "secret", "token", "api_key", "apikey", "credential")
_SECRET_KEYS = frozenset({"authorization", "database_url", "redis_url"})

_MAX_TEXT = 2_000
_MAX_DEPTH = 4


def _is_secret(key: str) -> bool:
    lowered = key.lower()
    return lowered in _SECRET_KEYS or any(m in lowered for m in _SECRET_MARKERS)


def sanitize(value: Any, *, key: str | None = None, depth: int = 0) -> Any:
    """
    Vuelve un valor de `extra` serializable y seguro para loguear.

    - claves con pinta de credencial -> redactadas
    - strings > _MAX_TEXT -> recortados (un artículo puede ocupar páginas)
    - estructuras anidadas se recorren hasta _MAX_DEPTH
    """
    if key is not None and _is_secret(key):
        return _REDACTED
    if depth > _MAX_DEPTH:
        return "…"

    if isinstance(value, str):
        if len(value) > _MAX_TEXT:
            return f"{value[:_MAX_TEXT]}…(+{len(value) - _MAX_TEXT} chars)"
        return value
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    if isinstance(value, dict):
        return {
            str(k): sanitize(v, key=str(k), depth=depth + 1) for k, v in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [sanitize(v, depth=depth + 1) for v in value]
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return str(value)


class JSONFormatter(logging.Formatter):
    """
    LogRecord -> JSON de una línea.

    Orden de precedencia: campos base < contexto del job < extra del call site.
    """

    def format(self, record: logging.LogRecord) -> str:
        from ..context import get_context_dict

        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "pid": record.process or os.getpid(),
        }
        payload.update(get_context_dict())
        payload.update(
            (k, sanitize(v, key=k))
            for k, v in record.__dict__.items()
            if k not in _RESERVED_ATTRS
        )

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "stacktrace": traceback.format_exception(exc_type, exc, tb),
            }

        return json.dumps(payload, ensure_ascii=False, default=str)


def _resolve_output_options() -> tuple[str, bool]:
    """
    Nivel y formato de salida.

    Settings manda; si Settings es inválido se usan las env vars crudas para
    poder loguear igual el error de configuración.
    """
    from pydantic import ValidationError

    from .config import get_settings

    try:
        settings = get_settings()
    except ValidationError:
        level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
        use_json = (os.getenv("LOG_JSON") or "1").strip().lower() not in {
            "0",
            "false",
            "no",
        }
        return level, use_json
    return settings.log_level, settings.log_json


def setup_logger(name: str = "compliance-backend") -> logging.Logger:
    """Logger global del proceso (idempotente ante reimports)."""
    log = logging.getLogger(name)
    level, use_json = _resolve_output_options()
    log.setLevel(getattr(logging, level, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter() if use_json else logging.Formatter("%(levelname)s %(message)s")
        )
        log.addHandler(handler)

    return log


logger = setup_logger()
