"""compliance_backend.infrastructure.services.retry

Name: Rate-limit Retry Helper (exponential backoff)

Qué es
------
Utilidad de **resiliencia** para el clasificador de artículos.
Implementa:
  - Clasificación de errores: **rate-limit** (reintentar) vs resto (fail-fast)
  - Decorator de `tenacity` con backoff exponencial determinístico
    (base × 2^intento: 1 s, 2 s, 4 s con la configuración por defecto)
  - Logging estructurado + métrica por cada reintento

CRC (Component Card)
--------------------
Component: retry helper
Responsibilities:
  - Decidir qué errores son reintentables (solo rate-limit)
  - Proveer un decorator estándar (tenacity) con backoff acotado
  - Loguear intentos y contexto útil para debugging/observabilidad
Collaborators:
  - tenacity (motor de retry)
  - crosscutting.config.get_settings (cantidad de reintentos / delay base)
  - crosscutting.logger, crosscutting.metrics
Constraints:
  - Reintentar SOLO rate-limit (429 / RESOURCE_EXHAUSTED / mensajes de cuota)
  - Intentos totales = 1 + max_retries; la última excepción se propaga
  - Sin estado compartido: seguro entre workers concurrentes
"""

from __future__ import annotations

import time
from typing import Callable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ...crosscutting.config import get_settings
from ...crosscutting.logger import logger
from ...crosscutting.metrics import record_classification_retry

T = TypeVar("T")


# R: HTTP status codes que indican rate-limit del proveedor
RATE_LIMIT_HTTP_CODES: frozenset[int] = frozenset({429})

_RATE_LIMIT_STATUS_NAMES: frozenset[str] = frozenset(
    {"RESOURCE_EXHAUSTED", "TOO_MANY_REQUESTS"}
)

_RATE_LIMIT_NAME_PATTERNS = ("ratelimit", "resourceexhausted", "toomanyrequests")

_RATE_LIMIT_MESSAGE_PATTERNS = (
    "rate limit",
    "rate_limit",
    "too many requests",
    "quota exceeded",
    "resource_exhausted",
    "resource exhausted",
)


def get_http_status_code(exception: BaseException) -> int | None:
    """R: Extrae un status code HTTP desde distintos tipos de exception.

    Soporta (best-effort):
      - google.genai.errors.APIError (atributo `code`)
      - excepciones con `response.status_code`
      - excepciones de SDKs que expongan `status_code`
    """
    code = getattr(exception, "code", None)
    # R: En algunos SDKs `code` puede ser gRPC status; filtramos a códigos HTTP (>=100).
    if isinstance(code, int) and code >= 100:
        return code

    resp = getattr(exception, "response", None)
    status_code = getattr(resp, "status_code", None) if resp is not None else None
    if isinstance(status_code, int):
        return status_code

    status_code = getattr(exception, "status_code", None)
    if isinstance(status_code, int):
        return status_code

    return None


def is_rate_limit_error(exception: BaseException) -> bool:
    """R: True si el proveedor pidió bajar la tasa.

    Reglas (en orden):
      1) Status HTTP 429.
      2) Status textual del SDK (RESOURCE_EXHAUSTED).
      3) Heurística por nombre de clase.
      4) Heurística por mensaje.
    """
    status_code = get_http_status_code(exception)
    if status_code is not None:
        return status_code in RATE_LIMIT_HTTP_CODES

    status = getattr(exception, "status", None)
    if isinstance(status, str) and status.strip().upper() in _RATE_LIMIT_STATUS_NAMES:
        return True

    exception_name = type(exception).__name__.lower()
    if any(p in exception_name for p in _RATE_LIMIT_NAME_PATTERNS):
        return True

    message = str(exception).lower()
    return any(p in message for p in _RATE_LIMIT_MESSAGE_PATTERNS)


def _log_retry(retry_state: RetryCallState) -> None:
    """R: Loguea cada intento antes de dormir (before_sleep)."""
    fn = getattr(retry_state, "fn", None)
    fn_name = getattr(fn, "__name__", "unknown")
    wait_time = (
        retry_state.next_action.sleep if retry_state.next_action is not None else 0
    )

    exc: Optional[BaseException] = None
    if retry_state.outcome is not None:
        exc = retry_state.outcome.exception()

    record_classification_retry()
    logger.warning(
        "Rate limit del proveedor, reintentando",
        extra={
            "function": fn_name,
            "attempt": retry_state.attempt_number,
            "wait_seconds": round(float(wait_time), 2),
            "error": str(exc) if exc else None,
            "error_type": type(exc).__name__ if exc else None,
        },
    )


def create_rate_limit_retry(
    max_retries: int | None = None,
    base_delay: float | None = None,
    *,
    sleep: Callable[[float], None] | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """R: Crea un decorator `tenacity` para rate-limits.

    Config:
      - stop: `stop_after_attempt(max_retries + 1)`
      - wait: `wait_exponential(multiplier=base_delay, exp_base=2)`
              -> base, 2·base, 4·base, ...
      - retry: solo si `is_rate_limit_error(exception)`
      - before_sleep: `_log_retry`
      - reraise: True (propaga la última excepción)
      - sleep: inyectable para tests (default: time.sleep)
    """
    settings = get_settings()

    _max_retries = (
        settings.classifier_rate_limit_max_retries
        if max_retries is None
        else max_retries
    )
    _base_delay = (
        settings.classifier_backoff_base_seconds
        if base_delay is None
        else float(base_delay)
    )

    if _max_retries < 0:
        raise ValueError("max_retries must be >= 0")
    if _base_delay < 0:
        raise ValueError("base_delay must be >= 0")

    return retry(
        stop=stop_after_attempt(_max_retries + 1),
        wait=wait_exponential(
            multiplier=_base_delay,
            exp_base=2,
            min=0,
            max=_base_delay * (2 ** max(_max_retries, 0)),
        ),
        retry=retry_if_exception(is_rate_limit_error),
        before_sleep=_log_retry,
        reraise=True,
        sleep=sleep or time.sleep,
    )
