"""
===============================================================================
TARJETA CRC — compliance_backend/context.py (Contexto por job)
===============================================================================

Responsabilidades:
  - Mantener contexto "job-scoped" usando ContextVars (thread-safe).
  - Permitir correlación de logs/métricas sin pasar parámetros por todo el stack.
  - Proveer helpers mínimos: set_job_context(), get_context_dict(), clear_context().

Colaboradores:
  - crosscutting.logger: enriquece logs leyendo get_context_dict().
  - worker.jobs: setea job_id / identification_id por job y limpia al finalizar.
  - infrastructure.queue.in_memory_queue: idem para los threads del pool local.

Patrones aplicados:
  - Ambient Context (controlado y explícito).

Restricciones:
  - Solo tipos primitivos (str) para serialización segura.
  - Defaults vacíos ("") para evitar None y simplificar JSON.
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Final

# Identificador de correlación (job id o id de request del caller).
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Job de identificación en curso y la identificación que procesa.
job_id_var: ContextVar[str] = ContextVar("job_id", default="")
identification_id_var: ContextVar[str] = ContextVar("identification_id", default="")

# Componente que emite (ej: "worker", "submission").
component_var: ContextVar[str] = ContextVar("component", default="")

_CTX_REQUEST_ID: Final[str] = "request_id"
_CTX_JOB_ID: Final[str] = "job_id"
_CTX_IDENTIFICATION_ID: Final[str] = "identification_id"
_CTX_COMPONENT: Final[str] = "component"


def set_job_context(
    *,
    job_id: str = "",
    identification_id: str = "",
    component: str = "",
    request_id: str = "",
) -> None:
    """
    Setea el contexto del job.

    Regla:
      - Strings vacíos significan "no disponible".
      - request_id cae en job_id si no viene explícito.
    """
    job_id_var.set(job_id or "")
    identification_id_var.set(identification_id or "")
    component_var.set(component or "")
    request_id_var.set(request_id or job_id or "")


def get_context_dict() -> dict[str, str]:
    """Devuelve el contexto actual como dict, omitiendo claves vacías."""
    ctx: dict[str, str] = {}

    if val := request_id_var.get():
        ctx[_CTX_REQUEST_ID] = val
    if val := job_id_var.get():
        ctx[_CTX_JOB_ID] = val
    if val := identification_id_var.get():
        ctx[_CTX_IDENTIFICATION_ID] = val
    if val := component_var.get():
        ctx[_CTX_COMPONENT] = val

    return ctx


def clear_context() -> None:
    """
    Limpia el contexto al final del job.

    Importante:
      - Evita "filtración de contexto" entre jobs que reutilizan el mismo thread.
    """
    request_id_var.set("")
    job_id_var.set("")
    identification_id_var.set("")
    component_var.set("")
