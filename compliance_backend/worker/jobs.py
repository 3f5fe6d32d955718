"""
===============================================================================
TARJETA CRC — worker/jobs.py (Jobs RQ: Identificación de Requerimientos)
===============================================================================

Responsabilidades:
  - Definir el entrypoint ejecutado por RQ para cada identificación.
  - Reconstruir el payload (snapshot) y el contexto del job (progreso +
    token de cancelación).
  - Construir el caso de uso con dependencias inyectadas desde el contenedor.
  - Emitir logs/métricas con contexto consistente.
  - Registrar el motivo de fallo y relanzar (RQ marca el job failed).
  - Garantizar limpieza de contexto al finalizar (éxito o fallo).

Patrones aplicados:
  - Command (Job): función como comando a ejecutar por el worker.
  - Composition Root (local): arma el use case con dependencias registradas.

Colaboradores:
  - application.usecases.identification.RunIdentificationUseCase
  - container.get_run_identification_use_case
  - infrastructure.queue.RQJobContext
  - crosscutting.metrics (record_job_processed/failed, observe_job_duration)
  - context (set_job_context, clear_context)
===============================================================================
"""

from __future__ import annotations

import time
from typing import Any

from rq import get_current_job

from ..container import get_run_identification_use_case
from ..context import clear_context, set_job_context
from ..crosscutting.config import get_settings
from ..crosscutting.exceptions import JobCanceledError
from ..crosscutting.logger import logger
from ..crosscutting.metrics import (
    observe_job_duration,
    record_job_failed,
    record_job_processed,
)
from ..domain.jobs import IdentificationJobPayload
from ..domain.services import JobContext
from ..infrastructure.queue import RQJobContext

STATUS_COMPLETED = "COMPLETED"
STATUS_FAILED = "FAILED"
STATUS_CANCELED = "CANCELED"
STATUS_INVALID = "INVALID"


def handle_identification_job(job: JobContext) -> dict[str, Any]:
    """
    Handler independiente del broker (RQ o cola in-memory).

    Raises:
        Cualquier error del orquestador (la cola lo registra como motivo).
    """
    use_case = get_run_identification_use_case()
    result = use_case.execute(job)
    return result.to_dict(include_skipped=get_settings().report_skipped_articles)


def run_identification_job(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Job RQ: ejecuta una identificación completa.

    Contrato:
      - payload llega como dict JSON-safe (ver IdentificationJobPayload.to_dict).
      - Sin reintentos a nivel cola: si el job falla, queda failed.
    """
    rq_job = get_current_job()
    job_id = str(getattr(rq_job, "id", "") or "")
    identification_id = str((payload or {}).get("identification_id", ""))

    # R: Contexto para logs (uniforme en worker).
    set_job_context(
        job_id=job_id,
        identification_id=identification_id,
        component="worker.run_identification_job",
    )

    start = time.perf_counter()
    status = STATUS_FAILED
    context: RQJobContext | None = None

    try:
        try:
            parsed = IdentificationJobPayload.from_dict(payload)
        except (KeyError, TypeError, ValueError) as exc:
            status = STATUS_INVALID
            logger.error(
                "Job inválido: payload malformado",
                extra={"job_id": job_id, "error": str(exc)},
            )
            raise

        logger.info(
            "Worker job iniciado",
            extra={
                "job_id": job_id,
                "identification_id": parsed.identification_id,
                "total_tasks": parsed.total_tasks,
            },
        )

        context = RQJobContext(rq_job, parsed)
        result = handle_identification_job(context)
        status = STATUS_COMPLETED
        return result

    except JobCanceledError as exc:
        status = STATUS_CANCELED
        if context is not None:
            context.record_failure(exc.message)
        logger.info("Worker job cancelado", extra={"job_id": job_id})
        raise

    except Exception as exc:
        # R: Motivo legible para getJobStatus y relanzamos para que RQ marque failed.
        if context is not None:
            context.record_failure(str(exc))
        logger.exception(
            "Worker job falló con excepción",
            extra={
                "job_id": job_id,
                "identification_id": identification_id,
                "error": str(exc),
            },
        )
        raise

    finally:
        duration = time.perf_counter() - start
        record_job_processed(status)
        if status != STATUS_COMPLETED:
            record_job_failed()
        observe_job_duration(duration)

        logger.info(
            "Worker job finalizado",
            extra={
                "job_id": job_id,
                "identification_id": identification_id,
                "status": status,
                "duration_seconds": round(duration, 3),
            },
        )
        clear_context()


__all__ = ["handle_identification_job", "run_identification_job"]
