"""
===============================================================================
ARCHIVO: infrastructure/queue/rq_queue.py
===============================================================================

CRC CARD (Class)
-------------------------------------------------------------------------------
Clase:
    RQIdentificationJobQueue (Adapter) + RQJobContext

Responsabilidades:
    - Implementar el puerto `IdentificationJobQueue` usando RQ + Redis.
    - Encolar el job con el snapshot serializado, sin reintentos automáticos.
    - Traducir estados RQ a `JobState` y leer jobs desde cola + registries.
    - Cancelar: activo -> failed ("Job was canceled") con flag cooperativo;
      waiting/delayed/paused -> eliminado; terminal -> JobNotCancelableError.
    - Exponer al handler progreso (job.meta) y el token de cancelación.

Colaboradores:
    - domain.services.IdentificationJobQueue / JobContext
    - job_paths (nombres, claves, job path)
    - import_utils.is_importable_dotted_path
    - errors.QueueConfigurationError / QueueEnqueueError
    - crosscutting.logger

Patrones:
    - Adapter: traduce el puerto del dominio a una implementación RQ.
    - Fail-Fast: valida configuración y path importable al construir.

Mapeo de estados RQ:
    queued -> waiting        started -> active
    scheduled -> delayed     deferred -> paused
    finished -> completed    failed / stopped / canceled -> failed
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from redis import Redis
from rq import Queue
from rq.exceptions import NoSuchJobError
from rq.job import Job as RQJob
from rq.job import JobStatus
from rq.registry import (
    DeferredJobRegistry,
    FailedJobRegistry,
    FinishedJobRegistry,
    ScheduledJobRegistry,
    StartedJobRegistry,
)

from ...crosscutting.exceptions import JobNotCancelableError
from ...crosscutting.logger import logger
from ...domain.jobs import IdentificationJobPayload, Job, JobState
from ...domain.services import IdentificationJobQueue, JobContext
from .errors import QueueConfigurationError, QueueEnqueueError
from .import_utils import is_importable_dotted_path
from .job_paths import (
    CANCEL_KEY_PREFIX,
    CANCELED_REASON,
    IDENTIFICATIONS_QUEUE_NAME,
    META_FAILED_REASON,
    META_IDENTIFICATION_ID,
    META_PROGRESS,
    RUN_IDENTIFICATION_JOB_PATH,
)

_RQ_STATUS_TO_STATE: dict[str, JobState] = {
    JobStatus.QUEUED.value: JobState.WAITING,
    JobStatus.STARTED.value: JobState.ACTIVE,
    JobStatus.SCHEDULED.value: JobState.DELAYED,
    JobStatus.DEFERRED.value: JobState.PAUSED,
    JobStatus.FINISHED.value: JobState.COMPLETED,
    JobStatus.FAILED.value: JobState.FAILED,
    JobStatus.STOPPED.value: JobState.FAILED,
    JobStatus.CANCELED.value: JobState.FAILED,
}


@dataclass(frozen=True)
class RQQueueConfig:
    """Configuración del adaptador RQ.

    queue_name:
        Nombre de la cola en Redis.
    job_timeout_seconds:
        Timeout máximo de ejecución (las identificaciones pueden durar horas).
    result_ttl_seconds:
        Tiempo de vida del job completado (para getJobStatus).
    failure_ttl_seconds:
        Tiempo de vida del job fallido / cancelado.
    """

    queue_name: str = IDENTIFICATIONS_QUEUE_NAME
    job_timeout_seconds: int = 6 * 60 * 60
    result_ttl_seconds: int = 24 * 60 * 60
    failure_ttl_seconds: int = 7 * 24 * 60 * 60


def cancel_key(job_id: str) -> str:
    return f"{CANCEL_KEY_PREFIX}{job_id}"


class RQIdentificationJobQueue(IdentificationJobQueue):
    """Adapter RQ para los jobs de identificación."""

    def __init__(self, *, redis: Redis, config: RQQueueConfig) -> None:
        self._redis = redis
        self._config = _validate_config(config)

        # Fail-fast: el worker necesita importar el job.
        if not is_importable_dotted_path(RUN_IDENTIFICATION_JOB_PATH):
            raise QueueConfigurationError(
                "Job path no importable para RQ: "
                f"{RUN_IDENTIFICATION_JOB_PATH}. "
                "Revisar `infrastructure/queue/job_paths.py` y `compliance_backend/jobs.py`."
            )

        self._queue = Queue(name=self._config.queue_name, connection=redis)

        logger.info(
            "RQ inicializada",
            extra={
                "queue": self._config.queue_name,
                "job_timeout_seconds": self._config.job_timeout_seconds,
                "result_ttl_seconds": self._config.result_ttl_seconds,
            },
        )

    @property
    def queue(self) -> Queue:
        return self._queue

    # =========================================================================
    # Productor
    # =========================================================================

    def enqueue(self, payload: IdentificationJobPayload) -> str:
        """
        Encola el job. Sin `retry`: un intento por job.

        Contrato de serialización:
          - El payload viaja como dict JSON-safe (ver IdentificationJobPayload.to_dict).
        """
        try:
            rq_job = self._queue.enqueue(
                RUN_IDENTIFICATION_JOB_PATH,
                args=(payload.to_dict(),),
                job_timeout=self._config.job_timeout_seconds,
                result_ttl=self._config.result_ttl_seconds,
                failure_ttl=self._config.failure_ttl_seconds,
                description=f"identify_requirements:{payload.identification_id}",
                meta={
                    META_PROGRESS: 0,
                    META_IDENTIFICATION_ID: payload.identification_id,
                },
            )
        except Exception as exc:
            logger.exception(
                "Error al encolar identificación",
                extra={
                    "identification_id": payload.identification_id,
                    "queue": self._config.queue_name,
                },
            )
            raise QueueEnqueueError(
                "No se pudo encolar la identificación", original_error=exc
            ) from exc

        logger.info(
            "Identificación encolada",
            extra={
                "identification_id": payload.identification_id,
                "job_id": rq_job.id,
                "total_tasks": payload.total_tasks,
                "queue": self._config.queue_name,
            },
        )
        return str(rq_job.id)

    # =========================================================================
    # Lectura
    # =========================================================================

    def get_job(self, job_id: str) -> Job | None:
        rq_job = self._fetch(job_id)
        if rq_job is None:
            return None
        return self._to_domain(rq_job)

    def get_jobs_by_states(self, states: Sequence[JobState]) -> list[Job]:
        """
        Lee ids desde la cola y los registries correspondientes y filtra por
        el estado real (un job cancelado puede seguir en StartedJobRegistry
        hasta que el worker termine).
        """
        wanted = set(states)
        job_ids: list[str] = []
        for state in wanted:
            job_ids.extend(self._job_ids_for_state(state))

        unique_ids = list(dict.fromkeys(job_ids))
        if not unique_ids:
            return []

        jobs: list[Job] = []
        for rq_job in RQJob.fetch_many(unique_ids, connection=self._redis):
            if rq_job is None:
                continue
            job = self._to_domain(rq_job)
            if job is not None and job.state in wanted:
                jobs.append(job)
        return jobs

    # =========================================================================
    # Cancelación
    # =========================================================================

    def cancel(self, job_id: str) -> bool:
        rq_job = self._fetch(job_id)
        if rq_job is None:
            return False

        state = self._state_of(rq_job, refresh=True)
        if state is None or state.is_terminal:
            raise JobNotCancelableError(
                job_id, state.value if state else str(rq_job.get_status())
            )

        if state is JobState.ACTIVE:
            # El worker no se interrumpe: ve el flag en el próximo chequeo.
            self._redis.set(
                cancel_key(job_id),
                CANCELED_REASON,
                ex=self._config.failure_ttl_seconds or None,
            )
            StartedJobRegistry(queue=self._queue).remove(rq_job)
            rq_job.set_status(JobStatus.FAILED)
            FailedJobRegistry(queue=self._queue).add(
                rq_job,
                ttl=self._config.failure_ttl_seconds,
                exc_string=CANCELED_REASON,
            )
            logger.info(
                "Job activo marcado como cancelado",
                extra={"job_id": job_id, "queue": self._config.queue_name},
            )
            return True

        rq_job.cancel()
        rq_job.delete()
        logger.info(
            "Job removido de la cola",
            extra={
                "job_id": job_id,
                "previous_state": state.value,
                "queue": self._config.queue_name,
            },
        )
        return True

    # =========================================================================
    # Helpers privados
    # =========================================================================

    def _fetch(self, job_id: str) -> RQJob | None:
        try:
            return RQJob.fetch(job_id, connection=self._redis)
        except NoSuchJobError:
            return None

    def _job_ids_for_state(self, state: JobState) -> list[str]:
        if state is JobState.WAITING:
            return self._queue.get_job_ids()
        if state is JobState.ACTIVE:
            return StartedJobRegistry(queue=self._queue).get_job_ids()
        if state is JobState.DELAYED:
            return ScheduledJobRegistry(queue=self._queue).get_job_ids()
        if state is JobState.PAUSED:
            return DeferredJobRegistry(queue=self._queue).get_job_ids()
        if state is JobState.COMPLETED:
            return FinishedJobRegistry(queue=self._queue).get_job_ids()
        return FailedJobRegistry(queue=self._queue).get_job_ids()

    def _is_cancel_requested(self, job_id: str) -> bool:
        return bool(self._redis.exists(cancel_key(job_id)))

    def _state_of(self, rq_job: RQJob, *, refresh: bool = False) -> JobState | None:
        if self._is_cancel_requested(rq_job.id):
            return JobState.FAILED
        status = rq_job.get_status(refresh=refresh)
        if status is None:
            return None
        return _RQ_STATUS_TO_STATE.get(getattr(status, "value", status))

    def _to_domain(self, rq_job: RQJob) -> Job | None:
        state = self._state_of(rq_job)
        if state is None:
            return None

        meta = rq_job.meta or {}
        failed_reason = None
        result = None
        if state is JobState.FAILED:
            failed_reason = self._failed_reason(rq_job, meta)
        elif state is JobState.COMPLETED:
            result = rq_job.return_value()

        return Job(
            id=str(rq_job.id),
            state=state,
            progress=int(meta.get(META_PROGRESS) or 0),
            payload=_payload_from_args(rq_job),
            failed_reason=failed_reason,
            result=result if isinstance(result, dict) else None,
        )

    def _failed_reason(self, rq_job: RQJob, meta: dict[str, Any]) -> str | None:
        if self._is_cancel_requested(rq_job.id):
            return CANCELED_REASON
        if meta.get(META_FAILED_REASON):
            return str(meta[META_FAILED_REASON])
        latest = rq_job.latest_result()
        exc_string = getattr(latest, "exc_string", None) if latest else None
        return _last_exception_line(exc_string)


# -----------------------------------------------------------------------------
# Contexto del job para el handler (lado worker)
# -----------------------------------------------------------------------------


class RQJobContext(JobContext):
    """
    Vista del job RQ en ejecución.

    - report_progress: job.meta["progress"] + save_meta (visible para getJobStatus)
    - is_cancelled: flag cooperativo en Redis (seteado por cancel())
    """

    def __init__(self, rq_job: RQJob, payload: IdentificationJobPayload) -> None:
        self._job = rq_job
        self._payload = payload

    @property
    def id(self) -> str:
        return str(self._job.id)

    @property
    def payload(self) -> IdentificationJobPayload:
        return self._payload

    def report_progress(self, percent: int) -> None:
        self._job.meta[META_PROGRESS] = max(0, min(100, int(percent)))
        self._job.save_meta()

    def record_failure(self, reason: str) -> None:
        self._job.meta[META_FAILED_REASON] = reason
        self._job.save_meta()

    def is_cancelled(self) -> bool:
        return bool(self._job.connection.exists(cancel_key(self.id)))


# -----------------------------------------------------------------------------
# Helpers privados (módulo)
# -----------------------------------------------------------------------------


def _payload_from_args(rq_job: RQJob) -> IdentificationJobPayload | None:
    args = rq_job.args or ()
    if not args or not isinstance(args[0], dict):
        return None
    try:
        return IdentificationJobPayload.from_dict(args[0])
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning(
            "Payload de job ilegible",
            extra={"job_id": rq_job.id, "error": str(exc)},
        )
        return None


def _last_exception_line(exc_string: str | None) -> str | None:
    """'Traceback ... \\npkg.Error: mensaje' -> 'mensaje'."""
    if not exc_string:
        return None
    lines = [line.strip() for line in exc_string.strip().splitlines() if line.strip()]
    if not lines:
        return None
    last = lines[-1]
    head, sep, tail = last.partition(": ")
    if sep and head.replace(".", "").replace("_", "").isalnum():
        return tail
    return last


def _validate_config(config: RQQueueConfig) -> RQQueueConfig:
    """Valida y normaliza configuración (fail-fast)."""
    queue_name = (config.queue_name or "").strip() or IDENTIFICATIONS_QUEUE_NAME
    job_timeout_seconds = int(config.job_timeout_seconds)
    result_ttl_seconds = int(config.result_ttl_seconds)
    failure_ttl_seconds = int(config.failure_ttl_seconds)

    if job_timeout_seconds <= 0:
        raise QueueConfigurationError("job_timeout_seconds debe ser > 0")
    if result_ttl_seconds < 0:
        raise QueueConfigurationError("result_ttl_seconds no puede ser negativo")
    if failure_ttl_seconds < 0:
        raise QueueConfigurationError("failure_ttl_seconds no puede ser negativo")

    return RQQueueConfig(
        queue_name=queue_name,
        job_timeout_seconds=job_timeout_seconds,
        result_ttl_seconds=result_ttl_seconds,
        failure_ttl_seconds=failure_ttl_seconds,
    )
