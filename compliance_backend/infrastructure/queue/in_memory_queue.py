"""
===============================================================================
ARCHIVO: infrastructure/queue/in_memory_queue.py
===============================================================================

CRC CARD (Class)
-------------------------------------------------------------------------------
Clase:
    InMemoryIdentificationJobQueue

Responsabilidades:
    - Implementar `IdentificationJobQueue` en memoria (tests / desarrollo).
    - Ejecutar jobs con un pool acotado de N threads (`process`).
    - Respetar la semántica de cancelación del puerto:
        * waiting / paused -> se elimina sin invocar al handler
        * active -> failed ("Job was canceled") + flag cooperativo
        * completed / failed -> JobNotCancelableError
    - "Primer estado terminal gana": si el worker termina un job ya
      cancelado, el resultado se descarta (se loguea).

Colaboradores:
    - domain.services.IdentificationJobQueue / JobContext / JobHandler
    - context (set_job_context / clear_context por job)
    - crosscutting.logger

Constraints:
    - Thread-safe: todo el estado bajo un único Condition.
    - Sin persistencia: reiniciar el proceso pierde los jobs.
===============================================================================
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Sequence

from ...context import clear_context, set_job_context
from ...crosscutting.exceptions import JobNotCancelableError
from ...crosscutting.logger import logger
from ...domain.jobs import IdentificationJobPayload, Job, JobState
from ...domain.services import IdentificationJobQueue, JobContext, JobHandler
from .job_paths import CANCELED_REASON

_INTERRUPTED_REASON = "Worker interrupted while processing the job"


@dataclass
class _JobRecord:
    id: str
    payload: IdentificationJobPayload
    state: JobState = JobState.WAITING
    progress: int = 0
    failed_reason: str | None = None
    result: dict[str, Any] | None = None
    cancel_requested: bool = False


class _InMemoryJobContext(JobContext):
    def __init__(self, queue: "InMemoryIdentificationJobQueue", record: _JobRecord):
        self._queue = queue
        self._record = record

    @property
    def id(self) -> str:
        return self._record.id

    @property
    def payload(self) -> IdentificationJobPayload:
        return self._record.payload

    def report_progress(self, percent: int) -> None:
        self._queue._set_progress(self._record.id, percent)

    def is_cancelled(self) -> bool:
        return self._queue._is_cancel_requested(self._record.id)


class InMemoryIdentificationJobQueue(IdentificationJobQueue):
    """
    Cola in-memory con workers en threads.

    Modelo mental:
    - _jobs es la "tabla" de jobs (id -> _JobRecord), ids incrementales.
    - _waiting es la cola FIFO de ids listos para tomar.
    - _running cuenta handlers en ejecución (incluye jobs ya cancelados).
    - _finished guarda ids terminales en orden; pasado `max_finished_jobs`
      se descartan los más viejos (equivalente a los TTL de resultados en RQ).
    """

    def __init__(self, max_finished_jobs: int = 1_000) -> None:
        if max_finished_jobs < 1:
            raise ValueError("max_finished_jobs must be >= 1")
        self._cond = threading.Condition()
        self._jobs: dict[str, _JobRecord] = {}
        self._waiting: deque[str] = deque()
        self._next_id = 1
        self._paused = False
        self._stopping = False
        self._running = 0
        self._threads: list[threading.Thread] = []
        self._finished: deque[str] = deque()
        self._max_finished = max_finished_jobs

    # =========================================================================
    # Productor / lectura
    # =========================================================================

    def enqueue(self, payload: IdentificationJobPayload) -> str:
        with self._cond:
            job_id = str(self._next_id)
            self._next_id += 1
            self._jobs[job_id] = _JobRecord(id=job_id, payload=payload)
            self._waiting.append(job_id)
            self._cond.notify_all()

        logger.info(
            "Identificación encolada (in-memory)",
            extra={
                "job_id": job_id,
                "identification_id": payload.identification_id,
                "total_tasks": payload.total_tasks,
            },
        )
        return job_id

    def get_job(self, job_id: str) -> Job | None:
        with self._cond:
            record = self._jobs.get(job_id)
            return self._snapshot(record) if record else None

    def get_jobs_by_states(self, states: Sequence[JobState]) -> list[Job]:
        wanted = set(states)
        with self._cond:
            jobs = [self._snapshot(r) for r in self._jobs.values()]
        return [job for job in jobs if job.state in wanted]

    def cancel(self, job_id: str) -> bool:
        with self._cond:
            record = self._jobs.get(job_id)
            if record is None:
                return False

            if record.state.is_terminal:
                raise JobNotCancelableError(job_id, record.state.value)

            if record.state is JobState.ACTIVE:
                record.cancel_requested = True
                record.state = JobState.FAILED
                record.failed_reason = CANCELED_REASON
                self._mark_finished(job_id)
                self._cond.notify_all()
                logger.info("Job activo marcado como cancelado", extra={"job_id": job_id})
                return True

            self._waiting.remove(job_id)
            del self._jobs[job_id]
            self._cond.notify_all()

        logger.info("Job removido de la cola", extra={"job_id": job_id})
        return True

    # =========================================================================
    # Control de la cola
    # =========================================================================

    def pause(self) -> None:
        """Los jobs waiting pasan a verse como paused y no se toman."""
        with self._cond:
            self._paused = True

    def resume(self) -> None:
        with self._cond:
            self._paused = False
            self._cond.notify_all()

    def process(self, concurrency: int, handler: JobHandler) -> None:
        """
        Arranca `concurrency` workers que ejecutan `handler` por job.

        Raises:
            ValueError: concurrency < 1
            RuntimeError: la cola ya está procesando
        """
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")

        with self._cond:
            if self._threads:
                raise RuntimeError("La cola ya está procesando jobs")
            self._stopping = False
            for index in range(concurrency):
                thread = threading.Thread(
                    target=self._work_loop,
                    args=(handler,),
                    name=f"identification-worker-{index + 1}",
                    daemon=True,
                )
                self._threads.append(thread)

        for thread in self._threads:
            thread.start()

        logger.info("Workers in-memory iniciados", extra={"concurrency": concurrency})

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """True si la cola quedó sin jobs waiting ni handlers corriendo."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while self._waiting or self._running:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._cond.wait(remaining)
            return True

    def shutdown(self, timeout: float | None = None) -> None:
        """Detiene los workers (los handlers en curso terminan su job)."""
        with self._cond:
            self._stopping = True
            self._cond.notify_all()
            threads = list(self._threads)

        for thread in threads:
            thread.join(timeout)

        with self._cond:
            self._threads = []

    # =========================================================================
    # Worker loop
    # =========================================================================

    def _work_loop(self, handler: JobHandler) -> None:
        while True:
            with self._cond:
                while not self._stopping and (self._paused or not self._waiting):
                    self._cond.wait()
                if self._stopping:
                    return
                job_id = self._waiting.popleft()
                record = self._jobs[job_id]
                record.state = JobState.ACTIVE
                self._running += 1

            set_job_context(
                job_id=job_id,
                identification_id=str(record.payload.identification_id),
                component="worker",
            )
            # R: Ante BaseException (SystemExit, KeyboardInterrupt) el job queda
            # failed y el thread termina; _running se libera en el finally.
            state, result, failed_reason = JobState.FAILED, None, _INTERRUPTED_REASON
            try:
                result = handler(_InMemoryJobContext(self, record))
                state, failed_reason = JobState.COMPLETED, None
            except Exception as exc:
                logger.exception(
                    "Job falló", extra={"job_id": job_id, "error": str(exc)}
                )
                failed_reason = str(exc)
            finally:
                self._finish(
                    job_id, state=state, result=result, failed_reason=failed_reason
                )
                clear_context()

    def _finish(
        self,
        job_id: str,
        *,
        state: JobState,
        result: dict[str, Any] | None = None,
        failed_reason: str | None = None,
    ) -> None:
        with self._cond:
            self._running -= 1
            record = self._jobs.get(job_id)
            if record is not None:
                if record.state.is_terminal:
                    logger.warning(
                        "Job ya terminado, se descarta el resultado del worker",
                        extra={
                            "job_id": job_id,
                            "state": record.state.value,
                            "worker_state": state.value,
                        },
                    )
                else:
                    record.state = state
                    record.result = result
                    record.failed_reason = failed_reason
                    self._mark_finished(job_id)
            self._cond.notify_all()

    def _mark_finished(self, job_id: str) -> None:
        """Registra un job terminal y descarta los más viejos. Requiere _cond."""
        self._finished.append(job_id)
        while len(self._finished) > self._max_finished:
            self._jobs.pop(self._finished.popleft(), None)

    def _set_progress(self, job_id: str, percent: int) -> None:
        with self._cond:
            record = self._jobs.get(job_id)
            if record is not None and not record.state.is_terminal:
                record.progress = max(0, min(100, int(percent)))

    def _is_cancel_requested(self, job_id: str) -> bool:
        with self._cond:
            record = self._jobs.get(job_id)
            return bool(record and record.cancel_requested)

    def _snapshot(self, record: _JobRecord) -> Job:
        state = record.state
        if state is JobState.WAITING and self._paused:
            state = JobState.PAUSED
        return Job(
            id=record.id,
            state=state,
            progress=record.progress,
            payload=record.payload,
            failed_reason=record.failed_reason,
            result=dict(record.result) if record.result else None,
        )
