"""
===============================================================================
USE CASE: Cancel Identification Job
===============================================================================

Name:
    Cancel Identification Job Use Case

Business Goal:
    Cancelar un job de identificación en vuelo.

Safety Rules:
    - Job activo: la cola lo marca failed ("Job was canceled"); el worker lo
      detecta en el próximo chequeo cooperativo y marca la identificación Failed.
    - Job en espera (waiting / delayed / paused): se remueve sin ejecutar;
      como el handler nunca corre, acá se marca la identificación Failed.
    - Job terminado (completed / failed): CONFLICT.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    CancelIdentificationJobUseCase

Collaborators:
    - IdentificationJobQueue (get_job / cancel)
    - IdentificationRepository.update_status
    - crosscutting.exceptions.JobNotCancelableError
===============================================================================
"""

from __future__ import annotations

import logging
from typing import Final

from ....crosscutting.exceptions import JobNotCancelableError
from ....domain.jobs import JobState
from ....domain.repositories import IdentificationRepository
from ....domain.services import IdentificationJobQueue
from ....domain.value_objects import IdentificationStatus
from .identification_results import (
    CancelJobResult,
    IdentificationError,
    IdentificationErrorCode,
)

logger = logging.getLogger(__name__)

_RESOURCE_JOB: Final[str] = "Job"
_MSG_JOB_NOT_FOUND: Final[str] = "Job not found"


class CancelIdentificationJobUseCase:
    """Use Case (Command): cancela un job de identificación."""

    def __init__(
        self,
        job_queue: IdentificationJobQueue,
        identification_repository: IdentificationRepository,
    ) -> None:
        self._queue = job_queue
        self._identifications = identification_repository

    def execute(self, job_id: str) -> CancelJobResult:
        job = self._queue.get_job(job_id)
        if job is None:
            return self._not_found()

        try:
            canceled = self._queue.cancel(job_id)
        except JobNotCancelableError as exc:
            return CancelJobResult(
                canceled=False,
                error=IdentificationError(
                    code=IdentificationErrorCode.CONFLICT,
                    message=exc.message,
                    resource=_RESOURCE_JOB,
                    details={"job_id": job_id, "state": exc.state},
                ),
            )

        if not canceled:
            # Race: el job expiró / se borró entre get_job y cancel.
            return self._not_found()

        if job.state is not JobState.ACTIVE and job.payload is not None:
            self._identifications.update_status(
                job.payload.identification_id, IdentificationStatus.FAILED
            )

        logger.info(
            "Job de identificación cancelado",
            extra={
                "job_id": job_id,
                "previous_state": job.state.value,
                "identification_id": job.payload.identification_id
                if job.payload
                else None,
            },
        )
        return CancelJobResult(canceled=True)

    @staticmethod
    def _not_found() -> CancelJobResult:
        return CancelJobResult(
            error=IdentificationError(
                code=IdentificationErrorCode.NOT_FOUND,
                message=_MSG_JOB_NOT_FOUND,
                resource=_RESOURCE_JOB,
            )
        )
