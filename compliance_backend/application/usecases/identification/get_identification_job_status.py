"""
===============================================================================
USE CASE: Get Identification Job Status (Polling)
===============================================================================

Name:
    Get Identification Job Status Use Case

Business Goal:
    Traducir el estado del job en la cola a un mensaje legible y un status
    de alto nivel para la UI (processing / success / error / info).

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    GetIdentificationJobStatusUseCase

Responsibilities:
    - Buscar el job por id (NOT_FOUND si no existe).
    - Mapear JobState a {status, message} + datos extra por estado:
        waiting   -> processing + progress
        active    -> processing + progress
        completed -> success + progress + result
        failed    -> error + motivo
        delayed / paused -> info

Collaborators:
    - IdentificationJobQueue.get_job
===============================================================================
"""

from __future__ import annotations

from typing import Final

from ....domain.jobs import Job, JobState
from ....domain.services import IdentificationJobQueue
from .identification_results import (
    IdentificationError,
    IdentificationErrorCode,
    JobStatusResult,
)

STATUS_PROCESSING: Final[str] = "processing"
STATUS_SUCCESS: Final[str] = "success"
STATUS_ERROR: Final[str] = "error"
STATUS_INFO: Final[str] = "info"

_MSG_JOB_NOT_FOUND: Final[str] = "Job not found"
_MSG_UNKNOWN_ERROR: Final[str] = "Unknown error"

# (status, message) por estado.
_RESPONSE_MAP: Final[dict[JobState, tuple[str, str]]] = {
    JobState.WAITING: (STATUS_PROCESSING, "The job is waiting to be processed"),
    JobState.ACTIVE: (STATUS_PROCESSING, "Job is still processing"),
    JobState.COMPLETED: (STATUS_SUCCESS, "Job completed successfully"),
    JobState.FAILED: (STATUS_ERROR, "Job failed"),
    JobState.DELAYED: (STATUS_INFO, "Job is delayed and will be processed later"),
    JobState.PAUSED: (
        STATUS_INFO,
        "Job is paused and will be resumed once unpaused",
    ),
}


class GetIdentificationJobStatusUseCase:
    """Use Case (Query): estado legible de un job de identificación."""

    def __init__(self, job_queue: IdentificationJobQueue) -> None:
        self._queue = job_queue

    def execute(self, job_id: str) -> JobStatusResult:
        job = self._queue.get_job(job_id)
        if job is None:
            return JobStatusResult(
                error=IdentificationError(
                    code=IdentificationErrorCode.NOT_FOUND,
                    message=_MSG_JOB_NOT_FOUND,
                    resource="Job",
                )
            )
        return self._describe(job)

    @staticmethod
    def _describe(job: Job) -> JobStatusResult:
        status, message = _RESPONSE_MAP[job.state]
        result = JobStatusResult(state=job.state, status=status, message=message)

        if job.state in (JobState.WAITING, JobState.ACTIVE, JobState.COMPLETED):
            result.progress = job.progress
        if job.state is JobState.COMPLETED:
            result.result = job.result
            skipped = (job.result or {}).get("skipped_articles") or 0
            if skipped and "skipped" in (job.result or {}):
                result.message = f"{message} ({skipped} articles skipped)"
        if job.state is JobState.FAILED:
            result.failure = job.failed_reason or _MSG_UNKNOWN_ERROR
        return result
