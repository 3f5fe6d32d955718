"""
Name: Job Status and Cancel Use Case Tests

Responsibilities:
  - Validate state -> (status, message) mapping and optional fields
  - Validate cancel outcomes (removed, active, terminal conflict, not found)
"""

from unittest.mock import MagicMock

import pytest

from compliance_backend.application.usecases.identification import (
    CancelIdentificationJobUseCase,
    GetIdentificationJobStatusUseCase,
    IdentificationErrorCode,
)
from compliance_backend.crosscutting.exceptions import JobNotCancelableError
from compliance_backend.domain.jobs import Job, JobState
from compliance_backend.domain.value_objects import IdentificationStatus
from compliance_backend.infrastructure.queue import InMemoryIdentificationJobQueue
from compliance_backend.infrastructure.repositories import (
    InMemoryIdentificationRepository,
)


pytestmark = pytest.mark.unit


def _queue_with(job):
    queue = MagicMock()
    queue.get_job.return_value = job
    return queue


@pytest.mark.parametrize(
    "state,status,message",
    [
        (JobState.WAITING, "processing", "The job is waiting to be processed"),
        (JobState.ACTIVE, "processing", "Job is still processing"),
        (JobState.DELAYED, "info", "Job is delayed and will be processed later"),
        (JobState.PAUSED, "info", "Job is paused and will be resumed once unpaused"),
    ],
)
def test_status_of_pending_states(state, status, message):
    job = Job(id="1", state=state, progress=40)

    result = GetIdentificationJobStatusUseCase(_queue_with(job)).execute("1")

    assert (result.status, result.message) == (status, message)
    expected = 40 if state in (JobState.WAITING, JobState.ACTIVE) else None
    assert result.progress == expected
    assert result.failure is None


def test_status_completed_includes_result():
    job = Job(
        id="1",
        state=JobState.COMPLETED,
        progress=100,
        result={"processed_tasks": 4, "skipped_articles": 0},
    )

    result = GetIdentificationJobStatusUseCase(_queue_with(job)).execute("1")

    assert result.status == "success"
    assert result.message == "Job completed successfully"
    assert result.progress == 100
    assert result.result["processed_tasks"] == 4


def test_status_completed_mentions_reported_skips():
    job = Job(
        id="1",
        state=JobState.COMPLETED,
        progress=100,
        result={"skipped_articles": 2, "skipped": [{}, {}]},
    )

    result = GetIdentificationJobStatusUseCase(_queue_with(job)).execute("1")

    assert result.message == "Job completed successfully (2 articles skipped)"


def test_status_failed_uses_reason_or_unknown():
    failed = Job(id="1", state=JobState.FAILED, failed_reason="Job was canceled")
    unknown = Job(id="2", state=JobState.FAILED)

    assert GetIdentificationJobStatusUseCase(_queue_with(failed)).execute("1").failure == (
        "Job was canceled"
    )
    assert GetIdentificationJobStatusUseCase(_queue_with(unknown)).execute("2").failure == (
        "Unknown error"
    )


def test_status_unknown_job_is_not_found():
    result = GetIdentificationJobStatusUseCase(_queue_with(None)).execute("x")

    assert result.error.code is IdentificationErrorCode.NOT_FOUND
    assert result.error.message == "Job not found"


def _payload_for(catalog_factory, identification_id):
    lb = catalog_factory.legal_basis(1, [catalog_factory.article(11, 1)])
    return catalog_factory.payload(identification_id, [lb], [catalog_factory.requirement(100)])


def test_cancel_waiting_job_marks_identification_failed(catalog_factory):
    identifications = InMemoryIdentificationRepository()
    identification = identifications.create(name="A", description=None, user_id=None)
    job = Job(
        id="1",
        state=JobState.WAITING,
        payload=_payload_for(catalog_factory, identification.id),
    )
    queue = _queue_with(job)
    queue.cancel.return_value = True

    result = CancelIdentificationJobUseCase(queue, identifications).execute("1")

    assert result.canceled is True
    assert identifications.find_by_id(identification.id).status is (
        IdentificationStatus.FAILED
    )


def test_cancel_active_job_leaves_status_to_worker(catalog_factory):
    identifications = InMemoryIdentificationRepository()
    identification = identifications.create(name="A", description=None, user_id=None)
    job = Job(
        id="1",
        state=JobState.ACTIVE,
        payload=_payload_for(catalog_factory, identification.id),
    )
    queue = _queue_with(job)
    queue.cancel.return_value = True

    result = CancelIdentificationJobUseCase(queue, identifications).execute("1")

    assert result.canceled is True
    assert identifications.find_by_id(identification.id).status is (
        IdentificationStatus.ACTIVE
    )


def test_cancel_terminal_job_is_conflict():
    queue = _queue_with(Job(id="1", state=JobState.COMPLETED))
    queue.cancel.side_effect = JobNotCancelableError("1", "completed")

    result = CancelIdentificationJobUseCase(queue, MagicMock()).execute("1")

    assert result.canceled is False
    assert result.error.code is IdentificationErrorCode.CONFLICT
    assert result.error.details == {"job_id": "1", "state": "completed"}


def test_cancel_unknown_job_is_not_found():
    queue = _queue_with(None)

    result = CancelIdentificationJobUseCase(queue, MagicMock()).execute("1")

    assert result.error.code is IdentificationErrorCode.NOT_FOUND
    queue.cancel.assert_not_called()


def test_freshly_enqueued_job_reports_zero_progress(catalog_factory):
    queue = InMemoryIdentificationJobQueue()
    lb = catalog_factory.legal_basis(1, [catalog_factory.article(11, 1)])
    job_id = queue.enqueue(
        catalog_factory.payload(1, [lb], [catalog_factory.requirement(100)])
    )

    result = GetIdentificationJobStatusUseCase(queue).execute(job_id)

    assert result.state is JobState.WAITING
    assert result.status == "processing"
    assert result.progress == 0
