"""
Name: In-Memory Identification Queue Tests

Responsibilities:
  - Validate job lifecycle: waiting -> active -> completed / failed
  - Validate cancel semantics per state (waiting, active, terminal, unknown)
  - Validate "first terminal state wins" after an active cancel
  - Validate pause / resume and bounded concurrency
"""

import threading

import pytest

from compliance_backend.crosscutting.exceptions import JobNotCancelableError
from compliance_backend.domain.jobs import JobState
from compliance_backend.infrastructure.queue import InMemoryIdentificationJobQueue


pytestmark = pytest.mark.unit

_TIMEOUT = 5


@pytest.fixture
def queue():
    q = InMemoryIdentificationJobQueue()
    yield q
    q.shutdown(timeout=_TIMEOUT)


@pytest.fixture
def payload(catalog_factory):
    lb = catalog_factory.legal_basis(1, [catalog_factory.article(11, 1)])
    return catalog_factory.payload(1, [lb], [catalog_factory.requirement(100)])


def test_enqueue_returns_waiting_job(queue, payload):
    job_id = queue.enqueue(payload)

    job = queue.get_job(job_id)
    assert job.state is JobState.WAITING
    assert job.progress == 0
    assert job.payload == payload


def test_unknown_job_is_none(queue):
    assert queue.get_job("missing") is None
    assert queue.cancel("missing") is False


def test_completed_job_keeps_result_and_progress(queue, payload):
    def handler(ctx):
        ctx.report_progress(100)
        return {"identification_id": ctx.payload.identification_id}

    job_id = queue.enqueue(payload)
    queue.process(1, handler)

    assert queue.wait_until_idle(_TIMEOUT)
    job = queue.get_job(job_id)
    assert job.state is JobState.COMPLETED
    assert job.progress == 100
    assert job.result == {"identification_id": 1}


def test_handler_error_marks_failed_with_reason(queue, payload):
    def handler(ctx):
        raise RuntimeError("Failed to link article 11")

    job_id = queue.enqueue(payload)
    queue.process(1, handler)

    assert queue.wait_until_idle(_TIMEOUT)
    job = queue.get_job(job_id)
    assert job.state is JobState.FAILED
    assert job.failed_reason == "Failed to link article 11"


def test_cancel_waiting_removes_job_without_running(queue, payload):
    calls: list[str] = []
    job_id = queue.enqueue(payload)

    assert queue.cancel(job_id) is True
    queue.process(1, lambda ctx: calls.append(ctx.id))

    assert queue.wait_until_idle(_TIMEOUT)
    assert queue.get_job(job_id) is None
    assert calls == []


def test_cancel_active_marks_failed_and_first_terminal_wins(queue, payload):
    started = threading.Event()
    release = threading.Event()
    seen_cancel: list[bool] = []

    def handler(ctx):
        started.set()
        release.wait(_TIMEOUT)
        seen_cancel.append(ctx.is_cancelled())
        return {"done": True}

    job_id = queue.enqueue(payload)
    queue.process(1, handler)
    assert started.wait(_TIMEOUT)

    assert queue.cancel(job_id) is True
    job = queue.get_job(job_id)
    assert job.state is JobState.FAILED
    assert job.failed_reason == "Job was canceled"

    release.set()
    assert queue.wait_until_idle(_TIMEOUT)

    job = queue.get_job(job_id)
    assert seen_cancel == [True]
    assert job.state is JobState.FAILED
    assert job.result is None


def test_cancel_terminal_job_raises(queue, payload):
    job_id = queue.enqueue(payload)
    queue.process(1, lambda ctx: {"ok": True})
    assert queue.wait_until_idle(_TIMEOUT)

    with pytest.raises(JobNotCancelableError) as exc_info:
        queue.cancel(job_id)

    assert exc_info.value.state == "completed"


def test_pause_reports_paused_and_holds_jobs(queue, payload):
    queue.pause()
    job_id = queue.enqueue(payload)
    queue.process(1, lambda ctx: {"ok": True})

    assert queue.get_job(job_id).state is JobState.PAUSED
    assert [j.id for j in queue.get_jobs_by_states([JobState.PAUSED])] == [job_id]
    assert queue.get_jobs_by_states([JobState.WAITING]) == []

    queue.resume()
    assert queue.wait_until_idle(_TIMEOUT)
    assert queue.get_job(job_id).state is JobState.COMPLETED


def test_concurrency_runs_jobs_in_parallel(queue, payload):
    barrier = threading.Barrier(2, timeout=_TIMEOUT)

    def handler(ctx):
        # Solo pasa si dos jobs corren a la vez.
        barrier.wait()
        return {"job": ctx.id}

    first = queue.enqueue(payload)
    second = queue.enqueue(payload)
    queue.process(2, handler)

    assert queue.wait_until_idle(_TIMEOUT)
    assert queue.get_job(first).state is JobState.COMPLETED
    assert queue.get_job(second).state is JobState.COMPLETED


def test_process_rejects_invalid_concurrency(queue):
    with pytest.raises(ValueError):
        queue.process(0, lambda ctx: None)


@pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
def test_handler_base_exception_still_releases_the_queue(queue, payload):
    def handler(ctx):
        raise SystemExit("worker shutting down")

    job_id = queue.enqueue(payload)
    queue.process(1, handler)

    assert queue.wait_until_idle(_TIMEOUT)
    job = queue.get_job(job_id)
    assert job.state is JobState.FAILED
    assert job.failed_reason == "Worker interrupted while processing the job"


def test_oldest_finished_jobs_are_evicted(payload):
    queue = InMemoryIdentificationJobQueue(max_finished_jobs=2)
    job_ids = [queue.enqueue(payload) for _ in range(3)]
    queue.process(1, lambda ctx: {"ok": True})
    try:
        assert queue.wait_until_idle(_TIMEOUT)
    finally:
        queue.shutdown(timeout=_TIMEOUT)

    assert queue.get_job(job_ids[0]) is None
    assert [queue.get_job(i).state for i in job_ids[1:]] == [
        JobState.COMPLETED,
        JobState.COMPLETED,
    ]


def test_max_finished_jobs_must_be_positive():
    with pytest.raises(ValueError):
        InMemoryIdentificationJobQueue(max_finished_jobs=0)
