"""
Name: Identification Job Tests

Responsibilities:
  - Validate RQ job wiring: payload parsing, use case invocation, result dict
  - Validate failure reasons are recorded in job meta before re-raising
"""

from unittest.mock import MagicMock, patch

import pytest

from compliance_backend.application.usecases.identification import (
    IdentificationRunResult,
)
from compliance_backend.crosscutting.exceptions import JobCanceledError, LinkingError
from compliance_backend.infrastructure.queue import RQJobContext
from compliance_backend.worker.jobs import run_identification_job


pytestmark = pytest.mark.unit

_MODULE = "compliance_backend.worker.jobs"


def _rq_job():
    job = MagicMock()
    job.id = "rq-1"
    job.meta = {}
    job.connection.exists.return_value = 0
    return job


@pytest.fixture
def payload(catalog_factory):
    lb = catalog_factory.legal_basis(1, [catalog_factory.article(11, 1)])
    return catalog_factory.payload(4, [lb], [catalog_factory.requirement(100)])


def test_run_identification_job_invokes_use_case(payload):
    rq_job = _rq_job()
    use_case = MagicMock()
    use_case.execute.return_value = IdentificationRunResult(
        identification_id=4, total_tasks=1, processed_tasks=1, obligatory_links=1
    )

    with patch(f"{_MODULE}.get_current_job", return_value=rq_job), patch(
        f"{_MODULE}.get_run_identification_use_case", return_value=use_case
    ):
        result = run_identification_job(payload.to_dict())

    assert result["identification_id"] == 4
    assert result["obligatory_links"] == 1
    assert "skipped" not in result
    context = use_case.execute.call_args.args[0]
    assert isinstance(context, RQJobContext)
    assert context.id == "rq-1"
    assert context.payload == payload


def test_run_identification_job_rejects_malformed_payload():
    use_case = MagicMock()

    with patch(f"{_MODULE}.get_current_job", return_value=_rq_job()), patch(
        f"{_MODULE}.get_run_identification_use_case", return_value=use_case
    ):
        with pytest.raises(KeyError):
            run_identification_job({"legal_bases": []})

    use_case.execute.assert_not_called()


def test_run_identification_job_records_failure_reason(payload):
    rq_job = _rq_job()
    use_case = MagicMock()
    use_case.execute.side_effect = LinkingError("Failed to link article 11")

    with patch(f"{_MODULE}.get_current_job", return_value=rq_job), patch(
        f"{_MODULE}.get_run_identification_use_case", return_value=use_case
    ):
        with pytest.raises(LinkingError):
            run_identification_job(payload.to_dict())

    assert rq_job.meta["failed_reason"] == "Failed to link article 11"
    rq_job.save_meta.assert_called()


def test_run_identification_job_records_cancel(payload):
    rq_job = _rq_job()
    use_case = MagicMock()
    use_case.execute.side_effect = JobCanceledError()

    with patch(f"{_MODULE}.get_current_job", return_value=rq_job), patch(
        f"{_MODULE}.get_run_identification_use_case", return_value=use_case
    ):
        with pytest.raises(JobCanceledError):
            run_identification_job(payload.to_dict())

    assert rq_job.meta["failed_reason"] == "Job was canceled"


def test_run_identification_job_with_in_memory_adapters(catalog_factory):
    from compliance_backend import container
    from compliance_backend.domain.value_objects import IdentificationStatus

    catalog = container.get_in_memory_catalog()
    lb = catalog_factory.legal_basis(
        1,
        [
            catalog_factory.article(11, 1, description="Manejo de residuos peligrosos"),
            catalog_factory.article(12, 1, description="Disposiciones generales"),
        ],
    )
    requirement = catalog_factory.requirement(100, mandatory_keywords=("residuos",))
    catalog.add_legal_basis(lb)
    catalog.add_requirement(requirement)
    identifications = container.get_identification_repository()
    identification = identifications.create(name="A", description=None, user_id=None)
    payload = catalog_factory.payload(identification.id, [lb], [requirement])
    rq_job = _rq_job()

    with patch(f"{_MODULE}.get_current_job", return_value=rq_job):
        result = run_identification_job(payload.to_dict())

    assert result["processed_tasks"] == 2
    assert result["obligatory_links"] == 1
    assert rq_job.meta["progress"] == 100
    assert identifications.find_by_id(identification.id).status is (
        IdentificationStatus.COMPLETED
    )
