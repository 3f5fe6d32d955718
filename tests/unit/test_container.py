"""
Name: Composition Root Tests

Responsibilities:
  - Validate APP_ENV=test wires in-memory adapters and the fake classifier
  - Validate every use-case factory builds against the shared singletons
"""

import pytest

from compliance_backend import container
from compliance_backend.application.usecases.identification import (
    CancelIdentificationJobUseCase,
    CheckPendingJobsUseCase,
    DeleteArticleUseCase,
    DeleteIdentificationUseCase,
    DeleteLegalBasisUseCase,
    DeleteRequirementUseCase,
    GetIdentificationJobStatusUseCase,
    RunIdentificationUseCase,
    StartIdentificationUseCase,
    UpdateIdentificationUseCase,
)
from compliance_backend.infrastructure.queue import InMemoryIdentificationJobQueue
from compliance_backend.infrastructure.repositories import (
    InMemoryIdentificationRepository,
)
from compliance_backend.infrastructure.services import FakeArticleClassifier


pytestmark = pytest.mark.unit


def test_test_env_uses_in_memory_adapters(catalog_factory):
    assert isinstance(container.get_identification_queue(), InMemoryIdentificationJobQueue)
    assert isinstance(
        container.get_identification_repository(), InMemoryIdentificationRepository
    )
    assert isinstance(container.get_article_classifier(), FakeArticleClassifier)
    catalog = container.get_in_memory_catalog()
    catalog.add_legal_basis(catalog_factory.legal_basis(1))
    assert container.get_legal_basis_repository().find_by_id(1) is not None


@pytest.mark.parametrize(
    "factory,expected",
    [
        (container.get_start_identification_use_case, StartIdentificationUseCase),
        (container.get_run_identification_use_case, RunIdentificationUseCase),
        (
            container.get_identification_job_status_use_case,
            GetIdentificationJobStatusUseCase,
        ),
        (container.get_cancel_identification_job_use_case, CancelIdentificationJobUseCase),
        (container.get_check_pending_jobs_use_case, CheckPendingJobsUseCase),
        (container.get_delete_identification_use_case, DeleteIdentificationUseCase),
        (container.get_delete_legal_basis_use_case, DeleteLegalBasisUseCase),
        (container.get_delete_article_use_case, DeleteArticleUseCase),
        (container.get_delete_requirement_use_case, DeleteRequirementUseCase),
        (container.get_update_identification_use_case, UpdateIdentificationUseCase),
    ],
)
def test_use_case_factories(factory, expected):
    assert isinstance(factory(), expected)
