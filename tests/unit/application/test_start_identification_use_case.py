"""
Name: Start Identification Use Case Tests

Responsibilities:
  - Validate input validation order and error codes
  - Validate snapshot building (legal bases with their articles)
  - Validate enqueue failure marks the identification Failed
"""

from unittest.mock import MagicMock

import pytest

from compliance_backend.application.usecases.identification import (
    IdentificationErrorCode,
    StartIdentificationInput,
    StartIdentificationUseCase,
)
from compliance_backend.domain.value_objects import (
    IdentificationStatus,
    IntelligenceLevel,
)
from compliance_backend.infrastructure.queue import InMemoryIdentificationJobQueue
from compliance_backend.infrastructure.repositories import (
    InMemoryCatalog,
    InMemoryIdentificationRepository,
)


pytestmark = pytest.mark.unit


@pytest.fixture
def catalog(catalog_factory):
    catalog = InMemoryCatalog()
    catalog.add_subject(1, aspect_ids=[10, 11])
    catalog.add_legal_basis(
        catalog_factory.legal_basis(
            1, [catalog_factory.article(11, 1), catalog_factory.article(12, 1)]
        )
    )
    catalog.add_legal_basis(catalog_factory.legal_basis(2))  # sin artículos
    catalog.add_requirement(catalog_factory.requirement(100, aspect_id=10))
    catalog.add_requirement(catalog_factory.requirement(101, aspect_id=11))
    return catalog


@pytest.fixture
def identifications():
    return InMemoryIdentificationRepository()


def _use_case(catalog, identifications, queue=None):
    return StartIdentificationUseCase(
        legal_basis_repository=catalog.legal_bases,
        article_repository=catalog.articles,
        requirement_repository=catalog.requirements,
        subject_catalog=catalog.subjects,
        identification_repository=identifications,
        job_queue=queue or InMemoryIdentificationJobQueue(),
    )


def _input(**overrides) -> StartIdentificationInput:
    values = dict(
        name="Planta Norte",
        legal_basis_ids=[1],
        subject_id=1,
        aspect_ids=[10, 11],
        intelligence_level="High",
        user_id=3,
    )
    values.update(overrides)
    return StartIdentificationInput(**values)


def test_start_creates_identification_and_enqueues_snapshot(catalog, identifications):
    queue = InMemoryIdentificationJobQueue()

    result = _use_case(catalog, identifications, queue).execute(_input())

    assert result.error is None
    identification = identifications.find_by_id(result.identification_id)
    assert identification.status is IdentificationStatus.ACTIVE
    assert identification.user_id == 3

    job = queue.get_job(result.job_id)
    assert job.payload.identification_id == result.identification_id
    assert job.payload.intelligence_level is IntelligenceLevel.HIGH
    assert [a.id for a in job.payload.legal_bases[0].articles] == [11, 12]
    assert job.payload.requirement_ids == [100, 101]
    assert job.payload.total_tasks == 4


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"name": "  "}, "Identification name is required"),
        ({"legal_basis_ids": []}, "At least one legal basis is required"),
        ({"aspect_ids": []}, "At least one aspect is required"),
        ({"intelligence_level": "Medium"}, "Unknown intelligence level"),
    ],
)
def test_invalid_input_is_validation_error(catalog, identifications, overrides, message):
    result = _use_case(catalog, identifications).execute(_input(**overrides))

    assert result.error.code is IdentificationErrorCode.VALIDATION_ERROR
    assert message in result.error.message


def test_duplicate_name_is_conflict(catalog, identifications):
    identifications.create(name="planta norte", description=None, user_id=None)

    result = _use_case(catalog, identifications).execute(_input())

    assert result.error.code is IdentificationErrorCode.CONFLICT


def test_unknown_legal_basis_lists_missing_ids(catalog, identifications):
    result = _use_case(catalog, identifications).execute(_input(legal_basis_ids=[1, 7, 8]))

    assert result.error.code is IdentificationErrorCode.NOT_FOUND
    assert result.error.details == {"not_found_ids": [7, 8]}


def test_legal_basis_without_articles_is_rejected(catalog, identifications):
    result = _use_case(catalog, identifications).execute(_input(legal_basis_ids=[1, 2]))

    assert result.error.code is IdentificationErrorCode.VALIDATION_ERROR
    assert result.error.message == "Some LegalBasis not have associated articles"


def test_unknown_subject_and_aspects(catalog, identifications):
    no_subject = _use_case(catalog, identifications).execute(_input(subject_id=9))
    no_aspect = _use_case(catalog, identifications).execute(_input(aspect_ids=[10, 99]))

    assert no_subject.error.message == "Subject not found"
    assert no_aspect.error.code is IdentificationErrorCode.NOT_FOUND
    assert no_aspect.error.details == {"not_found_ids": [99]}


def test_no_requirements_for_aspects(catalog, identifications):
    catalog.add_subject(2, aspect_ids=[20])

    result = _use_case(catalog, identifications).execute(
        _input(subject_id=2, aspect_ids=[20])
    )

    assert result.error.code is IdentificationErrorCode.NOT_FOUND
    assert result.error.resource == "Requirement"
    assert identifications.exists_by_name("Planta Norte") is False


def test_enqueue_failure_marks_failed(catalog, identifications):
    queue = MagicMock()
    queue.enqueue.side_effect = ConnectionError("redis down")

    result = _use_case(catalog, identifications, queue).execute(_input())

    assert result.error.code is IdentificationErrorCode.SERVICE_UNAVAILABLE
    created = identifications.find_by_ids([1])[0]
    assert created.status is IdentificationStatus.FAILED
