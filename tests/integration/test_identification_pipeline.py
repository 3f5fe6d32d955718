"""
Name: Identification Pipeline Integration Tests

Responsibilities:
  - Run start -> queue -> worker handler -> status polling end to end
  - Validate the pending-job guard blocks deletes while the job waits
    and releases them once it completes

Notes:
  - APP_ENV=test: container wires in-memory catalog, repository and queue
  - FAKE_LLM=1: deterministic keyword classifier
"""

import pytest

from compliance_backend import container
from compliance_backend.application.usecases.identification import (
    IdentificationErrorCode,
    StartIdentificationInput,
)
from compliance_backend.domain.jobs import JobState
from compliance_backend.domain.value_objects import (
    ArticleClassification,
    IdentificationStatus,
)
from compliance_backend.worker.jobs import handle_identification_job


pytestmark = pytest.mark.integration


@pytest.fixture
def seeded_catalog(catalog_factory):
    catalog = container.get_in_memory_catalog()
    catalog.add_subject(1, aspect_ids=[10])
    catalog.add_legal_basis(
        catalog_factory.legal_basis(
            1,
            [
                catalog_factory.article(
                    11, 1, description="Manejo de residuos peligrosos"
                ),
                catalog_factory.article(12, 1, description="Bitácora de emisiones"),
                catalog_factory.article(13, 1, description="Transitorios"),
            ],
        )
    )
    catalog.add_requirement(
        catalog_factory.requirement(
            100,
            mandatory_keywords=("residuos",),
            complementary_keywords=("emisiones",),
        )
    )
    return catalog


def _start(name: str = "Planta Norte"):
    return container.get_start_identification_use_case().execute(
        StartIdentificationInput(
            name=name,
            legal_basis_ids=[1],
            subject_id=1,
            aspect_ids=[10],
            intelligence_level="Low",
        )
    )


def test_identification_runs_end_to_end(seeded_catalog):
    started = _start()
    assert started.error is None

    queue = container.get_identification_queue()
    queue.process(1, handle_identification_job)
    try:
        assert queue.wait_until_idle(timeout=10)
    finally:
        queue.shutdown(timeout=5)

    status = container.get_identification_job_status_use_case().execute(
        started.job_id
    )
    assert status.error is None
    assert status.state is JobState.COMPLETED
    assert status.progress == 100
    assert status.result["processed_tasks"] == 3
    assert status.result["obligatory_links"] == 1
    assert status.result["complementary_links"] == 1

    identifications = container.get_identification_repository()
    identification = identifications.find_by_id(started.identification_id)
    assert identification.status is IdentificationStatus.COMPLETED

    links = {
        link.article_id: link.classification
        for link in identifications.list_article_links(started.identification_id)
    }
    assert links == {
        11: ArticleClassification.OBLIGATORY,
        12: ArticleClassification.COMPLEMENTARY,
    }


def test_guard_blocks_delete_until_job_finishes(seeded_catalog):
    started = _start()
    delete_legal_basis = container.get_delete_legal_basis_use_case()

    blocked = delete_legal_basis.execute(1)
    assert blocked.error.code is IdentificationErrorCode.CONFLICT
    assert blocked.error.details == {"job_id": started.job_id}

    queue = container.get_identification_queue()
    queue.process(1, handle_identification_job)
    try:
        assert queue.wait_until_idle(timeout=10)
    finally:
        queue.shutdown(timeout=5)

    deleted = delete_legal_basis.execute(1)
    assert deleted.error is None
    assert deleted.deleted is True


def test_canceled_waiting_job_is_removed_and_identification_failed(seeded_catalog):
    started = _start()

    canceled = container.get_cancel_identification_job_use_case().execute(
        started.job_id
    )

    assert canceled.canceled is True
    status = container.get_identification_job_status_use_case().execute(
        started.job_id
    )
    assert status.error.code is IdentificationErrorCode.NOT_FOUND
    identification = container.get_identification_repository().find_by_id(
        started.identification_id
    )
    assert identification.status is IdentificationStatus.FAILED
