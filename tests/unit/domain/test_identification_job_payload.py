"""
Name: Identification Job Payload Tests

Responsibilities:
  - Validate total_tasks arithmetic over the snapshot
  - Validate broker-safe serialization (dict in / dict out)
  - Validate entity references used by the pending-job guard
"""

from dataclasses import replace
from datetime import date

import pytest

from compliance_backend.domain.jobs import (
    PENDING_JOB_STATES,
    IdentificationJobPayload,
    JobState,
)
from compliance_backend.domain.value_objects import (
    IntelligenceLevel,
    PendingEntityKind,
)


pytestmark = pytest.mark.unit


def _payload(catalog_factory):
    lb1 = catalog_factory.legal_basis(
        1, [catalog_factory.article(11, 1), catalog_factory.article(12, 1)]
    )
    lb2 = catalog_factory.legal_basis(2, [catalog_factory.article(21, 2)])
    requirements = [
        catalog_factory.requirement(100, mandatory_keywords=("residuos",)),
        catalog_factory.requirement(200),
    ]
    return catalog_factory.payload(
        7, [lb1, lb2], requirements, intelligence_level=IntelligenceLevel.HIGH
    )


def test_total_tasks_is_articles_times_requirements(catalog_factory):
    payload = _payload(catalog_factory)

    # (2 + 1) artículos × 2 requerimientos
    assert payload.total_tasks == 6


def test_total_tasks_zero_without_requirements(catalog_factory):
    lb = catalog_factory.legal_basis(1, [catalog_factory.article(11, 1)])
    payload = catalog_factory.payload(1, [lb], [])

    assert payload.total_tasks == 0


def test_from_dict_restores_snapshot(catalog_factory):
    lb = catalog_factory.legal_basis(1, [catalog_factory.article(11, 1)])
    lb = replace(lb, last_reform=date(2023, 5, 1))
    payload = catalog_factory.payload(
        3, [lb], [catalog_factory.requirement(100, mandatory_keywords=("agua",))]
    )

    data = payload.to_dict()
    restored = IdentificationJobPayload.from_dict(data)

    assert data["intelligence_level"] == "Low"
    assert data["legal_bases"][0]["last_reform"] == "2023-05-01"
    assert restored == payload


def test_from_dict_defaults_missing_level_to_low():
    restored = IdentificationJobPayload.from_dict(
        {"identification_id": "9", "legal_bases": [], "requirements": []}
    )

    assert restored.identification_id == 9
    assert restored.intelligence_level is IntelligenceLevel.LOW


def test_from_dict_without_identification_raises():
    with pytest.raises(KeyError):
        IdentificationJobPayload.from_dict({"legal_bases": []})


@pytest.mark.parametrize(
    "kind,entity_id,expected",
    [
        (PendingEntityKind.LEGAL_BASIS, 2, True),
        (PendingEntityKind.LEGAL_BASIS, 3, False),
        (PendingEntityKind.REQUIREMENT, 200, True),
        (PendingEntityKind.REQUIREMENT, 300, False),
        (PendingEntityKind.IDENTIFICATION, 7, True),
        (PendingEntityKind.IDENTIFICATION, 8, False),
        (PendingEntityKind.ARTICLE, 21, True),
        (PendingEntityKind.ARTICLE, 22, False),
    ],
)
def test_references(catalog_factory, kind, entity_id, expected):
    assert _payload(catalog_factory).references(kind, entity_id) is expected


def test_pending_states_exclude_terminal():
    assert PENDING_JOB_STATES == {
        JobState.WAITING,
        JobState.PAUSED,
        JobState.ACTIVE,
        JobState.DELAYED,
    }
    assert JobState.COMPLETED.is_terminal
    assert JobState.FAILED.is_terminal
    assert not JobState.ACTIVE.is_terminal
