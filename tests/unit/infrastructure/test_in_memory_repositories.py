"""
Name: In-Memory Repository Tests

Responsibilities:
  - Validate link idempotency per (record, legal basis, article)
  - Validate requirement records are unique per (identification, requirement)
  - Validate case-insensitive name uniqueness and cascading deletes
  - Validate catalog views (ordering, legal basis -> articles cascade)
"""

import pytest

from compliance_backend.domain.value_objects import (
    ArticleClassification,
    IdentificationStatus,
)
from compliance_backend.infrastructure.repositories import (
    InMemoryCatalog,
    InMemoryIdentificationRepository,
)


pytestmark = pytest.mark.unit


@pytest.fixture
def repo():
    return InMemoryIdentificationRepository()


def test_create_starts_active(repo):
    identification = repo.create(name="Planta Norte", description=None, user_id=3)

    assert identification.status is IdentificationStatus.ACTIVE
    assert repo.find_by_id(identification.id).name == "Planta Norte"


def test_name_uniqueness_is_case_insensitive(repo):
    created = repo.create(name="Planta Norte", description=None, user_id=None)

    assert repo.exists_by_name("  planta norte ") is True
    assert repo.exists_by_name_excluding_id("PLANTA NORTE", created.id) is False


def test_requirement_record_is_idempotent(repo, catalog_factory):
    identification = repo.create(name="A", description=None, user_id=None)
    requirement = catalog_factory.requirement(100)

    first = repo.create_requirement_record(identification.id, requirement)
    second = repo.create_requirement_record(identification.id, requirement)

    assert first == second
    assert len(repo.list_requirement_records(identification.id)) == 1


def test_requirement_record_for_missing_identification_is_none(repo, catalog_factory):
    assert repo.create_requirement_record(99, catalog_factory.requirement(100)) is None


def test_link_article_same_label_is_idempotent(repo, catalog_factory):
    identification = repo.create(name="A", description=None, user_id=None)
    record = repo.create_requirement_record(identification.id, catalog_factory.requirement(100))

    assert repo.link_article(record.id, 1, 11, ArticleClassification.OBLIGATORY)
    assert repo.link_article(record.id, 1, 11, ArticleClassification.OBLIGATORY)

    links = repo.list_article_links(identification.id)
    assert [(link.key, link.classification) for link in links] == [
        ((record.id, 1, 11), ArticleClassification.OBLIGATORY)
    ]


def test_link_article_conflicting_label_is_rejected(repo, catalog_factory):
    identification = repo.create(name="A", description=None, user_id=None)
    record = repo.create_requirement_record(identification.id, catalog_factory.requirement(100))
    repo.link_article(record.id, 1, 11, ArticleClassification.OBLIGATORY)

    assert repo.link_article(record.id, 1, 11, ArticleClassification.COMPLEMENTARY) is False
    assert repo.list_article_links(identification.id)[0].classification is (
        ArticleClassification.OBLIGATORY
    )


def test_delete_cascades_links(repo, catalog_factory):
    identification = repo.create(name="A", description=None, user_id=None)
    record = repo.create_requirement_record(identification.id, catalog_factory.requirement(100))
    repo.link_legal_basis(record.id, 1)
    repo.link_article(record.id, 1, 11, ArticleClassification.COMPLEMENTARY)

    assert repo.delete_by_ids([identification.id]) is True
    assert repo.find_by_id(identification.id) is None
    assert repo.list_article_links(identification.id) == []
    assert repo.list_legal_basis_links(identification.id) == []
    assert repo.delete_by_ids([identification.id]) is False


def test_update_status_unknown_returns_false(repo):
    assert repo.update_status(404, IdentificationStatus.FAILED) is False


def test_catalog_articles_ordered_and_cascade(catalog_factory):
    catalog = InMemoryCatalog()
    catalog.add_legal_basis(
        catalog_factory.legal_basis(
            1,
            [
                catalog_factory.article(12, 1, order=2),
                catalog_factory.article(11, 1, order=1),
            ],
        )
    )

    assert catalog.legal_bases.find_by_id(1).articles == ()
    assert [a.id for a in catalog.articles.find_by_legal_basis_id(1)] == [11, 12]

    assert catalog.legal_bases.delete_by_ids([1]) is True
    assert catalog.articles.find_by_ids([11, 12]) == []


def test_catalog_subject_and_aspects(catalog_factory):
    catalog = InMemoryCatalog()
    catalog.add_subject(1, aspect_ids=[10, 11])
    catalog.add_subject(2, aspect_ids=[20])
    catalog.add_requirement(catalog_factory.requirement(100, aspect_id=10))
    catalog.add_requirement(catalog_factory.requirement(101, aspect_id=20, subject_id=2))

    assert catalog.subjects.subject_exists(1)
    assert not catalog.subjects.subject_exists(3)
    assert catalog.subjects.find_existing_aspect_ids(1, [10, 20, 11]) == [10, 11]
    assert [r.id for r in catalog.requirements.find_by_subject_and_aspects(1, [10, 11])] == [100]
