"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure test environment (APP_ENV=test, FAKE_LLM=1) before imports
  - Reset cached singletons between tests (settings, container factories)
  - Provide catalog factories (legal bases, articles, requirements)
  - Provide a stub JobContext for the orchestrator

Collaborators:
  - pytest: Test framework
  - unittest.mock: Mocking library
  - compliance_backend.domain: Domain entities and protocols

Notes:
  - Environment vars are set BEFORE importing compliance_backend: the
    logger reads Settings at import time.
"""

import os
import sys
from pathlib import Path
from typing import List

import pytest

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("FAKE_LLM", "1")

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from compliance_backend.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from compliance_backend import container  # noqa: E402
from compliance_backend.domain.entities import (  # noqa: E402
    Article,
    LegalBasis,
    Requirement,
)
from compliance_backend.domain.jobs import IdentificationJobPayload  # noqa: E402
from compliance_backend.domain.value_objects import IntelligenceLevel  # noqa: E402

_CACHED_FACTORIES = (
    container.get_in_memory_catalog,
    container.get_legal_basis_repository,
    container.get_article_repository,
    container.get_requirement_repository,
    container.get_subject_catalog,
    container.get_identification_repository,
    container.get_article_classifier,
    container.get_redis_connection,
    container.get_identification_queue,
)


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Full pipeline with in-memory adapters"
    )


@pytest.fixture(autouse=True)
def _reset_singletons():
    """R: Each test starts with fresh settings and fresh in-memory adapters."""
    app_config.get_settings.cache_clear()
    for factory in _CACHED_FACTORIES:
        factory.cache_clear()
    yield
    app_config.get_settings.cache_clear()
    for factory in _CACHED_FACTORIES:
        factory.cache_clear()


# ============================================================================
# Test Data Factories
# ============================================================================


class CatalogFactory:
    """R: Factory for catalog entities with sensible defaults."""

    @staticmethod
    def article(
        article_id: int,
        legal_basis_id: int,
        *,
        name: str | None = None,
        description: str = "",
        order: int | None = None,
    ) -> Article:
        return Article(
            id=article_id,
            legal_basis_id=legal_basis_id,
            name=name or f"Artículo {article_id}",
            description=description,
            order=article_id if order is None else order,
        )

    @staticmethod
    def legal_basis(
        legal_basis_id: int,
        articles: List[Article] | None = None,
        *,
        name: str | None = None,
    ) -> LegalBasis:
        return LegalBasis(
            id=legal_basis_id,
            name=name or f"Ley {legal_basis_id}",
            abbreviation=f"L{legal_basis_id}",
            classification="Ley",
            jurisdiction="Federal",
            subject_id=1,
            articles=tuple(articles or ()),
        )

    @staticmethod
    def requirement(
        requirement_id: int,
        *,
        name: str | None = None,
        subject_id: int = 1,
        aspect_id: int = 10,
        mandatory_keywords: tuple[str, ...] = (),
        complementary_keywords: tuple[str, ...] = (),
    ) -> Requirement:
        return Requirement(
            id=requirement_id,
            name=name or f"Requerimiento {requirement_id}",
            subject_id=subject_id,
            aspect_id=aspect_id,
            mandatory_description="Debe cumplir",
            complementary_description="Puede complementar",
            mandatory_keywords=mandatory_keywords,
            complementary_keywords=complementary_keywords,
        )

    @staticmethod
    def payload(
        identification_id: int,
        legal_bases: List[LegalBasis],
        requirements: List[Requirement],
        *,
        intelligence_level: IntelligenceLevel = IntelligenceLevel.LOW,
    ) -> IdentificationJobPayload:
        return IdentificationJobPayload(
            identification_id=identification_id,
            legal_bases=tuple(legal_bases),
            requirements=tuple(requirements),
            intelligence_level=intelligence_level,
        )


@pytest.fixture
def catalog_factory() -> type[CatalogFactory]:
    """R: Provide CatalogFactory for tests."""
    return CatalogFactory


# ============================================================================
# Job Context Stub
# ============================================================================


class StubJobContext:
    """
    R: JobContext for the orchestrator without a broker.

    - progress: every reported value, in order
    - cancel_after: is_cancelled() returns True from that call number on
    """

    def __init__(
        self,
        payload: IdentificationJobPayload,
        *,
        job_id: str = "job-1",
        cancel_after: int | None = None,
    ) -> None:
        self._payload = payload
        self._id = job_id
        self._cancel_after = cancel_after
        self.cancel_checks = 0
        self.progress: List[int] = []

    @property
    def id(self) -> str:
        return self._id

    @property
    def payload(self) -> IdentificationJobPayload:
        return self._payload

    def report_progress(self, percent: int) -> None:
        self.progress.append(percent)

    def is_cancelled(self) -> bool:
        self.cancel_checks += 1
        return self._cancel_after is not None and self.cancel_checks > self._cancel_after


@pytest.fixture
def job_context_factory() -> type[StubJobContext]:
    """R: Provide StubJobContext for orchestrator tests."""
    return StubJobContext
