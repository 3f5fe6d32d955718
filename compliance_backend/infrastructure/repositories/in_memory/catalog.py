"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/catalog.py
============================================================
Class: InMemoryCatalog (+ vistas por puerto)

Responsibilities:
  - Almacenar el catálogo legal en memoria (tests / local dev):
      bases legales, artículos, requerimientos, materias y aspectos.
  - Implementar los puertos de lectura / baja:
      LegalBasisRepository, ArticleRepository, RequirementRepository,
      SubjectAspectCatalog.
  - Sembrar datos desde tests (`add_*`).

Collaborators:
  - domain.entities (LegalBasis, Article, Requirement)
  - domain.repositories (contratos)

Constraints / Notes:
  - Thread-safe: acceso protegido por un Lock compartido.
  - Ordering determinístico (por id; artículos por `order`, luego id).
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Dict, List, Sequence, Set

from ....domain.entities import Article, LegalBasis, Requirement


class InMemoryCatalog:
    """
    "Tablas" del catálogo en memoria.

    Las bases legales se guardan sin artículos; los artículos viven en su
    propia tabla y se cuelgan por legal_basis_id.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._legal_bases: Dict[int, LegalBasis] = {}
        self._articles: Dict[int, Article] = {}
        self._requirements: Dict[int, Requirement] = {}
        self._subjects: Set[int] = set()
        self._aspects: Dict[int, int] = {}  # aspect_id -> subject_id

    # =========================================================
    # Seed (tests / dev)
    # =========================================================
    def add_subject(self, subject_id: int, aspect_ids: Sequence[int] = ()) -> None:
        with self._lock:
            self._subjects.add(subject_id)
            for aspect_id in aspect_ids:
                self._aspects[aspect_id] = subject_id

    def add_legal_basis(self, legal_basis: LegalBasis) -> LegalBasis:
        with self._lock:
            for article in legal_basis.articles:
                self._articles[article.id] = article
            stored = replace(legal_basis, articles=())
            self._legal_bases[legal_basis.id] = stored
            return stored

    def add_article(self, article: Article) -> Article:
        with self._lock:
            self._articles[article.id] = article
            return article

    def add_requirement(self, requirement: Requirement) -> Requirement:
        with self._lock:
            self._requirements[requirement.id] = requirement
            return requirement

    # =========================================================
    # Vistas por puerto
    # =========================================================
    @property
    def legal_bases(self) -> "InMemoryLegalBasisRepository":
        return InMemoryLegalBasisRepository(self)

    @property
    def articles(self) -> "InMemoryArticleRepository":
        return InMemoryArticleRepository(self)

    @property
    def requirements(self) -> "InMemoryRequirementRepository":
        return InMemoryRequirementRepository(self)

    @property
    def subjects(self) -> "InMemorySubjectAspectCatalog":
        return InMemorySubjectAspectCatalog(self)


class InMemoryLegalBasisRepository:
    def __init__(self, catalog: InMemoryCatalog) -> None:
        self._c = catalog

    def find_by_ids(self, ids: Sequence[int]) -> List[LegalBasis]:
        with self._c._lock:
            return [self._c._legal_bases[i] for i in sorted(set(ids)) if i in self._c._legal_bases]

    def find_by_id(self, legal_basis_id: int) -> LegalBasis | None:
        with self._c._lock:
            return self._c._legal_bases.get(legal_basis_id)

    def delete_by_ids(self, ids: Sequence[int]) -> bool:
        with self._c._lock:
            deleted = False
            for legal_basis_id in ids:
                if self._c._legal_bases.pop(legal_basis_id, None) is not None:
                    deleted = True
                    # R: cascada como en Postgres (FK ON DELETE CASCADE).
                    for article_id in [
                        a.id
                        for a in self._c._articles.values()
                        if a.legal_basis_id == legal_basis_id
                    ]:
                        del self._c._articles[article_id]
            return deleted


class InMemoryArticleRepository:
    def __init__(self, catalog: InMemoryCatalog) -> None:
        self._c = catalog

    def find_by_legal_basis_id(self, legal_basis_id: int) -> List[Article]:
        with self._c._lock:
            items = [
                a for a in self._c._articles.values() if a.legal_basis_id == legal_basis_id
            ]
        return sorted(items, key=lambda a: (a.order, a.id))

    def find_by_id(self, article_id: int) -> Article | None:
        with self._c._lock:
            return self._c._articles.get(article_id)

    def find_by_ids(self, ids: Sequence[int]) -> List[Article]:
        with self._c._lock:
            return [self._c._articles[i] for i in sorted(set(ids)) if i in self._c._articles]

    def delete_by_ids(self, ids: Sequence[int]) -> bool:
        with self._c._lock:
            removed = [self._c._articles.pop(i, None) for i in ids]
            return any(r is not None for r in removed)


class InMemoryRequirementRepository:
    def __init__(self, catalog: InMemoryCatalog) -> None:
        self._c = catalog

    def find_by_ids(self, ids: Sequence[int]) -> List[Requirement]:
        with self._c._lock:
            return [
                self._c._requirements[i]
                for i in sorted(set(ids))
                if i in self._c._requirements
            ]

    def find_by_subject_and_aspects(
        self, subject_id: int, aspect_ids: Sequence[int]
    ) -> List[Requirement]:
        wanted = set(aspect_ids)
        with self._c._lock:
            items = [
                r
                for r in self._c._requirements.values()
                if r.subject_id == subject_id and r.aspect_id in wanted
            ]
        return sorted(items, key=lambda r: r.id)

    def delete_by_ids(self, ids: Sequence[int]) -> bool:
        with self._c._lock:
            removed = [self._c._requirements.pop(i, None) for i in ids]
            return any(r is not None for r in removed)


class InMemorySubjectAspectCatalog:
    def __init__(self, catalog: InMemoryCatalog) -> None:
        self._c = catalog

    def subject_exists(self, subject_id: int) -> bool:
        with self._c._lock:
            return subject_id in self._c._subjects

    def find_existing_aspect_ids(
        self, subject_id: int, aspect_ids: Sequence[int]
    ) -> List[int]:
        with self._c._lock:
            return [
                a for a in dict.fromkeys(aspect_ids) if self._c._aspects.get(a) == subject_id
            ]
