"""
===============================================================================
TARJETA CRC — domain/repositories.py
===============================================================================

Módulo:
    Puertos de Persistencia (Protocols)

Responsabilidades:
    - Definir contratos de lectura del catálogo legal (bases legales,
      artículos, requerimientos, materias/aspectos).
    - Definir el contrato de escritura de identificaciones y sus vínculos.
    - Mantener el dominio independiente de Postgres.

Colaboradores:
    - infrastructure/repositories/postgres/*: implementaciones productivas.
    - infrastructure/repositories/in_memory/*: tests y desarrollo local.
    - application/usecases/identification/*: consumen estos puertos.

Reglas:
    - SOLO interfaces: nada de implementación.
    - Los métodos de escritura devuelven bool (False = no aplicado).
===============================================================================
"""

from __future__ import annotations

from typing import Protocol, Sequence

from .entities import (
    Article,
    ArticleLink,
    Identification,
    IdentificationRequirement,
    LegalBasis,
    Requirement,
)
from .value_objects import ArticleClassification, IdentificationStatus


class LegalBasisRepository(Protocol):
    """Lectura (y baja) de bases legales."""

    def find_by_ids(self, ids: Sequence[int]) -> list[LegalBasis]:
        """Bases existentes entre `ids` (sin artículos). Ids faltantes se omiten."""
        ...

    def find_by_id(self, legal_basis_id: int) -> LegalBasis | None: ...

    def delete_by_ids(self, ids: Sequence[int]) -> bool: ...


class ArticleRepository(Protocol):
    """Lectura (y baja) de artículos."""

    def find_by_legal_basis_id(self, legal_basis_id: int) -> list[Article]:
        """Artículos de la base, ordenados por `order`."""
        ...

    def find_by_id(self, article_id: int) -> Article | None: ...

    def find_by_ids(self, ids: Sequence[int]) -> list[Article]: ...

    def delete_by_ids(self, ids: Sequence[int]) -> bool: ...


class RequirementRepository(Protocol):
    """Lectura (y baja) de requerimientos."""

    def find_by_ids(self, ids: Sequence[int]) -> list[Requirement]: ...

    def find_by_subject_and_aspects(
        self, subject_id: int, aspect_ids: Sequence[int]
    ) -> list[Requirement]: ...

    def delete_by_ids(self, ids: Sequence[int]) -> bool: ...


class SubjectAspectCatalog(Protocol):
    """Verificación de existencia de materias y aspectos."""

    def subject_exists(self, subject_id: int) -> bool: ...

    def find_existing_aspect_ids(
        self, subject_id: int, aspect_ids: Sequence[int]
    ) -> list[int]:
        """Aspectos de `aspect_ids` que existen bajo la materia."""
        ...


class IdentificationRepository(Protocol):
    """Identificaciones + vínculos (a), (b) y (c)."""

    # ------------------------------------------------------------------
    # Identificación
    # ------------------------------------------------------------------
    def create(
        self,
        *,
        name: str,
        description: str | None,
        user_id: int | None,
        status: IdentificationStatus = IdentificationStatus.ACTIVE,
    ) -> Identification: ...

    def find_by_id(self, identification_id: int) -> Identification | None: ...

    def find_by_ids(self, ids: Sequence[int]) -> list[Identification]: ...

    def exists_by_name(self, name: str) -> bool: ...

    def exists_by_name_excluding_id(self, name: str, identification_id: int) -> bool: ...

    def update(
        self,
        identification_id: int,
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> Identification | None: ...

    def update_status(
        self, identification_id: int, status: IdentificationStatus
    ) -> bool: ...

    def delete_by_ids(self, ids: Sequence[int]) -> bool: ...

    # ------------------------------------------------------------------
    # Vínculos
    # ------------------------------------------------------------------
    def create_requirement_record(
        self, identification_id: int, requirement: Requirement
    ) -> IdentificationRequirement | None: ...

    def link_legal_basis(
        self, identification_requirement_id: int, legal_basis_id: int
    ) -> bool: ...

    def link_article(
        self,
        identification_requirement_id: int,
        legal_basis_id: int,
        article_id: int,
        classification: ArticleClassification,
    ) -> bool:
        """
        Idempotente para la misma etiqueta; False si el triple ya existe
        con otra clasificación.
        """
        ...

    def list_article_links(self, identification_id: int) -> list[ArticleLink]: ...
