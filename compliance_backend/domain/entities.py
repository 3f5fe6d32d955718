"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Entidades del dominio (catálogo legal + identificaciones)

Responsabilidades:
    - Representar bases legales, artículos y requerimientos tal como los ve
      el pipeline (los catálogos completos viven fuera de este servicio).
    - Representar la identificación y sus tres sabores de vínculo:
        (a) identificación-requerimiento ↔ base legal
        (b) identificación ↔ requerimiento (registro con id propio)
        (c) identificación-requerimiento ↔ base legal ↔ artículo + clasificación

Colaboradores:
    - domain.value_objects
    - domain.jobs (snapshots del payload)
    - domain.repositories (contratos de persistencia)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from .value_objects import ArticleClassification, IdentificationStatus


@dataclass(frozen=True)
class Article:
    """Artículo de una base legal. `order` define la secuencia dentro de la base."""

    id: int
    legal_basis_id: int
    name: str
    description: str = ""
    order: int = 0


@dataclass(frozen=True)
class LegalBasis:
    """
    Base legal (ley, reglamento, norma).

    Notas:
      - jurisdiction: Federal | Estatal | Local
      - state / municipality solo aplican a Estatal / Local
      - articles: tupla ordenada (vacía si no se cargaron)
    """

    id: int
    name: str
    abbreviation: str = ""
    classification: str = ""
    jurisdiction: str = ""
    state: str | None = None
    municipality: str | None = None
    last_reform: date | None = None
    subject_id: int | None = None
    articles: tuple[Article, ...] = ()


@dataclass(frozen=True)
class Requirement:
    """Requerimiento regulatorio a contrastar contra cada artículo."""

    id: int
    name: str
    subject_id: int | None = None
    aspect_id: int | None = None
    requirement_number: str = ""
    mandatory_description: str = ""
    complementary_description: str = ""
    mandatory_sentences: str = ""
    complementary_sentences: str = ""
    mandatory_keywords: tuple[str, ...] = ()
    complementary_keywords: tuple[str, ...] = ()
    condition: str = ""
    evidence: str = ""
    periodicity: str = ""
    jurisdiction: str = ""
    state: str | None = None
    municipality: str | None = None


@dataclass
class Identification:
    """Corrida nombrada de identificación de requerimientos."""

    id: int
    name: str
    description: str | None = None
    status: IdentificationStatus = IdentificationStatus.ACTIVE
    user_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class IdentificationRequirement:
    """Registro del requerimiento dentro de una identificación (vínculo b)."""

    id: int
    identification_id: int
    requirement_id: int
    requirement_name: str


@dataclass(frozen=True)
class LegalBasisLink:
    """Vínculo (a): registro de requerimiento ↔ base legal."""

    identification_requirement_id: int
    legal_basis_id: int


@dataclass(frozen=True)
class ArticleLink:
    """
    Vínculo (c): registro de requerimiento ↔ base legal ↔ artículo.

    A lo sumo una fila por (identification_requirement_id, legal_basis_id, article_id).
    """

    identification_requirement_id: int
    legal_basis_id: int
    article_id: int
    classification: ArticleClassification

    @property
    def key(self) -> tuple[int, int, int]:
        return (
            self.identification_requirement_id,
            self.legal_basis_id,
            self.article_id,
        )


@dataclass
class SkippedArticle:
    """Triple que el clasificador no pudo resolver (se reporta, no se vincula)."""

    requirement_id: int
    legal_basis_id: int
    article_id: int
    reason: str
    retries_exhausted: bool = False

    def to_dict(self) -> dict:
        return {
            "requirement_id": self.requirement_id,
            "legal_basis_id": self.legal_basis_id,
            "article_id": self.article_id,
            "reason": self.reason,
            "retries_exhausted": self.retries_exhausted,
        }
