"""
===============================================================================
TARJETA CRC — domain/jobs.py
===============================================================================

Módulo:
    Job de identificación: estados, payload (snapshot) y vista del job

Responsabilidades:
    - Definir los estados observables de un job y el subconjunto "pendiente".
    - Definir el payload que viaja por la cola: una foto (snapshot) de las
      bases legales con sus artículos y de los requerimientos al momento de
      encolar. Ediciones posteriores al catálogo NO afectan al job en vuelo.
    - Serializar / deserializar el payload a tipos JSON (el broker no
      conoce dataclasses).
    - Resolver si un job referencia una entidad (usado por el guard).

Colaboradores:
    - domain.entities (LegalBasis, Article, Requirement)
    - infrastructure.queue.* (persisten el payload como dict)
    - application.usecases.identification.check_pending_jobs
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

from .entities import Article, LegalBasis, Requirement
from .value_objects import IntelligenceLevel, PendingEntityKind


class JobState(str, Enum):
    """Estados observables de un job (independientes del broker)."""

    WAITING = "waiting"
    ACTIVE = "active"
    DELAYED = "delayed"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_JOB_STATES


PENDING_JOB_STATES: frozenset[JobState] = frozenset(
    {JobState.WAITING, JobState.PAUSED, JobState.ACTIVE, JobState.DELAYED}
)

TERMINAL_JOB_STATES: frozenset[JobState] = frozenset(
    {JobState.COMPLETED, JobState.FAILED}
)


@dataclass(frozen=True)
class IdentificationJobPayload:
    """
    Snapshot inmutable que consume el orquestador.

    total_tasks:
        Σ_{base legal} len(artículos) × len(requerimientos)
    """

    identification_id: int
    legal_bases: tuple[LegalBasis, ...]
    requirements: tuple[Requirement, ...]
    intelligence_level: IntelligenceLevel = IntelligenceLevel.LOW
    user_id: int | None = None

    @property
    def total_tasks(self) -> int:
        articles = sum(len(lb.articles) for lb in self.legal_bases)
        return articles * len(self.requirements)

    @property
    def legal_basis_ids(self) -> list[int]:
        return [lb.id for lb in self.legal_bases]

    @property
    def requirement_ids(self) -> list[int]:
        return [r.id for r in self.requirements]

    def references(self, kind: PendingEntityKind, entity_id: int) -> bool:
        """
        True si el job toca la entidad.

        Artículos se resuelven antes a su base legal (ver guard), por eso
        ARTICLE compara contra los artículos del snapshot solo como respaldo.
        """
        if kind is PendingEntityKind.LEGAL_BASIS:
            return entity_id in self.legal_basis_ids
        if kind is PendingEntityKind.REQUIREMENT:
            return entity_id in self.requirement_ids
        if kind is PendingEntityKind.IDENTIFICATION:
            return entity_id == self.identification_id
        if kind is PendingEntityKind.ARTICLE:
            return any(
                article.id == entity_id
                for lb in self.legal_bases
                for article in lb.articles
            )
        return False

    # =========================================================================
    # Serialización (broker-safe)
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        return {
            "identification_id": self.identification_id,
            "intelligence_level": self.intelligence_level.value,
            "user_id": self.user_id,
            "legal_bases": [_legal_basis_to_dict(lb) for lb in self.legal_bases],
            "requirements": [_requirement_to_dict(r) for r in self.requirements],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IdentificationJobPayload":
        """
        Reconstruye el payload desde el dict guardado en la cola.

        Raises:
            KeyError / ValueError: payload corrupto (el worker lo registra como fallo).
        """
        return cls(
            identification_id=int(data["identification_id"]),
            intelligence_level=IntelligenceLevel.parse(data.get("intelligence_level")),
            user_id=data.get("user_id"),
            legal_bases=tuple(
                _legal_basis_from_dict(item) for item in data.get("legal_bases", [])
            ),
            requirements=tuple(
                _requirement_from_dict(item) for item in data.get("requirements", [])
            ),
        )


@dataclass(frozen=True)
class Job:
    """
    Vista de un job tal como la expone el puerto de cola.

    payload puede ser None si el broker devolvió datos ilegibles.
    """

    id: str
    state: JobState
    progress: int = 0
    payload: IdentificationJobPayload | None = None
    failed_reason: str | None = None
    result: dict[str, Any] | None = None


# -----------------------------------------------------------------------------
# Helpers privados de serialización
# -----------------------------------------------------------------------------


def _article_to_dict(article: Article) -> dict[str, Any]:
    return {
        "id": article.id,
        "legal_basis_id": article.legal_basis_id,
        "name": article.name,
        "description": article.description,
        "order": article.order,
    }


def _article_from_dict(data: dict[str, Any]) -> Article:
    return Article(
        id=int(data["id"]),
        legal_basis_id=int(data["legal_basis_id"]),
        name=data.get("name") or "",
        description=data.get("description") or "",
        order=int(data.get("order") or 0),
    )


def _legal_basis_to_dict(lb: LegalBasis) -> dict[str, Any]:
    return {
        "id": lb.id,
        "name": lb.name,
        "abbreviation": lb.abbreviation,
        "classification": lb.classification,
        "jurisdiction": lb.jurisdiction,
        "state": lb.state,
        "municipality": lb.municipality,
        "last_reform": lb.last_reform.isoformat() if lb.last_reform else None,
        "subject_id": lb.subject_id,
        "articles": [_article_to_dict(a) for a in lb.articles],
    }


def _legal_basis_from_dict(data: dict[str, Any]) -> LegalBasis:
    last_reform = data.get("last_reform")
    return LegalBasis(
        id=int(data["id"]),
        name=data.get("name") or "",
        abbreviation=data.get("abbreviation") or "",
        classification=data.get("classification") or "",
        jurisdiction=data.get("jurisdiction") or "",
        state=data.get("state"),
        municipality=data.get("municipality"),
        last_reform=date.fromisoformat(last_reform) if last_reform else None,
        subject_id=data.get("subject_id"),
        articles=tuple(_article_from_dict(a) for a in data.get("articles", [])),
    )


def _requirement_to_dict(requirement: Requirement) -> dict[str, Any]:
    return {
        "id": requirement.id,
        "name": requirement.name,
        "subject_id": requirement.subject_id,
        "aspect_id": requirement.aspect_id,
        "requirement_number": requirement.requirement_number,
        "mandatory_description": requirement.mandatory_description,
        "complementary_description": requirement.complementary_description,
        "mandatory_sentences": requirement.mandatory_sentences,
        "complementary_sentences": requirement.complementary_sentences,
        "mandatory_keywords": list(requirement.mandatory_keywords),
        "complementary_keywords": list(requirement.complementary_keywords),
        "condition": requirement.condition,
        "evidence": requirement.evidence,
        "periodicity": requirement.periodicity,
        "jurisdiction": requirement.jurisdiction,
        "state": requirement.state,
        "municipality": requirement.municipality,
    }


def _requirement_from_dict(data: dict[str, Any]) -> Requirement:
    return Requirement(
        id=int(data["id"]),
        name=data.get("name") or "",
        subject_id=data.get("subject_id"),
        aspect_id=data.get("aspect_id"),
        requirement_number=data.get("requirement_number") or "",
        mandatory_description=data.get("mandatory_description") or "",
        complementary_description=data.get("complementary_description") or "",
        mandatory_sentences=data.get("mandatory_sentences") or "",
        complementary_sentences=data.get("complementary_sentences") or "",
        mandatory_keywords=tuple(data.get("mandatory_keywords") or ()),
        complementary_keywords=tuple(data.get("complementary_keywords") or ()),
        condition=data.get("condition") or "",
        evidence=data.get("evidence") or "",
        periodicity=data.get("periodicity") or "",
        jurisdiction=data.get("jurisdiction") or "",
        state=data.get("state"),
        municipality=data.get("municipality"),
    )
