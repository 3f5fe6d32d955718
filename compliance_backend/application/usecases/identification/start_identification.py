"""
===============================================================================
USE CASE: Start Requirements Identification (Submission)
===============================================================================

Name:
    Start Identification Use Case

Business Goal:
    Aceptar una solicitud de identificación, crear la Identification (Active)
    y encolar un job con el snapshot completo de bases legales, artículos y
    requerimientos. Nunca espera a que el job corra.

Why (Context / Intención):
    - El worker no vuelve a leer el catálogo para armar el trabajo: recibe
      la foto tomada acá (solo re-valida existencia).
    - Los errores de negocio (nombre duplicado, ids inexistentes) se
      devuelven de forma síncrona, antes de crear nada.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    StartIdentificationUseCase

Responsibilities:
    - Validar input (nombre, listas no vacías, nivel de inteligencia).
    - Verificar unicidad del nombre y existencia de bases / materia / aspectos.
    - Resolver requerimientos por materia + aspectos.
    - Crear la Identification y encolar el job.
    - Si el encolado falla: Identification -> Failed + SERVICE_UNAVAILABLE.

Collaborators:
    - LegalBasisRepository / ArticleRepository / RequirementRepository
    - SubjectAspectCatalog / IdentificationRepository
    - IdentificationJobQueue

-------------------------------------------------------------------------------
ERROR MAPPING
-------------------------------------------------------------------------------
    - VALIDATION_ERROR: input inválido / base legal sin artículos
    - CONFLICT: nombre de identificación ya existente
    - NOT_FOUND: bases legales, materia, aspectos o requerimientos inexistentes
    - SERVICE_UNAVAILABLE: no se pudo encolar
===============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Final, Sequence

from ....domain.entities import LegalBasis
from ....domain.jobs import IdentificationJobPayload
from ....domain.repositories import (
    ArticleRepository,
    IdentificationRepository,
    LegalBasisRepository,
    RequirementRepository,
    SubjectAspectCatalog,
)
from ....domain.services import IdentificationJobQueue
from ....domain.value_objects import IdentificationStatus, IntelligenceLevel
from .identification_results import (
    IdentificationError,
    IdentificationErrorCode,
    StartIdentificationResult,
)

logger = logging.getLogger(__name__)

_RESOURCE_IDENTIFICATION: Final[str] = "Identification"

_MSG_NAME_REQUIRED: Final[str] = "Identification name is required"
_MSG_LEGAL_BASIS_REQUIRED: Final[str] = "At least one legal basis is required"
_MSG_ASPECTS_REQUIRED: Final[str] = "At least one aspect is required"
_MSG_NAME_EXISTS: Final[str] = (
    "A Requirements Identification with this name already exists"
)
_MSG_LEGAL_BASIS_NOT_FOUND: Final[str] = "LegalBasis not found for IDs"
_MSG_NO_ARTICLES: Final[str] = "Some LegalBasis not have associated articles"
_MSG_SUBJECT_NOT_FOUND: Final[str] = "Subject not found"
_MSG_ASPECTS_NOT_FOUND: Final[str] = "Aspects not found for IDs"
_MSG_NO_REQUIREMENTS: Final[str] = (
    "No requirements found for the selected subject and aspects"
)
_MSG_ENQUEUE_FAILED: Final[str] = "Identification job could not be enqueued"


@dataclass(frozen=True)
class StartIdentificationInput:
    """
    DTO de entrada (la capa HTTP ya autenticó al usuario).

    intelligence_level:
        "High" | "Low" | None (None -> Low)
    """

    name: str
    legal_basis_ids: Sequence[int]
    subject_id: int
    aspect_ids: Sequence[int]
    description: str | None = None
    intelligence_level: str | IntelligenceLevel | None = None
    user_id: int | None = None


class StartIdentificationUseCase:
    """Use Case (Command): crea la identificación y encola su job."""

    def __init__(
        self,
        *,
        legal_basis_repository: LegalBasisRepository,
        article_repository: ArticleRepository,
        requirement_repository: RequirementRepository,
        subject_catalog: SubjectAspectCatalog,
        identification_repository: IdentificationRepository,
        job_queue: IdentificationJobQueue,
    ) -> None:
        self._legal_bases = legal_basis_repository
        self._articles = article_repository
        self._requirements = requirement_repository
        self._subjects = subject_catalog
        self._identifications = identification_repository
        self._queue = job_queue

    def execute(self, input_data: StartIdentificationInput) -> StartIdentificationResult:
        # ---------------------------------------------------------------------
        # 1) Validación de input.
        # ---------------------------------------------------------------------
        name = (input_data.name or "").strip()
        if not name:
            return self._error(IdentificationErrorCode.VALIDATION_ERROR, _MSG_NAME_REQUIRED)
        legal_basis_ids = list(dict.fromkeys(input_data.legal_basis_ids or ()))
        if not legal_basis_ids:
            return self._error(
                IdentificationErrorCode.VALIDATION_ERROR, _MSG_LEGAL_BASIS_REQUIRED
            )
        aspect_ids = list(dict.fromkeys(input_data.aspect_ids or ()))
        if not aspect_ids:
            return self._error(
                IdentificationErrorCode.VALIDATION_ERROR, _MSG_ASPECTS_REQUIRED
            )
        try:
            intelligence_level = IntelligenceLevel.parse(input_data.intelligence_level)
        except ValueError as exc:
            return self._error(IdentificationErrorCode.VALIDATION_ERROR, str(exc))

        # ---------------------------------------------------------------------
        # 2) Unicidad del nombre.
        # ---------------------------------------------------------------------
        if self._identifications.exists_by_name(name):
            return self._error(IdentificationErrorCode.CONFLICT, _MSG_NAME_EXISTS)

        # ---------------------------------------------------------------------
        # 3) Bases legales + artículos (snapshot).
        # ---------------------------------------------------------------------
        found = {lb.id: lb for lb in self._legal_bases.find_by_ids(legal_basis_ids)}
        missing = [i for i in legal_basis_ids if i not in found]
        if missing:
            return self._error(
                IdentificationErrorCode.NOT_FOUND,
                _MSG_LEGAL_BASIS_NOT_FOUND,
                resource="LegalBasis",
                details={"not_found_ids": missing},
            )

        legal_bases: list[LegalBasis] = []
        for legal_basis_id in legal_basis_ids:
            articles = self._articles.find_by_legal_basis_id(legal_basis_id)
            if not articles:
                return self._error(
                    IdentificationErrorCode.VALIDATION_ERROR,
                    _MSG_NO_ARTICLES,
                    resource="LegalBasis",
                    details={"legal_basis_id": legal_basis_id},
                )
            legal_bases.append(replace(found[legal_basis_id], articles=tuple(articles)))

        # ---------------------------------------------------------------------
        # 4) Materia / aspectos / requerimientos.
        # ---------------------------------------------------------------------
        if not self._subjects.subject_exists(input_data.subject_id):
            return self._error(
                IdentificationErrorCode.NOT_FOUND, _MSG_SUBJECT_NOT_FOUND, resource="Subject"
            )
        existing_aspects = set(
            self._subjects.find_existing_aspect_ids(input_data.subject_id, aspect_ids)
        )
        missing_aspects = [i for i in aspect_ids if i not in existing_aspects]
        if missing_aspects:
            return self._error(
                IdentificationErrorCode.NOT_FOUND,
                _MSG_ASPECTS_NOT_FOUND,
                resource="Aspect",
                details={"not_found_ids": missing_aspects},
            )

        requirements = self._requirements.find_by_subject_and_aspects(
            input_data.subject_id, aspect_ids
        )
        if not requirements:
            return self._error(
                IdentificationErrorCode.NOT_FOUND,
                _MSG_NO_REQUIREMENTS,
                resource="Requirement",
            )

        # ---------------------------------------------------------------------
        # 5) Alta + encolado.
        # ---------------------------------------------------------------------
        description = (input_data.description or "").strip() or None
        identification = self._identifications.create(
            name=name,
            description=description,
            user_id=input_data.user_id,
        )

        payload = IdentificationJobPayload(
            identification_id=identification.id,
            legal_bases=tuple(legal_bases),
            requirements=tuple(requirements),
            intelligence_level=intelligence_level,
            user_id=input_data.user_id,
        )

        try:
            job_id = self._queue.enqueue(payload)
        except Exception:
            logger.exception(
                "No se pudo encolar la identificación",
                extra={"identification_id": identification.id},
            )
            self._identifications.update_status(
                identification.id, IdentificationStatus.FAILED
            )
            return self._error(
                IdentificationErrorCode.SERVICE_UNAVAILABLE, _MSG_ENQUEUE_FAILED
            )

        logger.info(
            "Identificación enviada",
            extra={
                "identification_id": identification.id,
                "job_id": job_id,
                "legal_bases": len(legal_bases),
                "requirements": len(requirements),
                "total_tasks": payload.total_tasks,
            },
        )
        return StartIdentificationResult(
            identification_id=identification.id, job_id=job_id
        )

    @staticmethod
    def _error(
        code: IdentificationErrorCode,
        message: str,
        *,
        resource: str = _RESOURCE_IDENTIFICATION,
        details: dict[str, Any] | None = None,
    ) -> StartIdentificationResult:
        return StartIdentificationResult(
            error=IdentificationError(
                code=code, message=message, resource=resource, details=details
            )
        )
