"""
===============================================================================
IDENTIFICATION USE CASE RESULTS (Shared Result / Error Models)
===============================================================================

Name:
    Identification Use Case Results

Business Goal:
    Proveer tipos consistentes de resultados y errores para los casos de uso
    del pipeline de identificación de requerimientos:
      - submission / status / cancel de jobs
      - guard de jobs pendientes
      - bajas protegidas y actualización de identificaciones

Why (Context / Intención):
    - Los use cases devuelven resultados tipados en lugar de propagar excepciones.
    - La capa HTTP (fuera de este servicio) mapea `code` a status codes.
    - `details` transporta datos estructurados (not_found_ids, bloqueos).

-------------------------------------------------------------------------------
CRC CARD (Module-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Component:
    identification_results models (module)

Responsibilities:
    - Definir IdentificationErrorCode como conjunto estable de categorías.
    - Definir IdentificationError como contrato mínimo de error.
    - Definir DTOs de resultados por caso de uso.

Collaborators:
    - domain.entities.Identification
    - domain.jobs.JobState
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List

from ....domain.entities import Identification, SkippedArticle
from ....domain.jobs import JobState


class IdentificationErrorCode(str, Enum):
    """
    Categorías de error para casos de uso de identificación.

    Códigos:
      - VALIDATION_ERROR: input inválido/incompleto.
      - NOT_FOUND: entidad referenciada inexistente.
      - CONFLICT: nombre duplicado, job terminal, baja bloqueada por job pendiente.
      - SERVICE_UNAVAILABLE: broker / infraestructura caída durante submission.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


@dataclass(frozen=True)
class IdentificationError:
    """
    Error de caso de uso.

    Campos:
      - code: categoría estable
      - message: mensaje humano
      - resource: recurso afectado ("Identification", "LegalBasis", "Job", ...)
      - details: datos estructurados opcionales (ids faltantes, jobs bloqueantes)
    """

    code: IdentificationErrorCode
    message: str
    resource: str | None = None
    details: dict[str, Any] | None = None


@dataclass
class StartIdentificationResult:
    """Resultado de submission: ids creados o error."""

    identification_id: int | None = None
    job_id: str | None = None
    error: IdentificationError | None = None


@dataclass
class IdentificationRunResult:
    """
    Resumen de una ejecución del orquestador (retorno del job).

    skipped:
        Solo se completa si `report_skipped_articles` está activo.
    """

    identification_id: int
    total_tasks: int
    processed_tasks: int = 0
    requirements_processed: int = 0
    obligatory_links: int = 0
    complementary_links: int = 0
    skipped: List[SkippedArticle] = field(default_factory=list)
    skipped_count: int = 0

    def to_dict(self, *, include_skipped: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "identification_id": self.identification_id,
            "total_tasks": self.total_tasks,
            "processed_tasks": self.processed_tasks,
            "requirements_processed": self.requirements_processed,
            "obligatory_links": self.obligatory_links,
            "complementary_links": self.complementary_links,
            "skipped_articles": self.skipped_count,
        }
        if include_skipped:
            data["skipped"] = [s.to_dict() for s in self.skipped]
        return data


@dataclass
class JobStatusResult:
    """
    Estado de un job para polling.

    status:
        processing | success | error | info
    """

    state: JobState | None = None
    status: str | None = None
    message: str | None = None
    progress: int | None = None
    failure: str | None = None
    result: dict[str, Any] | None = None
    error: IdentificationError | None = None


@dataclass
class CancelJobResult:
    canceled: bool = False
    error: IdentificationError | None = None


@dataclass
class PendingJobsResult:
    """Resultado del guard: hay job pendiente y cuál."""

    has_pending_jobs: bool = False
    job_id: str | None = None
    error: IdentificationError | None = None


@dataclass
class DeleteResult:
    """Resultado de bajas (simple o batch)."""

    deleted: bool = False
    error: IdentificationError | None = None


@dataclass
class UpdateIdentificationResult:
    identification: Identification | None = None
    error: IdentificationError | None = None
