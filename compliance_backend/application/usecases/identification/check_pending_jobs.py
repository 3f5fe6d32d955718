"""
===============================================================================
USE CASE: Check Pending Identification Jobs (Pending-Job Guard)
===============================================================================

Name:
    Check Pending Jobs Use Case

Business Goal:
    Impedir que se borre una entidad que un job en vuelo todavía usa.
    Reemplaza una FK imposible entre la base relacional y la cola.

Why (Context / Intención):
    - La cola vive fuera de la base: no hay constraint transaccional.
    - Escaneo lineal de los payloads pendientes (best-effort, O(jobs)).

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    CheckPendingJobsUseCase

Responsibilities:
    - Verificar existencia de la entidad (NOT_FOUND).
    - Leer jobs en {waiting, paused, active, delayed}.
    - Resolver artículo -> base legal padre.
    - Devolver el primer job que referencia la entidad.
    - `find_blocking_jobs`: misma búsqueda para N ids con un solo escaneo
      (usado por las bajas batch).

Collaborators:
    - IdentificationJobQueue.get_jobs_by_states
    - LegalBasisRepository / ArticleRepository / RequirementRepository /
      IdentificationRepository (existencia)
===============================================================================
"""

from __future__ import annotations

from typing import Final, Sequence

from ....domain.jobs import PENDING_JOB_STATES, Job, JobState
from ....domain.repositories import (
    ArticleRepository,
    IdentificationRepository,
    LegalBasisRepository,
    RequirementRepository,
)
from ....domain.services import IdentificationJobQueue
from ....domain.value_objects import PendingEntityKind
from .identification_results import (
    IdentificationError,
    IdentificationErrorCode,
    PendingJobsResult,
)

# Orden estable para la consulta (no cambia la semántica).
_PENDING_STATES: Final[tuple[JobState, ...]] = (
    JobState.WAITING,
    JobState.PAUSED,
    JobState.ACTIVE,
    JobState.DELAYED,
)

_RESOURCE_BY_KIND: Final[dict[PendingEntityKind, str]] = {
    PendingEntityKind.LEGAL_BASIS: "LegalBasis",
    PendingEntityKind.ARTICLE: "Article",
    PendingEntityKind.REQUIREMENT: "Requirement",
    PendingEntityKind.IDENTIFICATION: "Identification",
}


class CheckPendingJobsUseCase:
    """Use Case (Query): ¿hay un job pendiente que referencia la entidad?"""

    def __init__(
        self,
        *,
        job_queue: IdentificationJobQueue,
        legal_basis_repository: LegalBasisRepository,
        article_repository: ArticleRepository,
        requirement_repository: RequirementRepository,
        identification_repository: IdentificationRepository,
    ) -> None:
        self._queue = job_queue
        self._legal_bases = legal_basis_repository
        self._articles = article_repository
        self._requirements = requirement_repository
        self._identifications = identification_repository

    def execute(self, kind: PendingEntityKind, entity_id: int) -> PendingJobsResult:
        kind = PendingEntityKind(kind)
        scan_kind, scan_id = kind, entity_id

        if kind is PendingEntityKind.ARTICLE:
            article = self._articles.find_by_id(entity_id)
            if article is None:
                return self._not_found(kind)
            scan_kind, scan_id = PendingEntityKind.LEGAL_BASIS, article.legal_basis_id
        elif not self._exists(kind, entity_id):
            return self._not_found(kind)

        blocking = self._scan(scan_kind, [scan_id])
        job_id = blocking.get(scan_id)
        return PendingJobsResult(has_pending_jobs=job_id is not None, job_id=job_id)

    def find_blocking_jobs(
        self, kind: PendingEntityKind, entity_ids: Sequence[int]
    ) -> dict[int, str]:
        """
        entity_id -> job_id del primer job pendiente que lo referencia.

        No valida existencia: el caller ya resolvió las entidades.
        Para artículos, el caller debe pasar ids de base legal (ver DeleteArticle).
        """
        return self._scan(PendingEntityKind(kind), entity_ids)

    # =========================================================================
    # Helpers privados
    # =========================================================================

    def _scan(
        self, kind: PendingEntityKind, entity_ids: Sequence[int]
    ) -> dict[int, str]:
        wanted = list(dict.fromkeys(entity_ids))
        if not wanted:
            return {}
        jobs = self._queue.get_jobs_by_states(list(_PENDING_STATES))
        blocking: dict[int, str] = {}
        for job in self._pending_only(jobs):
            for entity_id in wanted:
                if entity_id not in blocking and job.payload.references(kind, entity_id):
                    blocking[entity_id] = job.id
        return blocking

    @staticmethod
    def _pending_only(jobs: Sequence[Job]) -> list[Job]:
        return [j for j in jobs if j.state in PENDING_JOB_STATES and j.payload is not None]

    def _exists(self, kind: PendingEntityKind, entity_id: int) -> bool:
        if kind is PendingEntityKind.LEGAL_BASIS:
            return self._legal_bases.find_by_id(entity_id) is not None
        if kind is PendingEntityKind.REQUIREMENT:
            return bool(self._requirements.find_by_ids([entity_id]))
        return self._identifications.find_by_id(entity_id) is not None

    @staticmethod
    def _not_found(kind: PendingEntityKind) -> PendingJobsResult:
        resource = _RESOURCE_BY_KIND[kind]
        return PendingJobsResult(
            error=IdentificationError(
                code=IdentificationErrorCode.NOT_FOUND,
                message=f"{resource} not found",
                resource=resource,
            )
        )
