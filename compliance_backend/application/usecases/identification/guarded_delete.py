"""
===============================================================================
GUARDED DELETE (Shared Template for Delete Use Cases)
===============================================================================

Name:
    GuardedDeleteUseCase (base)

Business Goal:
    Unificar las bajas (simple y batch) de entidades que un job de
    identificación puede estar usando: nada se borra si algún id no existe
    o si algún job pendiente lo referencia.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    GuardedDeleteUseCase

Responsibilities:
    - Resolver existencia (NOT_FOUND; batch con not_found_ids).
    - Consultar el guard con un solo escaneo (CONFLICT con job bloqueante).
    - Borrar todo junto cuando no hay bloqueos.

Collaborators:
    - CheckPendingJobsUseCase.find_blocking_jobs
    - Subclases: proveen lookup / clave de guard / borrado.

Notas:
    - Subclases definen `_resource`, `_resource_plural` y `_kind`.
===============================================================================
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Sequence

from ....domain.value_objects import PendingEntityKind
from .check_pending_jobs import CheckPendingJobsUseCase
from .identification_results import (
    DeleteResult,
    IdentificationError,
    IdentificationErrorCode,
)

logger = logging.getLogger(__name__)


class GuardedDeleteUseCase(ABC):
    """Template: existencia -> guard -> delete."""

    _resource: str = ""
    _resource_plural: str = ""
    _kind: PendingEntityKind = PendingEntityKind.LEGAL_BASIS

    def __init__(self, guard: CheckPendingJobsUseCase) -> None:
        self._guard = guard

    # =========================================================================
    # Hooks
    # =========================================================================

    @abstractmethod
    def _lookup(self, ids: Sequence[int]) -> dict[int, tuple[str, int]]:
        """
        id -> (nombre, id a buscar en los payloads) de las entidades existentes.

        El segundo valor es el mismo id salvo en artículos (base legal padre).
        """

    @abstractmethod
    def _delete(self, ids: Sequence[int]) -> bool:
        """Borra todas las entidades; False si alguna ya no existía."""

    # =========================================================================
    # API
    # =========================================================================

    def execute(self, entity_id: int) -> DeleteResult:
        found = self._lookup([entity_id])
        if entity_id not in found:
            return self._error(
                IdentificationErrorCode.NOT_FOUND, f"{self._resource} not found"
            )

        blocked = self._blocked([entity_id], found)
        if blocked:
            return self._error(
                IdentificationErrorCode.CONFLICT,
                f"Cannot delete: There is an active job for this {self._resource}",
                details={"job_id": blocked[0]["job_id"]},
            )

        return self._finish([entity_id])

    def execute_batch(self, entity_ids: Sequence[int]) -> DeleteResult:
        ids = list(dict.fromkeys(entity_ids or ()))
        if not ids:
            return self._error(
                IdentificationErrorCode.VALIDATION_ERROR,
                f"Invalid input: {self._resource_plural} ids must be a non-empty list",
            )

        found = self._lookup(ids)
        not_found_ids = [i for i in ids if i not in found]
        if not_found_ids:
            return self._error(
                IdentificationErrorCode.NOT_FOUND,
                f"Some {self._resource_plural} were not found",
                details={"not_found_ids": not_found_ids},
            )

        blocked = self._blocked(ids, found)
        if blocked:
            return self._error(
                IdentificationErrorCode.CONFLICT,
                f"Cannot delete: Some {self._resource_plural} have active jobs",
                details={"blocked": blocked},
            )

        return self._finish(ids)

    # =========================================================================
    # Helpers privados
    # =========================================================================

    def _blocked(
        self, ids: Sequence[int], found: dict[int, tuple[str, int]]
    ) -> list[dict]:
        blocking = self._guard.find_blocking_jobs(
            self._kind, [found[i][1] for i in ids]
        )
        return [
            {"id": i, "name": found[i][0], "job_id": blocking[found[i][1]]}
            for i in ids
            if found[i][1] in blocking
        ]

    def _finish(self, ids: Sequence[int]) -> DeleteResult:
        if not self._delete(ids):
            # Race: otra baja ganó entre el lookup y el delete.
            return self._error(
                IdentificationErrorCode.NOT_FOUND, f"{self._resource} not found"
            )
        logger.info(
            "Entidades eliminadas",
            extra={"resource": self._resource, "ids": list(ids)},
        )
        return DeleteResult(deleted=True)

    def _error(
        self,
        code: IdentificationErrorCode,
        message: str,
        *,
        details: dict | None = None,
    ) -> DeleteResult:
        return DeleteResult(
            deleted=False,
            error=IdentificationError(
                code=code, message=message, resource=self._resource, details=details
            ),
        )
