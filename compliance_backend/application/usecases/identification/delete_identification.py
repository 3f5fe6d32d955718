"""
===============================================================================
USE CASE: Delete Requirements Identification (single / batch)
===============================================================================

Business Goal:
    Borrar identificaciones (y en cascada sus vínculos) solo si ningún job
    pendiente trabaja sobre ellas.

Collaborators:
    - IdentificationRepository.find_by_ids / delete_by_ids
    - CheckPendingJobsUseCase (payload.identification_id)
===============================================================================
"""

from __future__ import annotations

from typing import Sequence

from ....domain.repositories import IdentificationRepository
from ....domain.value_objects import PendingEntityKind
from .check_pending_jobs import CheckPendingJobsUseCase
from .guarded_delete import GuardedDeleteUseCase


class DeleteIdentificationUseCase(GuardedDeleteUseCase):
    _resource = "Requirements Identification"
    _resource_plural = "Requirements Identifications"
    _kind = PendingEntityKind.IDENTIFICATION

    def __init__(
        self,
        identification_repository: IdentificationRepository,
        guard: CheckPendingJobsUseCase,
    ) -> None:
        super().__init__(guard)
        self._identifications = identification_repository

    def _lookup(self, ids: Sequence[int]) -> dict[int, tuple[str, int]]:
        return {i.id: (i.name, i.id) for i in self._identifications.find_by_ids(ids)}

    def _delete(self, ids: Sequence[int]) -> bool:
        return self._identifications.delete_by_ids(ids)
