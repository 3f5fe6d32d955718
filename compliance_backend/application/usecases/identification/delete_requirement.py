"""
===============================================================================
USE CASE: Delete Requirement (single / batch)
===============================================================================

Business Goal:
    Borrar requerimientos solo si ningún job pendiente los tiene en su
    snapshot. Cuando el job termina (completed / failed), la baja procede.

Collaborators:
    - RequirementRepository.find_by_ids / delete_by_ids
    - CheckPendingJobsUseCase (kind = requirement)
===============================================================================
"""

from __future__ import annotations

from typing import Sequence

from ....domain.repositories import RequirementRepository
from ....domain.value_objects import PendingEntityKind
from .check_pending_jobs import CheckPendingJobsUseCase
from .guarded_delete import GuardedDeleteUseCase


class DeleteRequirementUseCase(GuardedDeleteUseCase):
    _resource = "Requirement"
    _resource_plural = "Requirements"
    _kind = PendingEntityKind.REQUIREMENT

    def __init__(
        self,
        requirement_repository: RequirementRepository,
        guard: CheckPendingJobsUseCase,
    ) -> None:
        super().__init__(guard)
        self._requirements = requirement_repository

    def _lookup(self, ids: Sequence[int]) -> dict[int, tuple[str, int]]:
        return {r.id: (r.name, r.id) for r in self._requirements.find_by_ids(ids)}

    def _delete(self, ids: Sequence[int]) -> bool:
        return self._requirements.delete_by_ids(ids)
