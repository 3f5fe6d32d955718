"""
===============================================================================
USE CASE: Delete Legal Basis (single / batch)
===============================================================================

Business Goal:
    Borrar bases legales (y sus artículos) solo si ningún job pendiente
    las tiene en su snapshot.

Collaborators:
    - LegalBasisRepository.find_by_ids / delete_by_ids
    - CheckPendingJobsUseCase (kind = legal_basis)
===============================================================================
"""

from __future__ import annotations

from typing import Sequence

from ....domain.repositories import LegalBasisRepository
from ....domain.value_objects import PendingEntityKind
from .check_pending_jobs import CheckPendingJobsUseCase
from .guarded_delete import GuardedDeleteUseCase


class DeleteLegalBasisUseCase(GuardedDeleteUseCase):
    _resource = "LegalBasis"
    _resource_plural = "LegalBasis"
    _kind = PendingEntityKind.LEGAL_BASIS

    def __init__(
        self,
        legal_basis_repository: LegalBasisRepository,
        guard: CheckPendingJobsUseCase,
    ) -> None:
        super().__init__(guard)
        self._legal_bases = legal_basis_repository

    def _lookup(self, ids: Sequence[int]) -> dict[int, tuple[str, int]]:
        return {lb.id: (lb.name, lb.id) for lb in self._legal_bases.find_by_ids(ids)}

    def _delete(self, ids: Sequence[int]) -> bool:
        return self._legal_bases.delete_by_ids(ids)
