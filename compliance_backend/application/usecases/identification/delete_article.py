"""
===============================================================================
USE CASE: Delete Article (single / batch)
===============================================================================

Business Goal:
    Borrar artículos solo si ningún job pendiente usa su base legal padre.

Notas:
    - El guard se consulta por legal_basis_id: un job que tiene la base en
      su snapshot bloquea todos sus artículos.

Collaborators:
    - ArticleRepository.find_by_ids / delete_by_ids
    - CheckPendingJobsUseCase (kind = legal_basis)
===============================================================================
"""

from __future__ import annotations

from typing import Sequence

from ....domain.repositories import ArticleRepository
from ....domain.value_objects import PendingEntityKind
from .check_pending_jobs import CheckPendingJobsUseCase
from .guarded_delete import GuardedDeleteUseCase


class DeleteArticleUseCase(GuardedDeleteUseCase):
    _resource = "Article"
    _resource_plural = "Articles"
    _kind = PendingEntityKind.LEGAL_BASIS

    def __init__(
        self,
        article_repository: ArticleRepository,
        guard: CheckPendingJobsUseCase,
    ) -> None:
        super().__init__(guard)
        self._articles = article_repository

    def _lookup(self, ids: Sequence[int]) -> dict[int, tuple[str, int]]:
        return {a.id: (a.name, a.legal_basis_id) for a in self._articles.find_by_ids(ids)}

    def _delete(self, ids: Sequence[int]) -> bool:
        return self._articles.delete_by_ids(ids)
