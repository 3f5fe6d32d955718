"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/identification.py
============================================================
Class: InMemoryIdentificationRepository

Responsibilities:
  - Almacenar identificaciones y sus vínculos en memoria (tests / local dev).
  - Replicar las restricciones de Postgres:
      - nombre de identificación único
      - un registro de requerimiento por (identificación, requerimiento)
      - una fila por (registro, base legal) y por (registro, base, artículo)
  - Borrado en cascada de registros y vínculos.

Collaborators:
  - domain.entities (Identification, IdentificationRequirement, ArticleLink)
  - domain.repositories.IdentificationRepository (contrato a implementar)

Constraints / Notes:
  - Thread-safe: N workers escriben en paralelo.
  - Copias defensivas al devolver Identification (entidad mutable).
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, List, Sequence, Set, Tuple

from ....domain.entities import (
    ArticleLink,
    Identification,
    IdentificationRequirement,
    Requirement,
)
from ....domain.repositories import IdentificationRepository
from ....domain.value_objects import ArticleClassification, IdentificationStatus


class InMemoryIdentificationRepository(IdentificationRepository):
    """Repositorio in-memory, thread-safe, para identificaciones."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._identifications: Dict[int, Identification] = {}
        self._requirement_records: Dict[int, IdentificationRequirement] = {}
        self._legal_basis_links: Set[Tuple[int, int]] = set()
        self._article_links: Dict[Tuple[int, int, int], ArticleLink] = {}
        self._next_identification_id = 1
        self._next_record_id = 1

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _normalize_name(name: str) -> str:
        return (name or "").strip().lower()

    # =========================================================
    # Identificación
    # =========================================================
    def create(
        self,
        *,
        name: str,
        description: str | None,
        user_id: int | None,
        status: IdentificationStatus = IdentificationStatus.ACTIVE,
    ) -> Identification:
        with self._lock:
            now = self._now()
            identification = Identification(
                id=self._next_identification_id,
                name=name,
                description=description,
                status=status,
                user_id=user_id,
                created_at=now,
                updated_at=now,
            )
            self._next_identification_id += 1
            self._identifications[identification.id] = identification
            return replace(identification)

    def find_by_id(self, identification_id: int) -> Identification | None:
        with self._lock:
            found = self._identifications.get(identification_id)
            return replace(found) if found else None

    def find_by_ids(self, ids: Sequence[int]) -> List[Identification]:
        with self._lock:
            return [
                replace(self._identifications[i])
                for i in sorted(set(ids))
                if i in self._identifications
            ]

    def exists_by_name(self, name: str) -> bool:
        target = self._normalize_name(name)
        with self._lock:
            return any(
                self._normalize_name(i.name) == target
                for i in self._identifications.values()
            )

    def exists_by_name_excluding_id(self, name: str, identification_id: int) -> bool:
        target = self._normalize_name(name)
        with self._lock:
            return any(
                self._normalize_name(i.name) == target and i.id != identification_id
                for i in self._identifications.values()
            )

    def update(
        self,
        identification_id: int,
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> Identification | None:
        with self._lock:
            found = self._identifications.get(identification_id)
            if found is None:
                return None
            if name is not None:
                found.name = name
            if description is not None:
                found.description = description
            found.updated_at = self._now()
            return replace(found)

    def update_status(
        self, identification_id: int, status: IdentificationStatus
    ) -> bool:
        with self._lock:
            found = self._identifications.get(identification_id)
            if found is None:
                return False
            found.status = status
            found.updated_at = self._now()
            return True

    def delete_by_ids(self, ids: Sequence[int]) -> bool:
        with self._lock:
            targets = {i for i in ids if i in self._identifications}
            if not targets:
                return False
            for identification_id in targets:
                del self._identifications[identification_id]

            record_ids = {
                r.id
                for r in self._requirement_records.values()
                if r.identification_id in targets
            }
            for record_id in record_ids:
                del self._requirement_records[record_id]
            self._legal_basis_links = {
                link for link in self._legal_basis_links if link[0] not in record_ids
            }
            self._article_links = {
                key: link
                for key, link in self._article_links.items()
                if key[0] not in record_ids
            }
            return True

    # =========================================================
    # Vínculos
    # =========================================================
    def create_requirement_record(
        self, identification_id: int, requirement: Requirement
    ) -> IdentificationRequirement | None:
        with self._lock:
            if identification_id not in self._identifications:
                return None
            for record in self._requirement_records.values():
                if (
                    record.identification_id == identification_id
                    and record.requirement_id == requirement.id
                ):
                    return record
            record = IdentificationRequirement(
                id=self._next_record_id,
                identification_id=identification_id,
                requirement_id=requirement.id,
                requirement_name=requirement.name,
            )
            self._next_record_id += 1
            self._requirement_records[record.id] = record
            return record

    def link_legal_basis(
        self, identification_requirement_id: int, legal_basis_id: int
    ) -> bool:
        with self._lock:
            if identification_requirement_id not in self._requirement_records:
                return False
            self._legal_basis_links.add((identification_requirement_id, legal_basis_id))
            return True

    def link_article(
        self,
        identification_requirement_id: int,
        legal_basis_id: int,
        article_id: int,
        classification: ArticleClassification,
    ) -> bool:
        key = (identification_requirement_id, legal_basis_id, article_id)
        with self._lock:
            if identification_requirement_id not in self._requirement_records:
                return False
            existing = self._article_links.get(key)
            if existing is not None:
                return existing.classification == classification
            self._article_links[key] = ArticleLink(
                identification_requirement_id=identification_requirement_id,
                legal_basis_id=legal_basis_id,
                article_id=article_id,
                classification=classification,
            )
            return True

    def list_article_links(self, identification_id: int) -> List[ArticleLink]:
        with self._lock:
            record_ids = {
                r.id
                for r in self._requirement_records.values()
                if r.identification_id == identification_id
            }
            links = [
                link for key, link in self._article_links.items() if key[0] in record_ids
            ]
        return sorted(links, key=lambda link: link.key)

    # =========================================================
    # Helpers de inspección (tests)
    # =========================================================
    def list_requirement_records(
        self, identification_id: int
    ) -> List[IdentificationRequirement]:
        with self._lock:
            return sorted(
                (
                    r
                    for r in self._requirement_records.values()
                    if r.identification_id == identification_id
                ),
                key=lambda r: r.id,
            )

    def list_legal_basis_links(self, identification_id: int) -> List[Tuple[int, int]]:
        with self._lock:
            record_ids = {
                r.id
                for r in self._requirement_records.values()
                if r.identification_id == identification_id
            }
            return sorted(link for link in self._legal_basis_links if link[0] in record_ids)
