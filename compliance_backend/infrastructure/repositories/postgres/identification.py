"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/identification.py
============================================================
Class: PostgresIdentificationRepository

Responsibilities:
- Persistir identificaciones (alta, rename/describe, estado, baja).
- Persistir los tres sabores de vínculo:
    (b) req_identification_requirements
    (a) req_identification_legal_basis
    (c) req_identification_articles (con clasificación)
- Garantizar idempotencia de vínculos vía ON CONFLICT sobre las PKs.

Collaborators:
- domain.entities (Identification, IdentificationRequirement, ArticleLink)
- postgres.base.PostgresRepositoryBase
- Tablas: req_identifications + tablas de vínculos (ON DELETE CASCADE)

Constraints / Notes:
- Nombre único case-insensitive (índice sobre lower(name)).
- link_article: misma etiqueta -> True (idempotente); otra etiqueta -> False.
============================================================
"""

from __future__ import annotations

from typing import Sequence

from ....domain.entities import (
    ArticleLink,
    Identification,
    IdentificationRequirement,
    Requirement,
)
from ....domain.value_objects import ArticleClassification, IdentificationStatus
from .base import PostgresRepositoryBase


class PostgresIdentificationRepository(PostgresRepositoryBase):
    """R: Implementación PostgreSQL del repositorio de identificaciones."""

    _SELECT_COLUMNS = "id, name, description, status, user_id, created_at, updated_at"

    @staticmethod
    def _row_to_identification(row: tuple) -> Identification:
        (
            identification_id,
            name,
            description,
            status,
            user_id,
            created_at,
            updated_at,
        ) = row
        return Identification(
            id=identification_id,
            name=name,
            description=description,
            status=IdentificationStatus(status),
            user_id=user_id,
            created_at=created_at,
            updated_at=updated_at,
        )

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
        row = self._fetchone(
            query=f"""
                INSERT INTO req_identifications (name, description, status, user_id)
                VALUES (%s, %s, %s, %s)
                RETURNING {self._SELECT_COLUMNS}
            """,
            params=[name, description, status.value, user_id],
            context_msg="PostgresIdentificationRepository: Failed to create identification",
            extra={"user_id": user_id},
        )
        return self._row_to_identification(row)

    def find_by_id(self, identification_id: int) -> Identification | None:
        row = self._fetchone(
            query=f"SELECT {self._SELECT_COLUMNS} FROM req_identifications WHERE id = %s",
            params=[identification_id],
            context_msg="PostgresIdentificationRepository: Failed to get identification",
            extra={"identification_id": identification_id},
        )
        return self._row_to_identification(row) if row else None

    def find_by_ids(self, ids: Sequence[int]) -> list[Identification]:
        if not ids:
            return []
        rows = self._fetchall(
            query=f"""
                SELECT {self._SELECT_COLUMNS}
                FROM req_identifications
                WHERE id = ANY(%s)
                ORDER BY id
            """,
            params=[list(ids)],
            context_msg="PostgresIdentificationRepository: Failed to find identifications",
            extra={"count": len(ids)},
        )
        return [self._row_to_identification(r) for r in rows]

    def exists_by_name(self, name: str) -> bool:
        row = self._fetchone(
            query="SELECT 1 FROM req_identifications WHERE lower(name) = lower(%s)",
            params=[name.strip()],
            context_msg="PostgresIdentificationRepository: Failed to check name",
            extra={},
        )
        return row is not None

    def exists_by_name_excluding_id(self, name: str, identification_id: int) -> bool:
        row = self._fetchone(
            query="""
                SELECT 1 FROM req_identifications
                WHERE lower(name) = lower(%s) AND id <> %s
            """,
            params=[name.strip(), identification_id],
            context_msg="PostgresIdentificationRepository: Failed to check name",
            extra={"identification_id": identification_id},
        )
        return row is not None

    def update(
        self,
        identification_id: int,
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> Identification | None:
        row = self._fetchone(
            query=f"""
                UPDATE req_identifications
                SET name = COALESCE(%s, name),
                    description = COALESCE(%s, description),
                    updated_at = NOW()
                WHERE id = %s
                RETURNING {self._SELECT_COLUMNS}
            """,
            params=[name, description, identification_id],
            context_msg="PostgresIdentificationRepository: Failed to update identification",
            extra={"identification_id": identification_id},
        )
        return self._row_to_identification(row) if row else None

    def update_status(
        self, identification_id: int, status: IdentificationStatus
    ) -> bool:
        row = self._fetchone(
            query="""
                UPDATE req_identifications
                SET status = %s, updated_at = NOW()
                WHERE id = %s
                RETURNING id
            """,
            params=[status.value, identification_id],
            context_msg="PostgresIdentificationRepository: Failed to update status",
            extra={"identification_id": identification_id, "status": status.value},
        )
        return row is not None

    def delete_by_ids(self, ids: Sequence[int]) -> bool:
        if not ids:
            return False
        rows = self._fetchall(
            query="DELETE FROM req_identifications WHERE id = ANY(%s) RETURNING id",
            params=[list(ids)],
            context_msg="PostgresIdentificationRepository: Failed to delete identifications",
            extra={"count": len(ids)},
        )
        return len(rows) > 0

    # =========================================================
    # Vínculos
    # =========================================================
    def create_requirement_record(
        self, identification_id: int, requirement: Requirement
    ) -> IdentificationRequirement | None:
        # R: DO UPDATE no-op para que RETURNING devuelva la fila existente.
        row = self._fetchone(
            query="""
                INSERT INTO req_identification_requirements
                    (req_identification_id, requirement_id, requirement_name)
                VALUES (%s, %s, %s)
                ON CONFLICT (req_identification_id, requirement_id)
                DO UPDATE SET requirement_name = EXCLUDED.requirement_name
                RETURNING id, req_identification_id, requirement_id, requirement_name
            """,
            params=[identification_id, requirement.id, requirement.name],
            context_msg="PostgresIdentificationRepository: Failed to create requirement record",
            extra={
                "identification_id": identification_id,
                "requirement_id": requirement.id,
            },
        )
        if row is None:
            return None
        record_id, ident_id, requirement_id, requirement_name = row
        return IdentificationRequirement(
            id=record_id,
            identification_id=ident_id,
            requirement_id=requirement_id,
            requirement_name=requirement_name,
        )

    def link_legal_basis(
        self, identification_requirement_id: int, legal_basis_id: int
    ) -> bool:
        self._fetchone(
            query="""
                INSERT INTO req_identification_legal_basis
                    (req_identification_requirement_id, legal_basis_id)
                VALUES (%s, %s)
                ON CONFLICT DO NOTHING
                RETURNING legal_basis_id
            """,
            params=[identification_requirement_id, legal_basis_id],
            context_msg="PostgresIdentificationRepository: Failed to link legal basis",
            extra={
                "identification_requirement_id": identification_requirement_id,
                "legal_basis_id": legal_basis_id,
            },
        )
        return True

    def link_article(
        self,
        identification_requirement_id: int,
        legal_basis_id: int,
        article_id: int,
        classification: ArticleClassification,
    ) -> bool:
        # R: El WHERE del DO UPDATE filtra conflictos con otra etiqueta:
        #    sin fila devuelta -> la clasificación existente difiere.
        row = self._fetchone(
            query="""
                INSERT INTO req_identification_articles
                    (req_identification_requirement_id, legal_basis_id, article_id, classification)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (req_identification_requirement_id, legal_basis_id, article_id)
                DO UPDATE SET classification = EXCLUDED.classification
                WHERE req_identification_articles.classification = EXCLUDED.classification
                RETURNING article_id
            """,
            params=[
                identification_requirement_id,
                legal_basis_id,
                article_id,
                classification.value,
            ],
            context_msg="PostgresIdentificationRepository: Failed to link article",
            extra={
                "identification_requirement_id": identification_requirement_id,
                "legal_basis_id": legal_basis_id,
                "article_id": article_id,
            },
        )
        return row is not None

    def list_article_links(self, identification_id: int) -> list[ArticleLink]:
        rows = self._fetchall(
            query="""
                SELECT a.req_identification_requirement_id, a.legal_basis_id,
                       a.article_id, a.classification
                FROM req_identification_articles a
                JOIN req_identification_requirements r
                  ON r.id = a.req_identification_requirement_id
                WHERE r.req_identification_id = %s
                ORDER BY a.req_identification_requirement_id, a.legal_basis_id, a.article_id
            """,
            params=[identification_id],
            context_msg="PostgresIdentificationRepository: Failed to list article links",
            extra={"identification_id": identification_id},
        )
        return [
            ArticleLink(
                identification_requirement_id=r[0],
                legal_basis_id=r[1],
                article_id=r[2],
                classification=ArticleClassification(r[3]),
            )
            for r in rows
        ]
