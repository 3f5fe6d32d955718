"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/catalog.py
============================================================
Classes:
  PostgresLegalBasisRepository, PostgresArticleRepository,
  PostgresRequirementRepository, PostgresSubjectAspectCatalog

Responsibilities:
- Leer el catálogo legal en PostgreSQL (SQL crudo, parametrizado).
- Baja de bases legales / artículos / requerimientos (el guard de jobs
  pendientes vive arriba, en los casos de uso).

Collaborators:
- domain.entities.LegalBasis, Article, Requirement
- postgres.base.PostgresRepositoryBase
- Tablas: legal_basis, article, requirements, subjects, aspects

Constraints / Notes:
- Ordenamiento determinístico (id; artículos por article_order, id).
- Ids faltantes se omiten en find_by_ids (el caller calcula faltantes).
============================================================
"""

from __future__ import annotations

from typing import Sequence

from ....domain.entities import Article, LegalBasis, Requirement
from .base import PostgresRepositoryBase


class PostgresLegalBasisRepository(PostgresRepositoryBase):
    """R: Bases legales (sin artículos; ver PostgresArticleRepository)."""

    _SELECT_COLUMNS = """
        id, legal_name, abbreviation, classification, jurisdiction,
        state, municipality, last_reform, subject_id
    """

    @staticmethod
    def _row_to_legal_basis(row: tuple) -> LegalBasis:
        (
            legal_basis_id,
            name,
            abbreviation,
            classification,
            jurisdiction,
            state,
            municipality,
            last_reform,
            subject_id,
        ) = row
        return LegalBasis(
            id=legal_basis_id,
            name=name,
            abbreviation=abbreviation or "",
            classification=classification or "",
            jurisdiction=jurisdiction or "",
            state=state,
            municipality=municipality,
            last_reform=last_reform,
            subject_id=subject_id,
        )

    def find_by_ids(self, ids: Sequence[int]) -> list[LegalBasis]:
        if not ids:
            return []
        rows = self._fetchall(
            query=f"""
                SELECT {self._SELECT_COLUMNS}
                FROM legal_basis
                WHERE id = ANY(%s)
                ORDER BY id
            """,
            params=[list(ids)],
            context_msg="PostgresLegalBasisRepository: Failed to find legal bases",
            extra={"count": len(ids)},
        )
        return [self._row_to_legal_basis(r) for r in rows]

    def find_by_id(self, legal_basis_id: int) -> LegalBasis | None:
        row = self._fetchone(
            query=f"SELECT {self._SELECT_COLUMNS} FROM legal_basis WHERE id = %s",
            params=[legal_basis_id],
            context_msg="PostgresLegalBasisRepository: Failed to get legal basis",
            extra={"legal_basis_id": legal_basis_id},
        )
        return self._row_to_legal_basis(row) if row else None

    def delete_by_ids(self, ids: Sequence[int]) -> bool:
        if not ids:
            return False
        rows = self._fetchall(
            query="DELETE FROM legal_basis WHERE id = ANY(%s) RETURNING id",
            params=[list(ids)],
            context_msg="PostgresLegalBasisRepository: Failed to delete legal bases",
            extra={"count": len(ids)},
        )
        return len(rows) > 0


class PostgresArticleRepository(PostgresRepositoryBase):
    """R: Artículos de bases legales."""

    _SELECT_COLUMNS = "id, legal_basis_id, article_name, description, article_order"

    @staticmethod
    def _row_to_article(row: tuple) -> Article:
        article_id, legal_basis_id, name, description, order = row
        return Article(
            id=article_id,
            legal_basis_id=legal_basis_id,
            name=name or "",
            description=description or "",
            order=order or 0,
        )

    def find_by_legal_basis_id(self, legal_basis_id: int) -> list[Article]:
        rows = self._fetchall(
            query=f"""
                SELECT {self._SELECT_COLUMNS}
                FROM article
                WHERE legal_basis_id = %s
                ORDER BY article_order, id
            """,
            params=[legal_basis_id],
            context_msg="PostgresArticleRepository: Failed to list articles",
            extra={"legal_basis_id": legal_basis_id},
        )
        return [self._row_to_article(r) for r in rows]

    def find_by_id(self, article_id: int) -> Article | None:
        row = self._fetchone(
            query=f"SELECT {self._SELECT_COLUMNS} FROM article WHERE id = %s",
            params=[article_id],
            context_msg="PostgresArticleRepository: Failed to get article",
            extra={"article_id": article_id},
        )
        return self._row_to_article(row) if row else None

    def find_by_ids(self, ids: Sequence[int]) -> list[Article]:
        if not ids:
            return []
        rows = self._fetchall(
            query=f"""
                SELECT {self._SELECT_COLUMNS}
                FROM article
                WHERE id = ANY(%s)
                ORDER BY id
            """,
            params=[list(ids)],
            context_msg="PostgresArticleRepository: Failed to find articles",
            extra={"count": len(ids)},
        )
        return [self._row_to_article(r) for r in rows]

    def delete_by_ids(self, ids: Sequence[int]) -> bool:
        if not ids:
            return False
        rows = self._fetchall(
            query="DELETE FROM article WHERE id = ANY(%s) RETURNING id",
            params=[list(ids)],
            context_msg="PostgresArticleRepository: Failed to delete articles",
            extra={"count": len(ids)},
        )
        return len(rows) > 0


class PostgresRequirementRepository(PostgresRepositoryBase):
    """R: Requerimientos regulatorios."""

    _SELECT_COLUMNS = """
        id, requirement_name, subject_id, aspect_id, requirement_number,
        mandatory_description, complementary_description,
        mandatory_sentences, complementary_sentences,
        mandatory_keywords, complementary_keywords,
        requirement_condition, evidence, periodicity,
        jurisdiction, state, municipality
    """

    @staticmethod
    def _row_to_requirement(row: tuple) -> Requirement:
        (
            requirement_id,
            name,
            subject_id,
            aspect_id,
            requirement_number,
            mandatory_description,
            complementary_description,
            mandatory_sentences,
            complementary_sentences,
            mandatory_keywords,
            complementary_keywords,
            condition,
            evidence,
            periodicity,
            jurisdiction,
            state,
            municipality,
        ) = row
        return Requirement(
            id=requirement_id,
            name=name,
            subject_id=subject_id,
            aspect_id=aspect_id,
            requirement_number=requirement_number or "",
            mandatory_description=mandatory_description or "",
            complementary_description=complementary_description or "",
            mandatory_sentences=mandatory_sentences or "",
            complementary_sentences=complementary_sentences or "",
            mandatory_keywords=tuple(mandatory_keywords or ()),
            complementary_keywords=tuple(complementary_keywords or ()),
            condition=condition or "",
            evidence=evidence or "",
            periodicity=periodicity or "",
            jurisdiction=jurisdiction or "",
            state=state,
            municipality=municipality,
        )

    def find_by_ids(self, ids: Sequence[int]) -> list[Requirement]:
        if not ids:
            return []
        rows = self._fetchall(
            query=f"""
                SELECT {self._SELECT_COLUMNS}
                FROM requirements
                WHERE id = ANY(%s)
                ORDER BY id
            """,
            params=[list(ids)],
            context_msg="PostgresRequirementRepository: Failed to find requirements",
            extra={"count": len(ids)},
        )
        return [self._row_to_requirement(r) for r in rows]

    def find_by_subject_and_aspects(
        self, subject_id: int, aspect_ids: Sequence[int]
    ) -> list[Requirement]:
        if not aspect_ids:
            return []
        rows = self._fetchall(
            query=f"""
                SELECT {self._SELECT_COLUMNS}
                FROM requirements
                WHERE subject_id = %s AND aspect_id = ANY(%s)
                ORDER BY id
            """,
            params=[subject_id, list(aspect_ids)],
            context_msg="PostgresRequirementRepository: Failed to find by subject/aspects",
            extra={"subject_id": subject_id, "aspect_count": len(aspect_ids)},
        )
        return [self._row_to_requirement(r) for r in rows]

    def delete_by_ids(self, ids: Sequence[int]) -> bool:
        if not ids:
            return False
        rows = self._fetchall(
            query="DELETE FROM requirements WHERE id = ANY(%s) RETURNING id",
            params=[list(ids)],
            context_msg="PostgresRequirementRepository: Failed to delete requirements",
            extra={"count": len(ids)},
        )
        return len(rows) > 0


class PostgresSubjectAspectCatalog(PostgresRepositoryBase):
    """R: Existencia de materias / aspectos."""

    def subject_exists(self, subject_id: int) -> bool:
        row = self._fetchone(
            query="SELECT 1 FROM subjects WHERE id = %s",
            params=[subject_id],
            context_msg="PostgresSubjectAspectCatalog: Failed to check subject",
            extra={"subject_id": subject_id},
        )
        return row is not None

    def find_existing_aspect_ids(
        self, subject_id: int, aspect_ids: Sequence[int]
    ) -> list[int]:
        if not aspect_ids:
            return []
        rows = self._fetchall(
            query="""
                SELECT id FROM aspects
                WHERE subject_id = %s AND id = ANY(%s)
                ORDER BY id
            """,
            params=[subject_id, list(aspect_ids)],
            context_msg="PostgresSubjectAspectCatalog: Failed to find aspects",
            extra={"subject_id": subject_id, "aspect_count": len(aspect_ids)},
        )
        return [r[0] for r in rows]
