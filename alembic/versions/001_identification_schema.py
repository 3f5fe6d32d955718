"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_identification_schema (Alembic Migration)

Responsibilities:
  - Crear el catálogo regulatorio (materias, aspectos, bases legales,
    artículos, requerimientos).
  - Crear las identificaciones y sus tablas de vínculos.
  - Garantizar idempotencia de vínculos con constraints UNIQUE / PK compuestas.

Collaborators:
  - PostgreSQL 16+
  - infrastructure.repositories.postgres (usa este esquema como contrato)

Policy:
  - Migración BASELINE. Downgrade NO soportado.
  - Convención de nombres:
      pk_<tabla> / uq_<tabla>_<col> / ix_<tabla>_<col> / fk_<tabla>_<col>__<ref>
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_identification_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """
    Orden:
      1) Materias / aspectos
      2) Bases legales / artículos
      3) Requerimientos
      4) Identificaciones + vínculos
    """

    # =========================================================
    # 1) SUBJECTS / ASPECTS
    # =========================================================
    op.create_table(
        "subjects",
        sa.Column("id", sa.Integer, sa.Identity(), nullable=False),
        sa.Column("subject_name", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_subjects"),
        sa.UniqueConstraint("subject_name", name="uq_subjects_subject_name"),
    )

    op.create_table(
        "aspects",
        sa.Column("id", sa.Integer, sa.Identity(), nullable=False),
        sa.Column("subject_id", sa.Integer, nullable=False),
        sa.Column("aspect_name", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_aspects"),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="fk_aspects_subject_id__subjects",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_aspects_subject_id", "aspects", ["subject_id"])

    # =========================================================
    # 2) LEGAL BASIS / ARTICLES
    # =========================================================
    op.create_table(
        "legal_basis",
        sa.Column("id", sa.Integer, sa.Identity(), nullable=False),
        sa.Column("legal_name", sa.String(500), nullable=False),
        sa.Column("abbreviation", sa.String(100), nullable=True),
        sa.Column("classification", sa.String(100), nullable=True),
        sa.Column("jurisdiction", sa.String(50), nullable=True),
        sa.Column("state", sa.String(255), nullable=True),
        sa.Column("municipality", sa.String(255), nullable=True),
        sa.Column("last_reform", sa.Date, nullable=True),
        sa.Column("subject_id", sa.Integer, nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_legal_basis"),
        sa.UniqueConstraint("legal_name", name="uq_legal_basis_legal_name"),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="fk_legal_basis_subject_id__subjects",
            ondelete="SET NULL",
        ),
    )

    op.create_table(
        "article",
        sa.Column("id", sa.Integer, sa.Identity(), nullable=False),
        sa.Column("legal_basis_id", sa.Integer, nullable=False),
        sa.Column("article_name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "article_order",
            sa.Integer,
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_article"),
        sa.ForeignKeyConstraint(
            ["legal_basis_id"],
            ["legal_basis.id"],
            name="fk_article_legal_basis_id__legal_basis",
            ondelete="CASCADE",
        ),
    )
    # Lectura de artículos por base, en orden de aparición.
    op.create_index(
        "ix_article_legal_basis_id", "article", ["legal_basis_id", "article_order"]
    )

    # =========================================================
    # 3) REQUIREMENTS
    # =========================================================
    op.create_table(
        "requirements",
        sa.Column("id", sa.Integer, sa.Identity(), nullable=False),
        sa.Column("subject_id", sa.Integer, nullable=False),
        sa.Column("aspect_id", sa.Integer, nullable=False),
        sa.Column("requirement_number", sa.String(100), nullable=True),
        sa.Column("requirement_name", sa.String(500), nullable=False),
        sa.Column("mandatory_description", sa.Text, nullable=True),
        sa.Column("complementary_description", sa.Text, nullable=True),
        sa.Column("mandatory_sentences", sa.Text, nullable=True),
        sa.Column("complementary_sentences", sa.Text, nullable=True),
        sa.Column(
            "mandatory_keywords",
            postgresql.ARRAY(sa.Text),
            nullable=False,
            server_default=sa.text("ARRAY[]::text[]"),
        ),
        sa.Column(
            "complementary_keywords",
            postgresql.ARRAY(sa.Text),
            nullable=False,
            server_default=sa.text("ARRAY[]::text[]"),
        ),
        sa.Column("requirement_condition", sa.String(50), nullable=True),
        sa.Column("evidence", sa.String(50), nullable=True),
        sa.Column("periodicity", sa.String(50), nullable=True),
        sa.Column("jurisdiction", sa.String(50), nullable=True),
        sa.Column("state", sa.String(255), nullable=True),
        sa.Column("municipality", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_requirements"),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="fk_requirements_subject_id__subjects",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["aspect_id"],
            ["aspects.id"],
            name="fk_requirements_aspect_id__aspects",
            ondelete="CASCADE",
        ),
    )
    # Usado por find_by_subject_and_aspects.
    op.create_index(
        "ix_requirements_subject_id", "requirements", ["subject_id", "aspect_id"]
    )

    # =========================================================
    # 4) IDENTIFICATIONS + LINKS
    # =========================================================
    op.create_table(
        "req_identifications",
        sa.Column("id", sa.Integer, sa.Identity(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'Active'"),
        ),
        sa.Column("user_id", sa.Integer, nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_req_identifications"),
        sa.CheckConstraint(
            "status IN ('Active','Completed','Failed')",
            name="ck_req_identifications_status",
        ),
    )
    # Unicidad case-insensitive del nombre (exists_by_name usa lower()).
    op.execute(
        "CREATE UNIQUE INDEX uq_req_identifications_lower_name "
        "ON req_identifications (lower(name))"
    )

    op.create_table(
        "req_identification_requirements",
        sa.Column("id", sa.Integer, sa.Identity(), nullable=False),
        sa.Column("req_identification_id", sa.Integer, nullable=False),
        sa.Column("requirement_id", sa.Integer, nullable=False),
        sa.Column("requirement_name", sa.String(500), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_req_identification_requirements"),
        sa.UniqueConstraint(
            "req_identification_id",
            "requirement_id",
            name="uq_req_identification_requirements_req_identification_id",
        ),
        sa.ForeignKeyConstraint(
            ["req_identification_id"],
            ["req_identifications.id"],
            name="fk_req_identification_requirements_req_identification_id__req_identifications",
            ondelete="CASCADE",
        ),
        # Snapshot: el requerimiento puede borrarse después del job.
        sa.ForeignKeyConstraint(
            ["requirement_id"],
            ["requirements.id"],
            name="fk_req_identification_requirements_requirement_id__requirements",
            ondelete="CASCADE",
        ),
    )

    op.create_table(
        "req_identification_legal_basis",
        sa.Column("req_identification_requirement_id", sa.Integer, nullable=False),
        sa.Column("legal_basis_id", sa.Integer, nullable=False),
        sa.PrimaryKeyConstraint(
            "req_identification_requirement_id",
            "legal_basis_id",
            name="pk_req_identification_legal_basis",
        ),
        sa.ForeignKeyConstraint(
            ["req_identification_requirement_id"],
            ["req_identification_requirements.id"],
            name="fk_req_identification_legal_basis_req_identification_requirement_id__req_identification_requirements",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["legal_basis_id"],
            ["legal_basis.id"],
            name="fk_req_identification_legal_basis_legal_basis_id__legal_basis",
            ondelete="CASCADE",
        ),
    )

    op.create_table(
        "req_identification_articles",
        sa.Column("req_identification_requirement_id", sa.Integer, nullable=False),
        sa.Column("legal_basis_id", sa.Integer, nullable=False),
        sa.Column("article_id", sa.Integer, nullable=False),
        sa.Column("classification", sa.String(20), nullable=False),
        sa.PrimaryKeyConstraint(
            "req_identification_requirement_id",
            "legal_basis_id",
            "article_id",
            name="pk_req_identification_articles",
        ),
        sa.CheckConstraint(
            "classification IN ('Obligatory','Complementary')",
            name="ck_req_identification_articles_classification",
        ),
        sa.ForeignKeyConstraint(
            ["req_identification_requirement_id", "legal_basis_id"],
            [
                "req_identification_legal_basis.req_identification_requirement_id",
                "req_identification_legal_basis.legal_basis_id",
            ],
            name="fk_req_identification_articles_req_identification_requirement_id__req_identification_legal_basis",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["article_id"],
            ["article.id"],
            name="fk_req_identification_articles_article_id__article",
            ondelete="CASCADE",
        ),
    )


def downgrade() -> None:
    """Downgrade NO soportado para la migración fundacional."""
    raise NotImplementedError(
        "Baseline: downgrade no soportado por política. "
        "Para resetear la base de datos, recrear el esquema y correr upgrade head."
    )
