"""Repositorios PostgreSQL (psycopg + pool compartido)."""

from .catalog import (
    PostgresArticleRepository,
    PostgresLegalBasisRepository,
    PostgresRequirementRepository,
    PostgresSubjectAspectCatalog,
)
from .identification import PostgresIdentificationRepository

__all__ = [
    "PostgresArticleRepository",
    "PostgresIdentificationRepository",
    "PostgresLegalBasisRepository",
    "PostgresRequirementRepository",
    "PostgresSubjectAspectCatalog",
]
