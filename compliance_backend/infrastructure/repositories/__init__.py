"""
============================================================
TARJETA CRC
============================================================
Class: compliance_backend.infrastructure.repositories (Package exports)

Responsibilities:
- Exponer implementaciones concretas de repositorios (Postgres e InMemory)
  en un único punto de importación.
- Mantener una API estable para la capa de aplicación (use cases).

Collaborators:
- Repositorios Postgres (SQL crudo)
- Repositorios InMemory (testing / APP_ENV=test)
============================================================
"""

# ---------------------------
# In-memory implementations
# Tests unitarios y entornos volátiles; no persisten datos.
# ---------------------------
from .in_memory import (
    InMemoryArticleRepository,
    InMemoryCatalog,
    InMemoryIdentificationRepository,
    InMemoryLegalBasisRepository,
    InMemoryRequirementRepository,
    InMemorySubjectAspectCatalog,
)

# ---------------------------
# Postgres implementations
# ---------------------------
from .postgres import (
    PostgresArticleRepository,
    PostgresIdentificationRepository,
    PostgresLegalBasisRepository,
    PostgresRequirementRepository,
    PostgresSubjectAspectCatalog,
)

__all__ = [
    # Postgres
    "PostgresArticleRepository",
    "PostgresIdentificationRepository",
    "PostgresLegalBasisRepository",
    "PostgresRequirementRepository",
    "PostgresSubjectAspectCatalog",
    # In-memory
    "InMemoryArticleRepository",
    "InMemoryCatalog",
    "InMemoryIdentificationRepository",
    "InMemoryLegalBasisRepository",
    "InMemoryRequirementRepository",
    "InMemorySubjectAspectCatalog",
]
