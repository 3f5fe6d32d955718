"""In-memory repository implementations (tests / local dev)."""

from .catalog import (
    InMemoryArticleRepository,
    InMemoryCatalog,
    InMemoryLegalBasisRepository,
    InMemoryRequirementRepository,
    InMemorySubjectAspectCatalog,
)
from .identification import InMemoryIdentificationRepository

__all__ = [
    "InMemoryArticleRepository",
    "InMemoryCatalog",
    "InMemoryIdentificationRepository",
    "InMemoryLegalBasisRepository",
    "InMemoryRequirementRepository",
    "InMemorySubjectAspectCatalog",
]
