"""
Dominio del pipeline de identificación de requerimientos.

Re-exporta entidades, value objects y el modelo de jobs para imports cortos.
"""

from .entities import (
    Article,
    ArticleLink,
    Identification,
    IdentificationRequirement,
    LegalBasis,
    LegalBasisLink,
    Requirement,
    SkippedArticle,
)
from .jobs import (
    PENDING_JOB_STATES,
    TERMINAL_JOB_STATES,
    IdentificationJobPayload,
    Job,
    JobState,
)
from .value_objects import (
    ArticleClassification,
    ClassificationVerdict,
    IdentificationStatus,
    IntelligenceLevel,
    PendingEntityKind,
)

__all__ = [
    "Article",
    "ArticleClassification",
    "ArticleLink",
    "ClassificationVerdict",
    "Identification",
    "IdentificationJobPayload",
    "IdentificationRequirement",
    "IdentificationStatus",
    "IntelligenceLevel",
    "Job",
    "JobState",
    "LegalBasis",
    "LegalBasisLink",
    "PENDING_JOB_STATES",
    "PendingEntityKind",
    "Requirement",
    "SkippedArticle",
    "TERMINAL_JOB_STATES",
]
