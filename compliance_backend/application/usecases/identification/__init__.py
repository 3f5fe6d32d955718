"""
===============================================================================
IDENTIFICATION USE CASES PACKAGE (Public API / Exports)
===============================================================================

Name:
    Identification Use Cases (package exports)

Business Goal:
    Exponer una API pública y estable para el pipeline de identificación:
      - submission / status / cancel de jobs
      - orquestador que corre dentro del worker
      - guard de jobs pendientes + bajas protegidas
      - rename / describe de identificaciones
===============================================================================
"""

from .cancel_identification_job import CancelIdentificationJobUseCase
from .check_pending_jobs import CheckPendingJobsUseCase
from .delete_article import DeleteArticleUseCase
from .delete_identification import DeleteIdentificationUseCase
from .delete_legal_basis import DeleteLegalBasisUseCase
from .delete_requirement import DeleteRequirementUseCase
from .get_identification_job_status import GetIdentificationJobStatusUseCase
from .identification_results import (
    CancelJobResult,
    DeleteResult,
    IdentificationError,
    IdentificationErrorCode,
    IdentificationRunResult,
    JobStatusResult,
    PendingJobsResult,
    StartIdentificationResult,
    UpdateIdentificationResult,
)
from .run_identification import RunIdentificationUseCase, progress_percent
from .start_identification import StartIdentificationInput, StartIdentificationUseCase
from .update_identification import (
    UpdateIdentificationInput,
    UpdateIdentificationUseCase,
)

__all__ = [
    # Submission / status / cancel
    "StartIdentificationInput",
    "StartIdentificationUseCase",
    "StartIdentificationResult",
    "GetIdentificationJobStatusUseCase",
    "JobStatusResult",
    "CancelIdentificationJobUseCase",
    "CancelJobResult",
    # Worker
    "RunIdentificationUseCase",
    "IdentificationRunResult",
    "progress_percent",
    # Guard + bajas
    "CheckPendingJobsUseCase",
    "PendingJobsResult",
    "DeleteArticleUseCase",
    "DeleteIdentificationUseCase",
    "DeleteLegalBasisUseCase",
    "DeleteRequirementUseCase",
    "DeleteResult",
    # Update
    "UpdateIdentificationInput",
    "UpdateIdentificationUseCase",
    "UpdateIdentificationResult",
    # Errores
    "IdentificationError",
    "IdentificationErrorCode",
]
