"""
===============================================================================
MÓDULO: Excepciones tipadas del backend (errores internos)
===============================================================================

Objetivo
--------
Tener excepciones internas coherentes, con:
- error_code estable
- error_id para correlación con logs
- message "humana" (sin filtrar secretos)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  ComplianceError + subclases

Responsabilidades:
  - Estandarizar errores de infraestructura (DB, proveedor LLM).
  - Tipificar los fallos fatales del job de identificación (validación,
    linking, cancelación) para que el worker los registre como motivo.

Colaboradores:
  - application.usecases.identification.run_identification
  - infrastructure.services.llm.google_article_classifier
  - worker/jobs.py
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4


class ComplianceError(Exception):
    """Base para errores internos: error_code + error_id + message."""

    error_code: str = "COMPLIANCE_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "error_id": self.error_id,
        }


class DatabaseError(ComplianceError):
    """Errores de DB (conexión, query, timeout, pool)."""

    error_code: str = "DATABASE_ERROR"


class ClassificationError(ComplianceError):
    """
    Falla al clasificar un artículo contra un requerimiento.

    retries_exhausted:
        True si el proveedor siguió limitando tasa tras todos los reintentos.
    """

    error_code: str = "CLASSIFICATION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        retries_exhausted: bool = False,
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error=original_error)
        self.retries_exhausted = retries_exhausted


# -----------------------------------------------------------------------------
# Fallos fatales del job de identificación
# -----------------------------------------------------------------------------


class IdentificationJobError(ComplianceError):
    """Base de fallos que terminan el job y marcan la identificación Failed."""

    error_code: str = "IDENTIFICATION_JOB_ERROR"


class MissingEntitiesError(IdentificationJobError):
    """Bases legales o requerimientos del snapshot ya no existen."""

    error_code: str = "NOT_FOUND"

    def __init__(
        self,
        *,
        missing_legal_basis_ids: list[int] | None = None,
        missing_requirement_ids: list[int] | None = None,
    ):
        self.missing_legal_basis_ids = sorted(missing_legal_basis_ids or [])
        self.missing_requirement_ids = sorted(missing_requirement_ids or [])
        parts: list[str] = []
        if self.missing_legal_basis_ids:
            parts.append(
                f"Some legal bases were not found: {self.missing_legal_basis_ids}"
            )
        if self.missing_requirement_ids:
            parts.append(
                f"Some requirements were not found: {self.missing_requirement_ids}"
            )
        super().__init__("; ".join(parts) or "Some entities were not found")


class LinkingError(IdentificationJobError):
    """No se pudo escribir un vínculo de la identificación (infraestructura)."""

    error_code: str = "INFRASTRUCTURE_ERROR"


class JobCanceledError(IdentificationJobError):
    """El job fue cancelado mientras se procesaba."""

    error_code: str = "JOB_CANCELED"

    def __init__(self, message: str = "Job was canceled"):
        super().__init__(message)


class JobNotCancelableError(ComplianceError):
    """El job ya terminó (completed / failed) y no admite cambios."""

    error_code: str = "JOB_NOT_CANCELABLE"

    def __init__(self, job_id: str, state: str):
        self.job_id = job_id
        self.state = state
        super().__init__(
            "Job cannot be canceled. "
            f"Jobs in '{state}' state cannot be modified."
        )
