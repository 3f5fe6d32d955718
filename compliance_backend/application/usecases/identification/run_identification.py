"""
===============================================================================
USE CASE: Run Requirements Identification (Worker-side Orchestrator)
===============================================================================

Name:
    Run Identification Use Case

Business Goal:
    Ejecutar, dentro del worker, una identificación completa:
    para cada (requerimiento × base legal × artículo) consultar al
    clasificador y persistir los vínculos obligatorio / complementario.

Why (Context / Intención):
    - Una identificación puede implicar cientos de llamadas al LLM:
      no puede correr dentro del request HTTP.
    - Un artículo que falla al clasificar es un resultado degradado,
      no un fallo del job (se saltea y se cuenta).
    - Entidades faltantes o un vínculo que no se puede escribir invalidan
      el job completo (fatal, sin reintento).

-------------------------------------------------------------------------------
STATE MACHINE
-------------------------------------------------------------------------------
    Validating -> Linking -> Classifying -> Finalizing -> {Completed, Failed}

    - Validating: re-resolver ids de bases legales y requerimientos.
    - Linking (por requerimiento): registro de requerimiento + vínculo a
      cada base legal del snapshot.
    - Classifying: triples en secuencia; progreso tras cada triple.
    - Finalizing: identificación -> Completed.

    Cancelación cooperativa: `job.is_cancelled()` se consulta antes de
    validar, entre triples y antes de finalizar.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    RunIdentificationUseCase

Responsibilities:
    - Orquestar las etapas y publicar progreso monotónico (0..100).
    - Traducir fallos fatales a Identification.status = Failed y re-lanzar
      para que la cola registre el motivo.
    - Tolerar ClassificationError por artículo (skip + log + métrica).

Collaborators:
    - domain.services.JobContext / ArticleClassifier
    - domain.repositories.LegalBasisRepository / RequirementRepository /
      IdentificationRepository
    - crosscutting.exceptions (MissingEntitiesError, LinkingError, JobCanceledError)
    - crosscutting.metrics
===============================================================================
"""

from __future__ import annotations

import logging
from typing import Sequence

from ....crosscutting import metrics
from ....crosscutting.exceptions import (
    ClassificationError,
    IdentificationJobError,
    JobCanceledError,
    LinkingError,
    MissingEntitiesError,
)
from ....domain.entities import (
    Article,
    IdentificationRequirement,
    LegalBasis,
    Requirement,
    SkippedArticle,
)
from ....domain.jobs import IdentificationJobPayload
from ....domain.repositories import (
    IdentificationRepository,
    LegalBasisRepository,
    RequirementRepository,
)
from ....domain.services import ArticleClassifier, JobContext
from ....domain.value_objects import ArticleClassification, IdentificationStatus
from .identification_results import IdentificationRunResult

logger = logging.getLogger(__name__)


def progress_percent(processed: int, total: int) -> int:
    """round(processed / total * 100) con redondeo half-up, en enteros."""
    if total <= 0:
        return 100
    return (processed * 200 + total) // (2 * total)


class RunIdentificationUseCase:
    """
    Use Case (Application Service / Command):
        Ejecuta el workflow de identificación para el job recibido.
    """

    def __init__(
        self,
        *,
        legal_basis_repository: LegalBasisRepository,
        requirement_repository: RequirementRepository,
        identification_repository: IdentificationRepository,
        classifier: ArticleClassifier,
        report_skipped_articles: bool = False,
    ) -> None:
        self._legal_bases = legal_basis_repository
        self._requirements = requirement_repository
        self._identifications = identification_repository
        self._classifier = classifier
        self._report_skipped = report_skipped_articles

    def execute(self, job: JobContext) -> IdentificationRunResult:
        """
        Corre el job completo.

        Raises:
            IdentificationJobError: validación / linking / cancelación (fatal).
            Exception: cualquier otro error inesperado (también fatal).
        """
        payload = job.payload
        identification_id = payload.identification_id
        result = IdentificationRunResult(
            identification_id=identification_id,
            total_tasks=payload.total_tasks,
        )

        logger.info(
            "Identificación iniciada",
            extra={
                "job_id": job.id,
                "identification_id": identification_id,
                "total_tasks": result.total_tasks,
                "intelligence_level": payload.intelligence_level.value,
            },
        )

        try:
            self._check_cancelled(job)
            self._validate(payload)

            for requirement in payload.requirements:
                record = self._link_requirement(payload, requirement)
                for legal_basis in payload.legal_bases:
                    for article in legal_basis.articles:
                        self._check_cancelled(job)
                        self._classify_and_link(
                            payload, record, requirement, legal_basis, article, result
                        )
                        result.processed_tasks += 1
                        job.report_progress(
                            progress_percent(result.processed_tasks, result.total_tasks)
                        )
                result.requirements_processed += 1

            self._check_cancelled(job)
            if result.total_tasks == 0:
                job.report_progress(100)

            if not self._identifications.update_status(
                identification_id, IdentificationStatus.COMPLETED
            ):
                logger.warning(
                    "Identificación no encontrada al finalizar",
                    extra={"identification_id": identification_id},
                )
        except IdentificationJobError as exc:
            self._mark_failed(identification_id, exc)
            raise
        except Exception as exc:
            logger.exception(
                "Error inesperado en identificación",
                extra={"job_id": job.id, "identification_id": identification_id},
            )
            self._mark_failed(identification_id, exc)
            raise

        result.skipped_count = len(result.skipped)
        if not self._report_skipped:
            result.skipped = []

        logger.info(
            "Identificación completada",
            extra={
                "job_id": job.id,
                "identification_id": identification_id,
                "processed_tasks": result.processed_tasks,
                "obligatory_links": result.obligatory_links,
                "complementary_links": result.complementary_links,
                "skipped_articles": result.skipped_count,
            },
        )
        return result

    # =========================================================================
    # Etapas
    # =========================================================================

    def _validate(self, payload: IdentificationJobPayload) -> None:
        missing_legal_bases = self._missing_ids(
            payload.legal_basis_ids,
            [lb.id for lb in self._legal_bases.find_by_ids(payload.legal_basis_ids)],
        )
        missing_requirements = self._missing_ids(
            payload.requirement_ids,
            [r.id for r in self._requirements.find_by_ids(payload.requirement_ids)],
        )
        if missing_legal_bases or missing_requirements:
            raise MissingEntitiesError(
                missing_legal_basis_ids=missing_legal_bases,
                missing_requirement_ids=missing_requirements,
            )

    def _link_requirement(
        self, payload: IdentificationJobPayload, requirement: Requirement
    ) -> IdentificationRequirement:
        identification_id = payload.identification_id
        try:
            record = self._identifications.create_requirement_record(
                identification_id, requirement
            )
        except Exception as exc:
            raise LinkingError(
                f"Failed to link requirement {requirement.id}: {exc}",
                original_error=exc,
            ) from exc
        if record is None:
            raise LinkingError(
                f"Failed to link requirement {requirement.id} "
                f"to identification {identification_id}"
            )

        for legal_basis in payload.legal_bases:
            try:
                linked = self._identifications.link_legal_basis(record.id, legal_basis.id)
            except Exception as exc:
                raise LinkingError(
                    f"Failed to link legal basis {legal_basis.id}: {exc}",
                    original_error=exc,
                ) from exc
            if not linked:
                raise LinkingError(
                    f"Failed to link legal basis {legal_basis.id} "
                    f"to requirement {requirement.id}"
                )
        return record

    def _classify_and_link(
        self,
        payload: IdentificationJobPayload,
        record: IdentificationRequirement,
        requirement: Requirement,
        legal_basis: LegalBasis,
        article: Article,
        result: IdentificationRunResult,
    ) -> None:
        try:
            verdict = self._classifier.classify(
                article,
                requirement,
                intelligence_level=payload.intelligence_level,
            )
        except ClassificationError as exc:
            logger.warning(
                "Artículo omitido: error de clasificación",
                extra={
                    "identification_id": payload.identification_id,
                    "requirement_id": requirement.id,
                    "legal_basis_id": legal_basis.id,
                    "article_id": article.id,
                    "retries_exhausted": exc.retries_exhausted,
                    "error": exc.message,
                },
            )
            metrics.record_classification_failure()
            result.skipped.append(
                SkippedArticle(
                    requirement_id=requirement.id,
                    legal_basis_id=legal_basis.id,
                    article_id=article.id,
                    reason=exc.message,
                    retries_exhausted=exc.retries_exhausted,
                )
            )
            return

        metrics.record_classification(verdict.label)
        classification = verdict.classification
        if classification is None:
            return

        try:
            linked = self._identifications.link_article(
                record.id, legal_basis.id, article.id, classification
            )
        except Exception as exc:
            raise LinkingError(
                f"Failed to link article {article.id}: {exc}", original_error=exc
            ) from exc
        if not linked:
            raise LinkingError(
                f"Failed to link article {article.id} of legal basis "
                f"{legal_basis.id} as {classification.value}"
            )

        if classification is ArticleClassification.OBLIGATORY:
            result.obligatory_links += 1
        else:
            result.complementary_links += 1

    # =========================================================================
    # Helpers privados
    # =========================================================================

    @staticmethod
    def _check_cancelled(job: JobContext) -> None:
        if job.is_cancelled():
            raise JobCanceledError()

    @staticmethod
    def _missing_ids(wanted: Sequence[int], found: Sequence[int]) -> list[int]:
        found_set = set(found)
        return [i for i in dict.fromkeys(wanted) if i not in found_set]

    def _mark_failed(self, identification_id: int, exc: Exception) -> None:
        logger.warning(
            "Identificación fallida",
            extra={
                "identification_id": identification_id,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )
        try:
            self._identifications.update_status(
                identification_id, IdentificationStatus.FAILED
            )
        except Exception:
            # R: El motivo original es el que debe llegar a la cola.
            logger.exception(
                "No se pudo marcar la identificación como Failed",
                extra={"identification_id": identification_id},
            )
