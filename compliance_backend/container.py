"""
===============================================================================
TARJETA CRC — compliance_backend/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer dependencias (repositorios, clasificador, cola) siguiendo DIP.
  - Exponer factories para la capa HTTP (externa) y para el worker.
  - Mantener singletons con caching (lru_cache) para recursos pesados.
  - Centralizar decisiones runtime basadas en Settings (config).

Colaboradores:
  - crosscutting.config.get_settings
  - domain.repositories.* / domain.services.* (puertos)
  - infrastructure.* (implementaciones)
  - application.usecases.identification.* (casos de uso)

Patrones aplicados:
  - Composition Root
  - Dependency Inversion (use cases dependen de puertos)
  - Lazy singletons con lru_cache

Notas:
  - Este archivo NO contiene lógica de negocio.
  - APP_ENV=test => catálogo, identificaciones y cola in-memory.
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from redis import Redis

from .application.usecases.identification import (
    CancelIdentificationJobUseCase,
    CheckPendingJobsUseCase,
    DeleteArticleUseCase,
    DeleteIdentificationUseCase,
    DeleteLegalBasisUseCase,
    DeleteRequirementUseCase,
    GetIdentificationJobStatusUseCase,
    RunIdentificationUseCase,
    StartIdentificationUseCase,
    UpdateIdentificationUseCase,
)
from .crosscutting.config import get_settings
from .domain.repositories import (
    ArticleRepository,
    IdentificationRepository,
    LegalBasisRepository,
    RequirementRepository,
    SubjectAspectCatalog,
)
from .domain.services import ArticleClassifier, IdentificationJobQueue
from .domain.value_objects import IntelligenceLevel
from .infrastructure.queue import (
    InMemoryIdentificationJobQueue,
    QueueConfigurationError,
    RQIdentificationJobQueue,
    RQQueueConfig,
)
from .infrastructure.repositories import (
    InMemoryCatalog,
    InMemoryIdentificationRepository,
    PostgresArticleRepository,
    PostgresIdentificationRepository,
    PostgresLegalBasisRepository,
    PostgresRequirementRepository,
    PostgresSubjectAspectCatalog,
)
from .infrastructure.services import (
    FakeArticleClassifier,
    GoogleArticleClassifier,
    create_rate_limit_retry,
)

# =============================================================================
# Helpers internos
# =============================================================================


def _is_test_env() -> bool:
    """
    Determina si estamos en entorno de test.

    Regla:
      - app_env ∈ {"test", "testing", "ci"} => se favorecen in-memory adapters.
    """
    return get_settings().is_test_env()


# =============================================================================
# Repositorios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_in_memory_catalog() -> InMemoryCatalog:
    """Catálogo en memoria compartido por los repos de test."""
    return InMemoryCatalog()


@lru_cache(maxsize=1)
def get_legal_basis_repository() -> LegalBasisRepository:
    if _is_test_env():
        return get_in_memory_catalog().legal_bases
    return PostgresLegalBasisRepository()


@lru_cache(maxsize=1)
def get_article_repository() -> ArticleRepository:
    if _is_test_env():
        return get_in_memory_catalog().articles
    return PostgresArticleRepository()


@lru_cache(maxsize=1)
def get_requirement_repository() -> RequirementRepository:
    if _is_test_env():
        return get_in_memory_catalog().requirements
    return PostgresRequirementRepository()


@lru_cache(maxsize=1)
def get_subject_catalog() -> SubjectAspectCatalog:
    if _is_test_env():
        return get_in_memory_catalog().subjects
    return PostgresSubjectAspectCatalog()


@lru_cache(maxsize=1)
def get_identification_repository() -> IdentificationRepository:
    """Repositorio de identificaciones (in-memory en test; Postgres en runtime)."""
    if _is_test_env():
        return InMemoryIdentificationRepository()
    return PostgresIdentificationRepository()


# =============================================================================
# Servicios externos (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_article_classifier() -> ArticleClassifier:
    """Clasificador de artículos (fake si FAKE_LLM está habilitado)."""
    settings = get_settings()
    if settings.fake_llm:
        return FakeArticleClassifier()
    return GoogleArticleClassifier(
        api_key=settings.google_api_key,
        models={
            IntelligenceLevel.HIGH: settings.classifier_model_high,
            IntelligenceLevel.LOW: settings.classifier_model_low,
        },
        retry_decorator=create_rate_limit_retry(
            max_retries=settings.classifier_rate_limit_max_retries,
            base_delay=settings.classifier_backoff_base_seconds,
        ),
    )


# =============================================================================
# Adapters de infraestructura (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_redis_connection() -> Redis:
    """
    Conexión Redis compartida por productor y worker.

    Raises:
        QueueConfigurationError: REDIS_URL vacío.
    """
    settings = get_settings()
    if not settings.redis_url.strip():
        raise QueueConfigurationError("REDIS_URL is required for the job queue")
    return Redis.from_url(
        settings.redis_url,
        socket_connect_timeout=2,
        socket_timeout=5,
        health_check_interval=30,
    )


@lru_cache(maxsize=1)
def get_identification_queue() -> IdentificationJobQueue:
    """Cola de identificaciones (in-memory en test; RQ/Redis en runtime)."""
    if _is_test_env():
        return InMemoryIdentificationJobQueue()

    settings = get_settings()
    config = RQQueueConfig(
        queue_name=settings.identification_queue_name,
        job_timeout_seconds=settings.identification_job_timeout_seconds,
        result_ttl_seconds=settings.identification_result_ttl_seconds,
        failure_ttl_seconds=settings.identification_failure_ttl_seconds,
    )
    return RQIdentificationJobQueue(redis=get_redis_connection(), config=config)


# =============================================================================
# Casos de uso (factory por request / por job)
# =============================================================================


def get_start_identification_use_case() -> StartIdentificationUseCase:
    """Caso de uso: submission (alta + encolado)."""
    return StartIdentificationUseCase(
        legal_basis_repository=get_legal_basis_repository(),
        article_repository=get_article_repository(),
        requirement_repository=get_requirement_repository(),
        subject_catalog=get_subject_catalog(),
        identification_repository=get_identification_repository(),
        job_queue=get_identification_queue(),
    )


def get_run_identification_use_case() -> RunIdentificationUseCase:
    """Caso de uso: orquestador (corre dentro del worker)."""
    settings = get_settings()
    return RunIdentificationUseCase(
        legal_basis_repository=get_legal_basis_repository(),
        requirement_repository=get_requirement_repository(),
        identification_repository=get_identification_repository(),
        classifier=get_article_classifier(),
        report_skipped_articles=settings.report_skipped_articles,
    )


def get_identification_job_status_use_case() -> GetIdentificationJobStatusUseCase:
    """Caso de uso: polling de estado del job."""
    return GetIdentificationJobStatusUseCase(job_queue=get_identification_queue())


def get_cancel_identification_job_use_case() -> CancelIdentificationJobUseCase:
    """Caso de uso: cancelar job."""
    return CancelIdentificationJobUseCase(
        job_queue=get_identification_queue(),
        identification_repository=get_identification_repository(),
    )


def get_check_pending_jobs_use_case() -> CheckPendingJobsUseCase:
    """Caso de uso: guard de jobs pendientes."""
    return CheckPendingJobsUseCase(
        job_queue=get_identification_queue(),
        legal_basis_repository=get_legal_basis_repository(),
        article_repository=get_article_repository(),
        requirement_repository=get_requirement_repository(),
        identification_repository=get_identification_repository(),
    )


def get_delete_identification_use_case() -> DeleteIdentificationUseCase:
    return DeleteIdentificationUseCase(
        identification_repository=get_identification_repository(),
        guard=get_check_pending_jobs_use_case(),
    )


def get_delete_legal_basis_use_case() -> DeleteLegalBasisUseCase:
    return DeleteLegalBasisUseCase(
        legal_basis_repository=get_legal_basis_repository(),
        guard=get_check_pending_jobs_use_case(),
    )


def get_delete_article_use_case() -> DeleteArticleUseCase:
    return DeleteArticleUseCase(
        article_repository=get_article_repository(),
        guard=get_check_pending_jobs_use_case(),
    )


def get_delete_requirement_use_case() -> DeleteRequirementUseCase:
    return DeleteRequirementUseCase(
        requirement_repository=get_requirement_repository(),
        guard=get_check_pending_jobs_use_case(),
    )


def get_update_identification_use_case() -> UpdateIdentificationUseCase:
    """Caso de uso: rename / describe."""
    return UpdateIdentificationUseCase(
        identification_repository=get_identification_repository()
    )
