"""
===============================================================================
ARCHIVO: crosscutting/metrics.py
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Métricas (Prometheus) del pipeline de identificación

Responsabilidades:
    - Definir métricas Prometheus en un registry propio.
    - Proveer funciones pequeñas y estables para registrar eventos/duraciones.
    - Cuidar cardinalidad (NO ids de identificación, NO ids de artículo).
    - Exponer helpers para generar la respuesta /metrics del worker.

Colaboradores:
    - worker/jobs: jobs procesados / fallidos / duración.
    - application.usecases.identification.run_identification: veredictos y saltos.
    - infrastructure/services/retry: reintentos por rate-limit.
    - worker/worker_server: endpoint /metrics.
===============================================================================
"""

from __future__ import annotations

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

# -----------------------------------------------------------------------------
# Métricas (variables globales)
# -----------------------------------------------------------------------------

_jobs_processed_total: Optional[Counter] = None
_jobs_failed_total: Optional[Counter] = None
_job_duration: Optional[Histogram] = None

_classifications_total: Optional[Counter] = None
_classification_retries_total: Optional[Counter] = None
_classification_failures_total: Optional[Counter] = None


def _init_metrics() -> None:
    """Inicializa métricas (una sola vez)."""
    global _jobs_processed_total, _jobs_failed_total, _job_duration
    global _classifications_total, _classification_retries_total
    global _classification_failures_total

    if _jobs_processed_total is not None:
        return

    # ------------------------
    # Worker
    # ------------------------
    _jobs_processed_total = Counter(
        "identification_jobs_processed_total",
        "Total de jobs de identificación procesados por el worker",
        ["status"],
        registry=_registry,
    )

    _jobs_failed_total = Counter(
        "identification_jobs_failed_total",
        "Total de jobs de identificación fallidos",
        registry=_registry,
    )

    # Jobs de varias horas: buckets largos.
    _job_duration = Histogram(
        "identification_job_duration_seconds",
        "Duración de un job de identificación (segundos)",
        buckets=(1.0, 5.0, 30.0, 60.0, 300.0, 900.0, 1800.0, 3600.0, 7200.0, 14400.0),
        registry=_registry,
    )

    # ------------------------
    # Clasificador
    # ------------------------
    _classifications_total = Counter(
        "article_classifications_total",
        "Artículos clasificados por veredicto",
        ["verdict"],
        registry=_registry,
    )

    _classification_retries_total = Counter(
        "classification_retries_total",
        "Reintentos del clasificador por rate-limit",
        registry=_registry,
    )

    _classification_failures_total = Counter(
        "classification_failures_total",
        "Artículos saltados por error de clasificación",
        registry=_registry,
    )


_init_metrics()


def record_job_processed(status: str) -> None:
    """Cuenta jobs procesados por status (COMPLETED / FAILED / CANCELED)."""
    if _jobs_processed_total:
        _jobs_processed_total.labels(status=status).inc()


def record_job_failed(count: int = 1) -> None:
    """Cuenta jobs fallidos."""
    if _jobs_failed_total:
        _jobs_failed_total.inc(count)


def observe_job_duration(duration_seconds: float) -> None:
    """Observa duración de un job."""
    if _job_duration:
        _job_duration.observe(duration_seconds)


def record_classification(verdict: str) -> None:
    """Cuenta veredictos: obligatory / complementary / neither."""
    if _classifications_total:
        _classifications_total.labels(verdict=(verdict or "unknown").lower()).inc()


def record_classification_retry(count: int = 1) -> None:
    if _classification_retries_total:
        _classification_retries_total.inc(count)


def record_classification_failure(count: int = 1) -> None:
    if _classification_failures_total:
        _classification_failures_total.inc(count)


# -----------------------------------------------------------------------------
# Exposición del endpoint /metrics
# -----------------------------------------------------------------------------


def get_metrics_response() -> tuple[bytes, str]:
    """Genera el body y content-type para /metrics."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST
