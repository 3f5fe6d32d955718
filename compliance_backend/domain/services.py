"""
===============================================================================
TARJETA CRC — domain/services.py
===============================================================================

Módulo:
    Puertos de Servicios Externos (Protocols)

Responsabilidades:
    - Definir el contrato del clasificador de artículos (proveedor LLM).
    - Definir el contrato de la cola de jobs de identificación.
    - Definir el contexto que el worker entrega al handler (progreso +
      token de cancelación cooperativa).

Colaboradores:
    - infrastructure/services/llm/*: clasificadores concretos.
    - infrastructure/queue/*: colas concretas (RQ / in-memory).
    - application/usecases/identification/*: consumen estos puertos.

Reglas:
    - SOLO interfaces: nada de implementación.
    - Firmas estables y provider-agnostic.
===============================================================================
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, Sequence

from .entities import Article, Requirement
from .jobs import IdentificationJobPayload, Job, JobState
from .value_objects import ClassificationVerdict, IntelligenceLevel


class ArticleClassifier(Protocol):
    """Contrato para decidir si un artículo es obligatorio/complementario."""

    def classify(
        self,
        article: Article,
        requirement: Requirement,
        *,
        intelligence_level: IntelligenceLevel = IntelligenceLevel.LOW,
    ) -> ClassificationVerdict:
        """
        Raises:
            ClassificationError: proveedor caído, respuesta inválida o
            rate-limit persistente tras los reintentos.
        """
        ...


class JobContext(Protocol):
    """Lo que el handler ve del job en ejecución."""

    @property
    def id(self) -> str: ...

    @property
    def payload(self) -> IdentificationJobPayload: ...

    def report_progress(self, percent: int) -> None:
        """Publica progreso 0..100 (visible para getJobStatus)."""
        ...

    def is_cancelled(self) -> bool:
        """True si alguien canceló el job mientras corría."""
        ...


# Handler del worker: recibe el contexto y devuelve el resultado serializable.
JobHandler = Callable[[JobContext], "dict[str, Any] | None"]


class IdentificationJobQueue(Protocol):
    """
    Cola durable de jobs de identificación.

    - enqueue nunca bloquea por la ejecución.
    - A lo sumo un intento por job (sin reencolado automático).
    """

    def enqueue(self, payload: IdentificationJobPayload) -> str: ...

    def get_job(self, job_id: str) -> Job | None: ...

    def get_jobs_by_states(self, states: Sequence[JobState]) -> list[Job]: ...

    def cancel(self, job_id: str) -> bool:
        """
        Returns:
            True si se canceló; False si el job no existe.

        Raises:
            JobNotCancelableError: el job ya está en estado terminal.
        """
        ...
