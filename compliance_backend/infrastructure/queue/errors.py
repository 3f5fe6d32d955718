"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Errores Tipados de Cola

Responsabilidades:
    - Definir excepciones explícitas para los adaptadores de cola.
    - Permitir que submission distinga "broker caído" de errores de negocio.

Colaboradores:
    - rq_queue.RQIdentificationJobQueue
    - application.usecases.identification.start_identification (SERVICE_UNAVAILABLE)

Notas:
    - Cancelar un job terminado es un error de negocio: vive en
      crosscutting.exceptions.JobNotCancelableError, no acá.
===============================================================================
"""

from __future__ import annotations


class QueueError(Exception):
    """Error base del subsistema de colas."""

    code: str = "QUEUE_ERROR"


class QueueConfigurationError(QueueError):
    """Cola mal configurada (job path no importable, TTLs inválidos, etc.)."""

    code = "QUEUE_CONFIGURATION_ERROR"


class QueueEnqueueError(QueueError):
    """Falló la operación de encolar un job de identificación."""

    code = "QUEUE_ENQUEUE_ERROR"

    def __init__(
        self, message: str, *, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_error = original_error
