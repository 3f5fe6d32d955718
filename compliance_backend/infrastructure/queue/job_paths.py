"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Rutas y Constantes de Jobs

Responsabilidades:
    - Centralizar el nombre de la cola y la ruta importable del job.
    - Centralizar las claves que productor y worker comparten en Redis.

Colaboradores:
    - rq_queue.RQIdentificationJobQueue / RQJobContext
    - worker.jobs.run_identification_job (job ejecutado por el worker)
===============================================================================
"""

from __future__ import annotations

# Nombre por defecto de la cola de identificaciones.
IDENTIFICATIONS_QUEUE_NAME: str = "identifications"

# Debe coincidir con la ubicación real del job (se valida al construir la cola).
RUN_IDENTIFICATION_JOB_PATH: str = "compliance_backend.jobs.run_identification_job"

# Claves de job.meta
META_PROGRESS: str = "progress"
META_IDENTIFICATION_ID: str = "identification_id"
META_FAILED_REASON: str = "failed_reason"

# Flag de cancelación cooperativa (clave Redis aparte de job.meta: el worker
# reescribe meta completo al publicar progreso).
CANCEL_KEY_PREFIX: str = "identifications:cancel:"

CANCELED_REASON: str = "Job was canceled"
