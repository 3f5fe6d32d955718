"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Package)
-------------------------------------------------------------------------------
Nombre:
    infrastructure.queue

Responsabilidades:
    - Exponer los adaptadores de cola usados por DI (RQ / in-memory).
    - Mantener un API de import estable para el resto del backend.

Colaboradores:
    - rq_queue.RQIdentificationJobQueue / RQQueueConfig / RQJobContext
    - in_memory_queue.InMemoryIdentificationJobQueue
===============================================================================
"""

from .errors import QueueConfigurationError, QueueEnqueueError, QueueError
from .in_memory_queue import InMemoryIdentificationJobQueue
from .rq_queue import RQIdentificationJobQueue, RQJobContext, RQQueueConfig

__all__ = [
    "InMemoryIdentificationJobQueue",
    "QueueConfigurationError",
    "QueueEnqueueError",
    "QueueError",
    "RQIdentificationJobQueue",
    "RQJobContext",
    "RQQueueConfig",
]
