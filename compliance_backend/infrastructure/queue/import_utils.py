"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Validación de job paths importables

Responsabilidades:
    - Verificar que el "dotted path" que RQ guarda en Redis resuelva a un
      callable en el proceso worker.
    - Fail-fast al construir la cola, no al primer job que el worker toma.

Colaboradores:
    - rq_queue.RQIdentificationJobQueue
    - importlib
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache
from importlib import import_module


@lru_cache(maxsize=32)
def is_importable_dotted_path(dotted_path: str) -> bool:
    """
    True si "paquete.modulo.funcion" existe y es callable.

    Solo valida existencia; la firma la garantiza el test del worker.
    """
    module_name, _, attr_name = (dotted_path or "").rpartition(".")
    if not module_name or not attr_name:
        return False
    try:
        module = import_module(module_name)
    except ModuleNotFoundError:
        return False
    return callable(getattr(module, attr_name, None))
