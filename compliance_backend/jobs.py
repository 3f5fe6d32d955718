"""
===============================================================================
TARJETA CRC — compliance_backend/jobs.py (Entrypoints estables de jobs)
===============================================================================

Responsabilidades:
  - Exponer entrypoints de jobs con un path de import estable para RQ.
  - Centralizar exports para que el producer (queue) y el worker coincidan.

Colaboradores:
  - worker.jobs.run_identification_job

Patrones aplicados:
  - Facade / Re-export (entrypoint estable)

Notas:
  - RQ encola jobs por import path string. Este módulo existe para garantizar
    que "compliance_backend.jobs.run_identification_job" siempre sea resoluble.
===============================================================================
"""

from .worker.jobs import run_identification_job

__all__ = ["run_identification_job"]
