"""
===============================================================================
USE CASE: Update Requirements Identification (rename / describe)
===============================================================================

Name:
    Update Identification Use Case

Business Goal:
    Permitir renombrar o cambiar la descripción de una identificación.
    El estado NO se toca acá (solo lo cambia el orquestador).

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    UpdateIdentificationUseCase

Responsibilities:
    - Validar nombre no vacío (si viene).
    - Verificar existencia (NOT_FOUND).
    - Verificar unicidad del nombre excluyendo la propia identificación (CONFLICT).
    - Persistir cambios.

Collaborators:
    - IdentificationRepository (find_by_id, exists_by_name_excluding_id, update)
===============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final

from ....domain.repositories import IdentificationRepository
from .identification_results import (
    IdentificationError,
    IdentificationErrorCode,
    UpdateIdentificationResult,
)

logger = logging.getLogger(__name__)

_RESOURCE_IDENTIFICATION: Final[str] = "Requirements Identification"

_MSG_NOT_FOUND: Final[str] = "Requirements Identification not found"
_MSG_NAME_EXISTS: Final[str] = (
    "A Requirements Identification with this name already exists"
)
_MSG_NAME_EMPTY: Final[str] = "Identification name cannot be empty"


@dataclass(frozen=True)
class UpdateIdentificationInput:
    """
    DTO de entrada. Campos None = sin cambios.
    """

    identification_id: int
    name: str | None = None
    description: str | None = None


class UpdateIdentificationUseCase:
    """Use Case (Command): rename / describe de una identificación."""

    def __init__(self, identification_repository: IdentificationRepository) -> None:
        self._identifications = identification_repository

    def execute(
        self, input_data: UpdateIdentificationInput
    ) -> UpdateIdentificationResult:
        name = input_data.name
        if name is not None:
            name = name.strip()
            if not name:
                return self._error(
                    IdentificationErrorCode.VALIDATION_ERROR, _MSG_NAME_EMPTY
                )

        if self._identifications.find_by_id(input_data.identification_id) is None:
            return self._not_found()

        if name is not None and self._identifications.exists_by_name_excluding_id(
            name, input_data.identification_id
        ):
            return self._error(IdentificationErrorCode.CONFLICT, _MSG_NAME_EXISTS)

        updated = self._identifications.update(
            input_data.identification_id,
            name=name,
            description=input_data.description,
        )
        if updated is None:
            return self._not_found()

        logger.info(
            "Identificación actualizada",
            extra={"identification_id": updated.id},
        )
        return UpdateIdentificationResult(identification=updated)

    @staticmethod
    def _not_found() -> UpdateIdentificationResult:
        return UpdateIdentificationResult(
            error=IdentificationError(
                code=IdentificationErrorCode.NOT_FOUND,
                message=_MSG_NOT_FOUND,
                resource=_RESOURCE_IDENTIFICATION,
            )
        )

    @staticmethod
    def _error(
        code: IdentificationErrorCode, message: str
    ) -> UpdateIdentificationResult:
        return UpdateIdentificationResult(
            error=IdentificationError(
                code=code, message=message, resource=_RESOURCE_IDENTIFICATION
            )
        )
