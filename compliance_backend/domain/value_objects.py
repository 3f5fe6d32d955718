"""
===============================================================================
TARJETA CRC — domain/value_objects.py
===============================================================================

Módulo:
    Value Objects del dominio de identificación de requerimientos

Responsabilidades:
    - Enumerar estados y niveles estables (serializables como str).
    - Representar el veredicto del clasificador y su regla de precedencia.

Colaboradores:
    - domain.entities / domain.jobs
    - application.usecases.identification.*
    - infrastructure.services.llm.*

Reglas:
    - Sin IO. Inmutables.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class IdentificationStatus(str, Enum):
    """Ciclo de vida de una identificación: Active -> Completed | Failed."""

    ACTIVE = "Active"
    COMPLETED = "Completed"
    FAILED = "Failed"


class IntelligenceLevel(str, Enum):
    """Tier del modelo usado para clasificar (High = modelo grande)."""

    HIGH = "High"
    LOW = "Low"

    @classmethod
    def parse(cls, value: "str | IntelligenceLevel | None") -> "IntelligenceLevel":
        """
        Normaliza el nivel recibido del caller.

        - None / "" -> LOW (modelo más barato por defecto)
        - Case-insensitive ("high", "HIGH")

        Raises:
            ValueError: nivel desconocido.
        """
        if isinstance(value, IntelligenceLevel):
            return value
        raw = (value or "").strip()
        if not raw:
            return cls.LOW
        for level in cls:
            if level.value.lower() == raw.lower():
                return level
        raise ValueError(f"Unknown intelligence level: {value!r}")


class ArticleClassification(str, Enum):
    """Etiqueta del vínculo identificación↔base legal↔artículo."""

    OBLIGATORY = "Obligatory"
    COMPLEMENTARY = "Complementary"


class PendingEntityKind(str, Enum):
    """Entidades que el guard de jobs pendientes sabe resolver."""

    LEGAL_BASIS = "legal_basis"
    ARTICLE = "article"
    REQUIREMENT = "requirement"
    IDENTIFICATION = "identification"


@dataclass(frozen=True)
class ClassificationVerdict:
    """
    Respuesta del clasificador para un par (artículo, requerimiento).

    Ambos flags pueden venir en True: Obligatory tiene precedencia.
    """

    is_obligatory: bool
    is_complementary: bool

    @property
    def classification(self) -> ArticleClassification | None:
        if self.is_obligatory:
            return ArticleClassification.OBLIGATORY
        if self.is_complementary:
            return ArticleClassification.COMPLEMENTARY
        return None

    @property
    def label(self) -> str:
        """Etiqueta de baja cardinalidad para logs/métricas."""
        classification = self.classification
        return classification.value if classification else "Neither"
