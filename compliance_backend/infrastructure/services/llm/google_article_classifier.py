"""
Name: Google Gemini Article Classifier (Adapter)

Qué hace
--------
Implementación concreta de `domain.services.ArticleClassifier` usando
Google GenAI (Gemini). Para cada par (artículo, requerimiento):
  - Arma un prompt de sistema (rol de experto legal) y uno de usuario con
    el artículo y las descripciones obligatoria / complementaria
  - Pide salida JSON restringida por schema (`ArticleClassificationSchema`)
    con temperatura 0
  - Reintenta SOLO rate-limits con backoff exponencial (tenacity, retry.py)
  - Cualquier otra falla -> ClassificationError inmediato

Arquitectura
------------
- Capa: Infrastructure
- Rol: Adapter hacia un proveedor externo (Google GenAI)

CRC (Class-Responsibility-Collaboration)
----------------------------------------
Class: GoogleArticleClassifier
Responsibilities:
  - Elegir el modelo según nivel de inteligencia (High / Low)
  - Validar la respuesta contra el schema y traducirla a ClassificationVerdict
  - Traducir errores del SDK a ClassificationError
Collaborators:
  - google.genai.Client: SDK externo
  - retry.create_rate_limit_retry: resiliencia
  - pydantic: schema de salida estructurada
Constraints:
  - Sin estado mutable por llamada: una instancia sirve a N workers
"""

from __future__ import annotations

import os
from typing import Mapping

from google import genai
from google.genai import types
from pydantic import BaseModel, ValidationError

from ....crosscutting.exceptions import ClassificationError
from ....crosscutting.logger import logger
from ....domain.entities import Article, Requirement
from ....domain.services import ArticleClassifier
from ....domain.value_objects import ClassificationVerdict, IntelligenceLevel
from ..retry import create_rate_limit_retry, is_rate_limit_error

SYSTEM_PROMPT = (
    "You are a legal expert specializing in identifying obligatory and "
    "complementary legal requirements."
)


class ArticleClassificationSchema(BaseModel):
    """Salida estructurada que se le exige al modelo."""

    is_obligatory: bool
    is_complementary: bool


def build_classification_prompt(article: Article, requirement: Requirement) -> str:
    """R: Prompt de usuario: artículo + requerimiento + reglas de decisión."""
    mandatory_keywords = ", ".join(requirement.mandatory_keywords) or "N/A"
    complementary_keywords = ", ".join(requirement.complementary_keywords) or "N/A"

    return f"""Analyze the following legal article and determine whether it is
obligatory and/or complementary for the given requirement.

Article:
- ID: {article.id}
- Title: {article.name}
- Content: {article.description or "N/A"}

Requirement:
- ID: {requirement.id}
- Name: {requirement.name}
- Mandatory Description: {requirement.mandatory_description or "N/A"}
- Complementary Description: {requirement.complementary_description or "N/A"}
- Mandatory Sentences: {requirement.mandatory_sentences or "N/A"}
- Complementary Sentences: {requirement.complementary_sentences or "N/A"}
- Mandatory Keywords: {mandatory_keywords}
- Complementary Keywords: {complementary_keywords}

Rules:
- "is_obligatory" is true when the article imposes a direct legal obligation
  that fulfills the mandatory description of the requirement.
- "is_complementary" is true when the article supports, details or extends the
  requirement as described in the complementary description.
- Both may be false if the article is unrelated to the requirement.

Respond only with JSON matching the schema."""


class GoogleArticleClassifier(ArticleClassifier):
    """R: Gemini implementation of ArticleClassifier."""

    DEFAULT_MODELS: Mapping[IntelligenceLevel, str] = {
        IntelligenceLevel.HIGH: "gemini-1.5-pro",
        IntelligenceLevel.LOW: "gemini-1.5-flash",
    }

    def __init__(
        self,
        api_key: str | None = None,
        *,
        client: genai.Client | None = None,
        models: Mapping[IntelligenceLevel, str] | None = None,
        retry_decorator=None,
    ) -> None:
        """
        R: Inicializa el clasificador (preferible vía DI).

        Args:
            api_key: API key (ideal: inyectar desde Settings)
            client: Cliente genai preconstruido (útil para tests)
            models: Modelo por nivel de inteligencia
            retry_decorator: Decorator tenacity (inyectable para tests)

        Raises:
            ClassificationError: si no hay API key y no se inyectó `client`.
        """
        resolved_key = (api_key or os.getenv("GOOGLE_API_KEY") or "").strip()
        if not resolved_key and client is None:
            logger.error("GoogleArticleClassifier: GOOGLE_API_KEY not configured")
            raise ClassificationError("GOOGLE_API_KEY not configured")

        self._client = client or genai.Client(api_key=resolved_key)
        self._models = {**self.DEFAULT_MODELS, **(models or {})}

        # R: Preconstruimos el wrapper con retry una sola vez.
        decorator = retry_decorator or create_rate_limit_retry()
        self._generate_content = decorator(self._client.models.generate_content)

        logger.info(
            "GoogleArticleClassifier initialized",
            extra={"models": {k.value: v for k, v in self._models.items()}},
        )

    def model_for(self, intelligence_level: IntelligenceLevel | None) -> str:
        return self._models[IntelligenceLevel.parse(intelligence_level)]

    def classify(
        self,
        article: Article,
        requirement: Requirement,
        *,
        intelligence_level: IntelligenceLevel = IntelligenceLevel.LOW,
    ) -> ClassificationVerdict:
        model_id = self.model_for(intelligence_level)
        config = types.GenerateContentConfig(
            system_instruction=SYSTEM_PROMPT,
            temperature=0,
            response_mime_type="application/json",
            response_schema=ArticleClassificationSchema,
        )

        try:
            response = self._generate_content(
                model=model_id,
                contents=build_classification_prompt(article, requirement),
                config=config,
            )
        except Exception as exc:
            rate_limited = is_rate_limit_error(exc)
            logger.warning(
                "Clasificación fallida en el proveedor",
                extra={
                    "article_id": article.id,
                    "requirement_id": requirement.id,
                    "model_id": model_id,
                    "rate_limited": rate_limited,
                    "error": str(exc),
                },
            )
            raise ClassificationError(
                f"Error classifying article {article.id} for requirement "
                f"{requirement.id}: {exc}",
                retries_exhausted=rate_limited,
                original_error=exc,
            ) from exc

        parsed = self._parse_response(response, article=article, requirement=requirement)
        return ClassificationVerdict(
            is_obligatory=parsed.is_obligatory,
            is_complementary=parsed.is_complementary,
        )

    @staticmethod
    def _parse_response(
        response, *, article: Article, requirement: Requirement
    ) -> ArticleClassificationSchema:
        """R: Usa `response.parsed` si el SDK ya validó; si no, valida el texto."""
        parsed = getattr(response, "parsed", None)
        if isinstance(parsed, ArticleClassificationSchema):
            return parsed

        text = getattr(response, "text", None) or ""
        try:
            return ArticleClassificationSchema.model_validate_json(text)
        except ValidationError as exc:
            raise ClassificationError(
                f"Invalid classification response for article {article.id} "
                f"and requirement {requirement.id}",
                original_error=exc,
            ) from exc
