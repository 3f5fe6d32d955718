"""
Name: Article Classifier Tests

Responsibilities:
  - Validate Gemini adapter: model per intelligence level, structured
    output parsing, error translation to ClassificationError
  - Validate rate-limit exhaustion surfaces retries_exhausted=True
  - Validate deterministic fake classifier (keyword matching)

Notes:
  - google.genai client is mocked (no network)
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from compliance_backend.crosscutting.exceptions import ClassificationError
from compliance_backend.domain.value_objects import IntelligenceLevel
from compliance_backend.infrastructure.services import (
    FakeArticleClassifier,
    GoogleArticleClassifier,
    create_rate_limit_retry,
)
from compliance_backend.infrastructure.services.llm.google_article_classifier import (
    ArticleClassificationSchema,
    build_classification_prompt,
)


pytestmark = pytest.mark.unit


def _no_retry(fn):
    return fn


def _classifier(client, **kwargs) -> GoogleArticleClassifier:
    return GoogleArticleClassifier(
        client=client, retry_decorator=kwargs.pop("retry_decorator", _no_retry), **kwargs
    )


def test_google_classifier_uses_parsed_response(catalog_factory):
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(
        parsed=ArticleClassificationSchema(is_obligatory=True, is_complementary=True),
        text=None,
    )
    classifier = _classifier(client)

    verdict = classifier.classify(
        catalog_factory.article(11, 1),
        catalog_factory.requirement(100),
        intelligence_level=IntelligenceLevel.HIGH,
    )

    assert verdict.is_obligatory is True
    assert verdict.is_complementary is True
    kwargs = client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-1.5-pro"
    assert kwargs["config"].temperature == 0


def test_google_classifier_low_level_uses_small_model(catalog_factory):
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(
        parsed=None, text='{"is_obligatory": false, "is_complementary": true}'
    )
    classifier = _classifier(
        client, models={IntelligenceLevel.LOW: "gemini-test-flash"}
    )

    verdict = classifier.classify(
        catalog_factory.article(11, 1), catalog_factory.requirement(100)
    )

    assert verdict.is_obligatory is False
    assert verdict.is_complementary is True
    assert client.models.generate_content.call_args.kwargs["model"] == "gemini-test-flash"


def test_google_classifier_invalid_json_raises(catalog_factory):
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(
        parsed=None, text="not json"
    )
    classifier = _classifier(client)

    with pytest.raises(ClassificationError) as exc_info:
        classifier.classify(catalog_factory.article(11, 1), catalog_factory.requirement(100))

    assert exc_info.value.retries_exhausted is False


def test_google_classifier_provider_error_fails_fast(catalog_factory):
    client = MagicMock()
    client.models.generate_content.side_effect = RuntimeError("connection reset")
    classifier = _classifier(client)

    with pytest.raises(ClassificationError) as exc_info:
        classifier.classify(catalog_factory.article(11, 1), catalog_factory.requirement(100))

    assert exc_info.value.retries_exhausted is False
    assert client.models.generate_content.call_count == 1


def test_google_classifier_rate_limit_exhausted(catalog_factory):
    class ResourceExhausted(Exception):
        code = 429

    sleeps: list[float] = []
    client = MagicMock()
    client.models.generate_content.side_effect = ResourceExhausted("slow down")
    client.models.generate_content.__name__ = "generate_content"
    classifier = _classifier(
        client,
        retry_decorator=create_rate_limit_retry(
            max_retries=3, base_delay=1, sleep=sleeps.append
        ),
    )

    with pytest.raises(ClassificationError) as exc_info:
        classifier.classify(catalog_factory.article(11, 1), catalog_factory.requirement(100))

    assert exc_info.value.retries_exhausted is True
    assert client.models.generate_content.call_count == 4
    assert sleeps == [1, 2, 4]


def test_google_classifier_requires_api_key(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

    with pytest.raises(ClassificationError, match="GOOGLE_API_KEY"):
        GoogleArticleClassifier(api_key="")


def test_prompt_includes_article_and_requirement(catalog_factory):
    article = catalog_factory.article(11, 1, name="Art. 5", description="Manejo de residuos")
    requirement = catalog_factory.requirement(
        100, name="Plan de manejo", mandatory_keywords=("residuos", "plan")
    )

    prompt = build_classification_prompt(article, requirement)

    assert "Art. 5" in prompt
    assert "Manejo de residuos" in prompt
    assert "Plan de manejo" in prompt
    assert "residuos, plan" in prompt


def test_fake_classifier_matches_keywords(catalog_factory):
    classifier = FakeArticleClassifier()
    requirement = catalog_factory.requirement(
        100, mandatory_keywords=("residuos",), complementary_keywords=("reporte",)
    )

    both = classifier.classify(
        catalog_factory.article(1, 1, description="Residuos y reporte anual"), requirement
    )
    neither = classifier.classify(
        catalog_factory.article(2, 1, description="Disposiciones generales"), requirement
    )

    assert (both.is_obligatory, both.is_complementary) == (True, True)
    assert neither.classification is None
