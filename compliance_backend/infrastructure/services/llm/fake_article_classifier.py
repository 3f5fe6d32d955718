"""
Name: Fake Article Classifier (Deterministic)

Responsibilities:
  - Provide deterministic verdicts without external API calls
  - Support offline development and CI (FAKE_LLM=1)

Notes:
  - Obligatory if any mandatory keyword appears in the article text
  - Complementary if any complementary keyword appears
  - Matching is case-insensitive over title + body
"""

from __future__ import annotations

from ....domain.entities import Article, Requirement
from ....domain.services import ArticleClassifier
from ....domain.value_objects import ClassificationVerdict, IntelligenceLevel


class FakeArticleClassifier(ArticleClassifier):
    """Deterministic classifier for tests and local dev."""

    def classify(
        self,
        article: Article,
        requirement: Requirement,
        *,
        intelligence_level: IntelligenceLevel = IntelligenceLevel.LOW,
    ) -> ClassificationVerdict:
        text = f"{article.name} {article.description}".lower()
        return ClassificationVerdict(
            is_obligatory=_matches(text, requirement.mandatory_keywords),
            is_complementary=_matches(text, requirement.complementary_keywords),
        )


def _matches(text: str, keywords: tuple[str, ...]) -> bool:
    return any(k.strip() and k.strip().lower() in text for k in keywords)
