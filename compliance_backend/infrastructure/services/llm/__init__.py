from .fake_article_classifier import FakeArticleClassifier
from .google_article_classifier import (
    ArticleClassificationSchema,
    GoogleArticleClassifier,
)

__all__ = [
    "ArticleClassificationSchema",
    "FakeArticleClassifier",
    "GoogleArticleClassifier",
]
