"""
Servicios de infraestructura: clasificador de artículos y política de retry.
"""

from .llm import FakeArticleClassifier, GoogleArticleClassifier
from .retry import create_rate_limit_retry, is_rate_limit_error

__all__ = [
    "FakeArticleClassifier",
    "GoogleArticleClassifier",
    "create_rate_limit_retry",
    "is_rate_limit_error",
]
