"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Provide defaults that match current pipeline behavior

Collaborators:
  - container.py: picks adapters (Postgres / in-memory, RQ, Gemini / fake)
  - worker/worker.py: queue name, concurrency, HTTP port
  - infrastructure/services/retry.py: rate-limit retry policy

Constraints:
  - Lives in crosscutting, NOT in domain/application
  - No business logic, pure configuration

Notes:
  - Singleton via lru_cache
  - Environment variables are the upper-cased field names
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_TEST_ENVS = {"test", "testing", "ci"}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        database_url: PostgreSQL connection string (required outside tests)
        redis_url: Redis connection string for the identification queue
        google_api_key: Google Gemini API key
        fake_llm: Use the deterministic keyword classifier (no network)
        app_env: Application environment (development/test/production)
        log_level: Root level for the JSON logger
        log_json: Emit JSON lines (False = plain text, handy locally)
        classifier_model_high: Gemini model for intelligence level High
        classifier_model_low: Gemini model for intelligence level Low
        classifier_rate_limit_max_retries: Retries after a rate-limit (default: 3)
        classifier_backoff_base_seconds: First backoff delay, doubled per retry
        identification_queue_name: RQ queue for identification jobs
        identification_concurrency: Jobs processed in parallel per worker process
        identification_job_timeout_seconds: Max run time of one job
        identification_result_ttl_seconds: How long finished jobs stay queryable
        identification_failure_ttl_seconds: How long failed jobs stay queryable
        report_skipped_articles: Include every skipped triple in the job result
        worker_http_port: Port for /healthz, /readyz and /metrics
    """

    # Required outside test environments (validated below)
    database_url: str = ""
    google_api_key: str = ""

    # Environment
    app_env: str = "development"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Testing/CI
    fake_llm: bool = False

    # Redis
    redis_url: str = ""

    # Database - Connection Pool
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 30000  # 30 seconds

    # Classifier
    classifier_model_high: str = "gemini-1.5-pro"
    classifier_model_low: str = "gemini-1.5-flash"
    classifier_rate_limit_max_retries: int = 3
    classifier_backoff_base_seconds: float = 1.0

    # Identification queue / worker
    identification_queue_name: str = "identifications"
    identification_concurrency: int = 1
    identification_job_timeout_seconds: int = 6 * 60 * 60
    identification_result_ttl_seconds: int = 24 * 60 * 60
    identification_failure_ttl_seconds: int = 7 * 24 * 60 * 60
    report_skipped_articles: bool = False

    # Worker HTTP
    worker_http_port: int = 8001

    @field_validator("identification_concurrency")
    @classmethod
    def concurrency_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("identification_concurrency must be >= 1")
        return v

    @field_validator("classifier_rate_limit_max_retries")
    @classmethod
    def retries_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("classifier_rate_limit_max_retries must be >= 0")
        return v

    @field_validator("classifier_backoff_base_seconds")
    @classmethod
    def backoff_must_be_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("classifier_backoff_base_seconds must be >= 0")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_valid(cls, v: str) -> str:
        level = (v or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("log_level must be DEBUG, INFO, WARNING, ERROR or CRITICAL")
        return level

    @model_validator(mode="after")
    def validate_ai_requirements(self):
        if not self.google_api_key and not self.fake_llm:
            raise ValueError("GOOGLE_API_KEY is required unless FAKE_LLM=1")
        return self

    @model_validator(mode="after")
    def validate_database_requirements(self):
        if not self.is_test_env() and not self.database_url.strip():
            raise ValueError("DATABASE_URL is required unless APP_ENV is test")
        return self

    def is_test_env(self) -> bool:
        return self.app_env.strip().lower() in _TEST_ENVS

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()
