# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for StudyTrack.
Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FirestoreSettings(BaseSettings):
    """Hosted document store configuration.

    Records are kept in Firestore collections, one document per logged
    session. Credentials are a deployment concern: either a service account
    key file or the ambient application default credentials.

    Attributes:
        project_id: Google Cloud project id (None uses the credential's project).
        credentials_path: Path to a service account JSON key.
        app_name: Name of the firebase_admin app to create or reuse.
    """

    model_config = SettingsConfigDict(
        env_prefix="FIRESTORE_",
        extra="ignore",
    )

    project_id: str | None = None
    credentials_path: str | None = None
    app_name: str = "[DEFAULT]"


class LLMSettings(BaseSettings):
    """Chat endpoint configuration using LiteLLM.

    The performance analyst talks to a Gemini model through LiteLLM; any
    LiteLLM model string works.

    Attributes:
        model: Model in LiteLLM format.
        google_api_key: Google AI API key.
        temperature: Sampling temperature for analyst replies.
        max_output_tokens: Token ceiling for analyst replies.
        intent_max_output_tokens: Token ceiling for search intent extraction.
        request_timeout: Request timeout in seconds.
        max_retries: Retry attempts handed to LiteLLM (0 means a failure is terminal).
    """

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    model: str = Field(
        default="gemini/gemini-2.5-flash",
        validation_alias="LLM_MODEL",
    )
    google_api_key: SecretStr | None = Field(
        default=None,
        validation_alias="GOOGLE_API_KEY",
    )
    temperature: float = 0.7
    max_output_tokens: int = 2048
    intent_max_output_tokens: int = 512
    request_timeout: float = 60.0
    max_retries: int = 0


class AnalyticsSettings(BaseSettings):
    """Thresholds used by the analytics pipeline.

    Defaults mirror the named constants in the analytics modules; any of
    them can be overridden with an ``ANALYTICS_`` environment variable.

    Attributes:
        min_topic_sessions: Sessions a topic needs before it is analysed.
        high_concern_accuracy: Topic accuracy below this is high concern.
        target_accuracy: Topic accuracy below this is at least medium concern.
        trend_margin: Accuracy points separating a trend from "stable".
        low_consistency_score: Consistency below this counts as erratic.
        low_attempt_sessions: Topics with fewer sessions get a ranking penalty.
        low_attempt_penalty: Points added to the concern score of sparse topics.
        consistency_scale: Multiplier on the accuracy spread in consistency scores.
        weak_topic_limit: Maximum weak topics shown on the dashboard.
        daily_question_target: Average questions per day the student aims for.
        improvement_threshold: Accuracy jump between buckets worth reporting.
        gap_days_threshold: Days without sessions that count as a long gap.
        mock_accuracy_threshold: Mock subject accuracy below this is weak.
        mock_min_attempts: Mock subjects seen fewer times are flagged.
    """

    model_config = SettingsConfigDict(
        env_prefix="ANALYTICS_",
        extra="ignore",
    )

    min_topic_sessions: int = 1
    high_concern_accuracy: float = 50.0
    target_accuracy: float = 70.0
    trend_margin: float = 5.0
    low_consistency_score: float = 60.0
    low_attempt_sessions: int = 2
    low_attempt_penalty: float = 20.0
    consistency_scale: float = 2.0
    weak_topic_limit: int = 10
    daily_question_target: float = 30.0
    improvement_threshold: float = 5.0
    gap_days_threshold: int = 3
    mock_accuracy_threshold: float = 65.0
    mock_min_attempts: int = 2


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        firestore: Document store settings.
        llm: Chat endpoint settings.
        analytics: Analytics threshold settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    firestore: FirestoreSettings = Field(default_factory=FirestoreSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production without store credentials.
        """
        if self.environment == "production":
            if not self.firestore.credentials_path and not self.firestore.project_id:
                raise ValueError(
                    "Firestore credentials must be configured in production. "
                    "Set FIRESTORE_CREDENTIALS_PATH or FIRESTORE_PROJECT_ID."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
