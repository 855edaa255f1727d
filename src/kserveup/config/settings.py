"""
Application settings using Pydantic.

Provides environment-based configuration loading with KSERVEUP_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="KSERVEUP_",
        extra="ignore",
    )

    # Cluster access
    kubeconfig: str | None = None
    context: str | None = None
    in_cluster: bool = False
    field_manager: str = "kserveup"

    # Defaults for deployments
    namespace: str = "model-deploy-lab"

    # Readiness polling (seconds)
    poll_interval: float = 10.0
    poll_deadline: float = 300.0

    # Apply retries for transient control-plane errors
    apply_max_attempts: int = 3
    apply_backoff_seconds: float = 2.0

    # Smoke test
    smoke_timeout: float = 120.0
    smoke_verify_tls: bool = False

    # Logging
    log_level: str = "WARNING"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
