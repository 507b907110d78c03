from functools import lru_cache
from typing import List, Optional

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ASSIGNMENT_MESSAGE = "Você recebeu um contrato para assinatura eletrônica via CreatorConnect."


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="SignDesk")
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    allowed_origins: List[AnyHttpUrl] = Field(default_factory=list)

    # Assinafy e-signature provider
    assinafy_api_key: Optional[str] = Field(default=None, description="Assinafy API key (X-Api-Key header)")
    assinafy_workspace_id: Optional[str] = Field(default=None, description="Assinafy workspace/account identifier")
    assinafy_base_url: str = Field(default="https://api.assinafy.com.br/v1")
    assinafy_timeout_seconds: int = Field(default=30, gt=0, description="Per-request timeout in seconds")
    assinafy_poll_interval_seconds: float = Field(default=3.0, ge=0, description="Delay before each document status check")
    assinafy_max_poll_attempts: int = Field(default=20, ge=1, description="Status checks before giving up on processing")
    assinafy_abort_statuses: List[str] = Field(
        default_factory=list,
        description="Document statuses that abort processing instead of being polled through",
    )
    assinafy_max_document_size_mb: int = Field(default=25, gt=0, description="Largest PDF accepted for upload")
    assinafy_assignment_message: str = Field(default=DEFAULT_ASSIGNMENT_MESSAGE)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = value.upper()
        if level not in allowed_levels:
            raise ValueError(f"log_level must be one of {allowed_levels}, got '{value}'")
        return level

    @field_validator("assinafy_abort_statuses")
    @classmethod
    def normalize_abort_statuses(cls, value: List[str]) -> List[str]:
        return [status.strip().lower() for status in value if status and status.strip()]

    @property
    def assinafy_configured(self) -> bool:
        return bool(self.assinafy_api_key and self.assinafy_workspace_id)


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    The same instance is returned for the lifetime of the process so every
    adapter and route sees consistent configuration.

    Returns:
        Settings: The cached settings instance
    """
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the cached settings instance.

    Useful for testing or when configuration needs to be reloaded.
    """
    get_settings.cache_clear()
