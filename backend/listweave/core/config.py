"""Configuration settings for listweave.

Values are read from the environment (prefixed with ``LISTWEAVE_``) and from an
optional ``.env`` file.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings.

    Attributes:
        SITE_URL: Absolute URL of the site all request URLs are relative to
        BATCH_ENDPOINT: Path of the batch endpoint relative to SITE_URL
        BATCH_MAX_REQUESTS: Max requests sent in one batch envelope
        BATCH_REJECT_DUPLICATE_PENDING: Reject a second pending add for the same
            internal name in the same collection and batch
        HTTP_TIMEOUT: Timeout (seconds) for the HTTP client created by the executor
        HTTP_MAX_RETRIES: Attempts for a throttled or timed out batch envelope
        LOG_LEVEL: Root level for listweave loggers
        LOG_FORMAT: Optional logging format string replacing the default
    """

    SITE_URL: str = "https://localhost"
    BATCH_ENDPOINT: str = "_api/$batch"
    BATCH_MAX_REQUESTS: int = Field(default=100, ge=1)
    BATCH_REJECT_DUPLICATE_PENDING: bool = True

    HTTP_TIMEOUT: float = 30.0
    HTTP_MAX_RETRIES: int = Field(default=5, ge=1)

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="LISTWEAVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("SITE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the site URL so relative paths can be appended."""
        return v.rstrip("/")

    @field_validator("LOG_LEVEL")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        """Accept lowercase level names."""
        return v.upper()


settings = Settings()
