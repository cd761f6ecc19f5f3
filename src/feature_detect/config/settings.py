"""Settings and configuration management."""

import logging
from functools import lru_cache

from pydantic import Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_LOG_FORMATS = ("text", "json")


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application Settings
    app_name: str = Field("feature-detect", description="Application name")
    debug: bool = Field(False, description="Debug mode")
    log_level: str = Field("INFO", description="Logging level")
    log_format: str = Field("text", description="Log format: 'text' or 'json'")

    # Feature detection
    feature_cookie_name: str = Field(
        "d", min_length=1, description="Cookie written by the detection script"
    )
    default_width: PositiveInt = Field(
        1024, description="Screen width assumed when the client reports none"
    )
    default_height: PositiveInt = Field(
        768, description="Screen height assumed when the client reports none"
    )

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in _LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(_LOG_FORMATS)}")
        return value

    def model_post_init(self, __context) -> None:
        """Log the effective detection defaults."""
        logger.debug(
            "Feature cookie %r, default screen %dx%d",
            self.feature_cookie_name,
            self.default_width,
            self.default_height,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
