"""Centralized configuration for payload-search using Pydantic Settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from payload_search.search.analyzers import get_analyzer


class Settings(BaseSettings):
    """Process-wide defaults loaded from ``PAYLOAD_SEARCH_*`` environment variables.

    Request-level values always win; these only fill in what a request
    leaves out.
    """

    model_config = SettingsConfigDict(
        env_prefix="PAYLOAD_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    default_field: str = Field(default="_all", min_length=1, description="Field searched when a request names none")
    default_analyzer: str = Field(default="standard", description="Analyzer used when a request names none")
    max_expansions: int = Field(
        default=50,
        ge=1,
        description="Maximum number of terms a prefix or fuzzy query expands to",
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @field_validator("default_analyzer")
    @classmethod
    def _check_analyzer(cls, value: str) -> str:
        get_analyzer(value)
        return value.lower()
