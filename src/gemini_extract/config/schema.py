"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces
configuration values from the environment and programmatic overrides into the
correct types with proper defaults.
"""

from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gemini_extract import constants


class ExtractSettings(BaseSettings):
    """Pydantic settings schema for the extraction pipeline.

    Integrates with environment variables using the GEMINI_ prefix, so
    ``GEMINI_API_KEY`` populates ``api_key`` and ``GEMINI_BATCH_WIDTH``
    populates ``batch_width``.
    """

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=None,  # .env files are loaded explicitly by resolve_config
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Remote extraction ---

    api_key: str | None = Field(
        default=None,
        description="Google Gemini API key",
    )

    model: str = Field(
        default=constants.DEFAULT_MODEL,
        description="Gemini model identifier",
        min_length=1,
    )

    temperature: float = Field(
        default=constants.DEFAULT_TEMPERATURE,
        ge=0.0,
        le=2.0,
    )

    max_output_tokens: int = Field(
        default=constants.DEFAULT_MAX_OUTPUT_TOKENS,
        ge=1,
    )

    # --- Batching and retries ---

    batch_width: int = Field(
        default=constants.BATCH_WIDTH,
        description="Chunks processed concurrently per batch",
        ge=1,
    )

    batch_delay_seconds: float = Field(
        default=constants.BATCH_DELAY_SECONDS,
        ge=0.0,
    )

    max_attempts: int = Field(
        default=constants.MAX_CHUNK_ATTEMPTS,
        description="Attempts per chunk before it is marked failed",
        ge=1,
    )

    backoff_base_seconds: float = Field(
        default=constants.BACKOFF_BASE_SECONDS,
        ge=0.0,
    )

    # --- Conversion ---

    converter_timeout_seconds: float = Field(
        default=constants.CONVERTER_TIMEOUT_SECONDS,
        gt=0.0,
    )

    converter_attempts: int = Field(
        default=constants.CONVERTER_MAX_ATTEMPTS,
        ge=1,
    )

    converter_retry_delay_seconds: float = Field(
        default=constants.CONVERTER_RETRY_DELAY_SECONDS,
        ge=0.0,
    )

    pdf_min_size: int = Field(
        default=constants.PDF_MIN_SIZE,
        description="Smallest PDF, in bytes, accepted as a real conversion",
        ge=1,
    )

    # --- Validation Rules ---

    @field_validator("api_key", mode="before")
    @classmethod
    def blank_key_is_missing(cls, v: Any) -> Any:
        """Treat empty or whitespace-only keys as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_pdf_min_size(self) -> "ExtractSettings":
        """A valid PDF must at least hold its own signature."""
        if self.pdf_min_size < len(constants.PDF_SIGNATURE):
            raise ValueError(
                f"pdf_min_size must be >= {len(constants.PDF_SIGNATURE)} bytes"
            )
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary of resolved values."""
        return self.model_dump()
