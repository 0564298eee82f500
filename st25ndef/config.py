"""Configuration management for the ST25 NDEF tool."""

import logging
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .ndef.records import TextEncoding

logger = logging.getLogger(__name__)


class Config(BaseSettings):
    """
    Application configuration loaded from environment variables.

    Uses pydantic-settings for validation and .env file support. Variables
    are prefixed with ``ST25_`` (e.g. ``ST25_TAG_IMAGE``).
    """

    model_config = SettingsConfigDict(
        env_prefix="ST25_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Tag Session Configuration
    tag_image: Optional[str] = Field(
        None,
        description="Path of the Type 5 tag memory image used as the tag",
    )
    image_size: int = Field(
        default=512,
        description="Memory size in bytes for newly formatted tag images",
    )
    poll_timeout: float = Field(
        default=20.0,
        description="Seconds to wait for a tag",
    )

    # Record Configuration
    text_language: str = Field(
        default="en",
        description="Language code for written Text records",
    )
    text_encoding: Literal["UTF8", "UTF16"] = Field(
        default="UTF8",
        description="Encoding for written Text records",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Log file path",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("text_language")
    @classmethod
    def validate_text_language(cls, v: str) -> str:
        """Language codes are ASCII and at most 63 bytes."""
        if not v.isascii() or len(v) > 63:
            raise ValueError(f"Invalid language code: {v!r}")
        return v

    @field_validator("poll_timeout")
    @classmethod
    def validate_poll_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Poll timeout must be positive")
        return v

    @field_validator("image_size")
    @classmethod
    def validate_image_size(cls, v: int) -> int:
        if v < 16:
            raise ValueError("Tag image must be at least 16 bytes")
        return v

    @property
    def encoding(self) -> TextEncoding:
        return TextEncoding.UTF16 if self.text_encoding == "UTF16" else TextEncoding.UTF8

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        if self.log_file:
            log_path = Path(self.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        handlers = []

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(log_format))
        handlers.append(console_handler)

        if self.log_file:
            try:
                file_handler = logging.FileHandler(self.log_file)
                file_handler.setFormatter(logging.Formatter(log_format))
                handlers.append(file_handler)
            except OSError as e:
                logger.warning(f"Could not create log file: {e}")

        logging.basicConfig(
            level=getattr(logging, self.log_level),
            format=log_format,
            handlers=handlers,
        )

        logger.debug(f"Logging configured: level={self.log_level}")
        if self.log_file:
            logger.info(f"Log file: {self.log_file}")

    def __repr__(self) -> str:
        return (
            f"Config(tag_image={self.tag_image}, "
            f"text_language={self.text_language}, "
            f"log_level={self.log_level})"
        )


def load_config(**overrides) -> Config:
    """
    Load configuration from environment variables and .env file.

    Args:
        **overrides: Field values taking precedence over the environment

    Returns:
        Config instance

    Raises:
        ValueError: If configuration is invalid
    """
    try:
        config = Config(**{k: v for k, v in overrides.items() if v is not None})
        logger.debug("Configuration loaded successfully")
        return config
    except ValueError as e:
        logger.error(f"Failed to load configuration: {e}")
        raise


def get_config() -> Config:
    """Get a configuration instance from the environment."""
    return load_config()
