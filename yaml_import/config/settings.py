"""
Settings module for environment-aware configuration.

Manages the defaults used when composing YAML documents: the import root,
file encoding, cycle detection and log level.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="YAML_IMPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Base directory for relative import paths (defaults to the cwd)
    import_root: Optional[Path] = None

    # Encoding used to read imported files
    encoding: str = "utf-8"

    # Fail with CyclicImportError instead of exhausting the call stack
    detect_cycles: bool = True

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()
