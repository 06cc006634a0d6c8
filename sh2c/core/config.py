"""
Translator configuration.

Centralized configuration management with environment variables
(prefix ``SH2C_``) and an optional ``.env`` file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Translator settings"""

    model_config = SettingsConfigDict(
        env_prefix="SH2C_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Output
    OUTPUT_PATH: str = "output.c"
    INDENT_UNIT: str = "    "

    # Generated program limits
    VARIABLE_BUFFER_SIZE: int = Field(default=256, ge=16)
    COMMAND_BUFFER_SIZE: int = Field(default=1024, ge=64)
    SHELL_PATH: str = "/bin/sh"

    # ls/pwd/whoami/date print their own name unless this is enabled
    RUN_INFORMATIONAL_BUILTINS: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # text or json
    LOG_FILE: Optional[str] = None

    # End-to-end harness
    C_COMPILER: str = "cc"
    COMPILE_TIMEOUT: float = 60.0
    RUN_TIMEOUT: float = 30.0


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
