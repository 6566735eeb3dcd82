"""
Configuration for the schema registry emulator.

Uses pydantic-settings for environment variable loading.
"""

from pydantic import Field
from pydantic_settings import BaseSettings

from srclient import Compatibility


class Settings(BaseSettings):
    """Emulator configuration loaded from environment."""

    # Bind address
    host: str = Field(default="0.0.0.0", description="Emulator bind host")
    port: int = Field(default=8081, description="Emulator bind port")

    # Catalog
    compatibility_level: Compatibility = Field(
        default=Compatibility.BACKWARD, description="Global compatibility level reported by /config"
    )
    seed: bool = Field(default=False, description="Start with the test1/test2 fixture schemas")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="text", description="'text' or 'json'")

    model_config = {"env_prefix": "SR_EMULATOR_"}
