"""
Configuration for the schema registry SDK.

Uses pydantic-settings for environment variable loading.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    """Client configuration loaded from environment."""

    # Registry connection
    url: str = Field(default="http://localhost:8081", description="Schema registry base URL")
    username: str | None = Field(default=None, description="Basic auth username")
    password: str | None = Field(default=None, description="Basic auth password", repr=False)
    timeout: float = Field(default=10.0, description="Transport timeout in seconds")

    # Client behaviour
    caching_enabled: bool = Field(default=True, description="Cache resolved schemas")
    codec_creation_enabled: bool = Field(
        default=False, description="Build codecs as soon as schemas are fetched"
    )

    model_config = {"env_prefix": "SCHEMA_REGISTRY_"}
