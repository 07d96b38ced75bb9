"""
Configuration for the Asset Hierarchy Editor.

Uses pydantic-settings for environment variable loading.
"""

from pydantic import Field
from pydantic_settings import BaseSettings

from hierarchy.workbook import DEFAULT_EXPORT_FILENAME


class Settings(BaseSettings):
    """Editor configuration loaded from environment."""

    # Editor settings
    host: str = Field(default="0.0.0.0", description="Editor bind host")
    port: int = Field(default=8082, description="Editor bind port")

    # Workbook handling
    has_header: bool = Field(default=True, description="Imported sheets start with a header row")
    default_action: str = Field(default="INSERT", description="Export tag when none is given")
    export_filename: str = Field(default=DEFAULT_EXPORT_FILENAME, description="Download file name")
    max_upload_bytes: int = Field(
        default=20 * 1024 * 1024, description="Largest accepted workbook upload"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format (json, text)")

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins",
    )

    model_config = {"env_prefix": "HIERARCHY_EDITOR_"}
