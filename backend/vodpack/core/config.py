"""Application configuration settings.

All configuration values are loaded from environment variables (.env file)
once, when this module is first imported.
"""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

from vodpack import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    PROJECT_NAME: str = "vodpack"
    VERSION: str = __version__
    API_PREFIX: str = "/api"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    BASE_URL: str = "http://localhost:3000"
    CORS_ORIGINS: list[str] = ["*"]

    # Storage root; uploads, hls and dash outputs live underneath it
    STORAGE_PATH: str = "./videos"
    MAX_UPLOAD_CHUNK_BYTES: int = 8 << 20

    # Encoder
    # HW_ACCEL: none, nvidia, intel, amd, apple (macos is an alias of apple)
    HW_ACCEL: str = "macos"
    FFMPEG_PATH: str = "ffmpeg"
    CANCEL_SIBLING_ON_FAILURE: bool = False

    # Tracing
    OTLP_ENDPOINT: Optional[str] = None

    @field_validator("BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
