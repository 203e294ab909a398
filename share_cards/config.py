"""Configuration management using Pydantic Settings."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Asset origin: HTTP base URL wins, otherwise a local directory is used
    asset_base_url: Optional[str] = Field(default=None, alias="ASSET_BASE_URL")
    assets_dir: Path = Field(default=Path("assets"), alias="ASSETS_DIR")
    fetch_timeout_s: float = Field(default=10.0, alias="FETCH_TIMEOUT_S")

    # Fonts are registered by family name; the URL is resolved against the asset origin
    font_faces: dict[str, str] = Field(
        default_factory=lambda: {
            "Montserrat": "/fonts/Montserrat-Regular.ttf",
            "Bebas Neue": "/fonts/BebasNeue-Regular.ttf",
        },
        alias="FONT_FACES",
    )

    # Output
    output_dir: Path = Field(default=Path("output"), alias="OUTPUT_DIR")
    output_format: str = Field(default="PNG", alias="OUTPUT_FORMAT")
    output_quality: float = Field(default=0.95, ge=0.0, le=1.0, alias="OUTPUT_QUALITY")
    png_compress_level: int = Field(default=6, ge=0, le=9, alias="PNG_COMPRESS_LEVEL")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    gcp_project_id: Optional[str] = Field(default=None, alias="GCP_PROJECT_ID")

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
