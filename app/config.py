# app/config.py
import os
import sys
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


def default_image_dir() -> Path:
    """Platform application-support directory for stored snag photos"""
    home = Path.home()
    if sys.platform == "darwin":
        base = home / "Library" / "Application Support"
    elif sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", home / "AppData" / "Roaming"))
    else:
        base = Path(os.environ.get("XDG_DATA_HOME", home / ".local" / "share"))
    return base / "SnagCapture" / "SnagImages"


class Settings(BaseSettings):
    """Environment settings"""

    # API
    app_name: str = "SnagCapture API"
    debug: bool = False
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Database
    database_url: str = "sqlite:///./data/snags.db"

    # Photo storage
    image_dir: Path = Field(default_factory=default_image_dir)
    jpeg_quality: float = 0.8
    max_upload_size: int = 20 * 1024 * 1024  # 20MB
    max_photos_per_upload: int = 16
    cleanup_orphans_on_startup: bool = True
    seed_sample_data: bool = False

    # Logging
    log_dir: str = "logs"
    log_level: str = "INFO"

    @field_validator("jpeg_quality")
    def validate_jpeg_quality(cls, v):
        if not 0 < v <= 1:
            raise ValueError("JPEG_QUALITY must be in (0, 1]")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False

# singleton instance
settings = Settings()
