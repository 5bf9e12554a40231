from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


def _load_version() -> str:
    version_path = Path(__file__).resolve().parent / "VERSION"
    try:
        return version_path.read_text().strip()
    except FileNotFoundError:
        return "0.1.0"


class Settings(BaseSettings):
    """Application configuration using Pydantic settings."""

    # Database
    DATABASE_URL: str = "sqlite:///./data/starbite.db"

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list[str] = ["*"]
    CORS_ALLOW_HEADERS: list[str] = ["*"]

    # Application
    APP_NAME: str = "StarBite"
    APP_VERSION: str = _load_version()
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ── Authentication ─────────────────────────────────────────────────
    # No defaults: both secrets must come from the environment or .env
    ACCESS_TOKEN_SECRET_KEY: Optional[str] = None
    REFRESH_TOKEN_SECRET_KEY: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"

    # ── Images ─────────────────────────────────────────────────────────
    UPLOAD_DIR: str = "./data/uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"

    # ── Search ─────────────────────────────────────────────────────────
    DEFAULT_SEARCH_RADIUS_M: float = 2000.0

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
