"""Application configuration."""
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.
    
    Environment variables take precedence over .env file.
    This makes it compatible with Docker (uses env vars) and 
    local development (uses .env file).
    """
    
    APP_NAME: str = "klutterbox"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    
    # Database
    DATABASE_URL: str = "sqlite:///./data/klutterbox.db"
    
    # Files
    UPLOAD_DIR: Path = Path("./uploads")
    STATIC_DIR: Optional[Path] = None
    
    # Inventory
    DEFAULT_BOX_CODE: str = "box1"
    DEFAULT_BOX_LABEL: str = "Default Box 1"
    SEARCH_RESULT_LIMIT: int = 200
    BATCH_MAX_ITEMS: int = 100
    
    # Vision suggestions (OpenAI-compatible chat completions)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o"
    VISION_TIMEOUT_SECONDS: float = 30.0
    
    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    SSL_KEY_FILE: Optional[Path] = None
    SSL_CERT_FILE: Optional[Path] = None
    SSL_PORT: int = 3443
    CORS_ORIGINS: List[str] = ["*"]
    
    model_config = SettingsConfigDict(
        # Only load .env file if it exists (for local dev)
        # Docker will use environment variables directly
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        # Environment variables take precedence over .env file
        extra="ignore",
    )


settings = Settings()
