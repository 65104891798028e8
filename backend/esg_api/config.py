"""
Application Configuration
Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional
from pathlib import Path

from esg_scrapers.crawlers.launcher import is_serverless_environment


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    database_url: str = "sqlite:///./data/esg_articles.db"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    # CORS Configuration
    cors_origins: List[str] = ["*"]

    # Browser Configuration
    headless: bool = True
    serverless: Optional[bool] = None  # None = detect from AWS_REGION / VERCEL
    chromium_executable_path: Optional[str] = None

    # Scraper Configuration
    detail_concurrency: int = 1
    output_dir: str = "."

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def is_serverless(self) -> bool:
        if self.serverless is None:
            return is_serverless_environment()
        return self.serverless

    # Paths
    @property
    def log_dir(self) -> Path:
        """Get the log directory path."""
        return Path(__file__).parent.parent.parent / "logs"

    @property
    def log_file(self) -> Path:
        return self.log_dir / "backend.log"

    class Config:
        # Only load .env if it exists to avoid permission errors
        env_file = ".env" if Path(".env").exists() else None
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
