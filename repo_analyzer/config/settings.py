import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Load .env file if it exists (for mounted secret files)
for env_path in [Path(".env"), Path("/etc/secrets/.env")]:
    if env_path.exists():
        load_dotenv(env_path)
        logger.info(f"Loaded environment from {env_path}")
        break
else:
    load_dotenv()


class Settings(BaseSettings):
    # GitLab Config
    GITLAB_URL: str = Field("https://gitlab.com")
    GITLAB_TOKEN: Optional[str] = Field(None)  # Personal or project access token
    GITLAB_TIMEOUT: float = Field(30.0)  # Seconds per request

    # PostgreSQL Database URL (for SQLAlchemy)
    DATABASE_URL: str = Field("postgresql://localhost:5432/repo_analyzer")

    # Commit sync settings
    SYNC_BATCH_PAGES: int = Field(10)  # Pages per checkpointed batch
    SYNC_PAGE_SIZE: int = Field(100)  # GitLab caps per_page at 100
    SYNC_PAGE_DELAY_SECONDS: float = Field(0.2)  # Pause between page requests
    SYNC_WITH_STATS: bool = Field(True)  # Request additions/deletions per commit

    # Scheduled sync
    ENABLE_SCHEDULED_SYNC: bool = Field(False)
    SYNC_INTERVAL_MINUTES: int = Field(60)

    # General App Settings
    LOG_LEVEL: str = Field("INFO")
    ENVIRONMENT: str = Field("production")  # development, staging, production

    @field_validator("SYNC_PAGE_SIZE")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError("SYNC_PAGE_SIZE must be between 1 and 100")
        return v

    @field_validator("SYNC_BATCH_PAGES")
    @classmethod
    def validate_batch_pages(cls, v: int) -> int:
        if v < 1:
            raise ValueError("SYNC_BATCH_PAGES must be at least 1")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown LOG_LEVEL '{v}'")
        return level

    # Property aliases for consistent case access
    @property
    def gitlab_url(self):
        return self.GITLAB_URL.rstrip("/")

    @property
    def gitlab_token(self):
        return self.GITLAB_TOKEN

    @property
    def async_database_url(self) -> str:
        """DATABASE_URL rewritten for the asyncpg driver."""
        url = self.DATABASE_URL
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)
        return url

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields from environment


# Create a single instance for easy import
settings = Settings()
