from pydantic_settings import BaseSettings
from dotenv import load_dotenv
import logging
import os
from pathlib import Path

_logger = logging.getLogger(__name__)

# Look for .env in api directory (parent of app directory)
api_dir = Path(__file__).parent.parent.parent
env_path = api_dir / ".env"

if env_path.exists():
    load_dotenv(env_path, override=True)
    _logger.info(f"Loaded .env file from: {env_path}")
else:
    # Fallback to current directory
    current_env = Path(".env")
    if current_env.exists():
        load_dotenv(current_env, override=True)
        _logger.info(f"Loaded .env file from: {current_env.absolute()}")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database - hosting platforms usually provide DATABASE_URL (uppercase)
    database_url: str = ""

    # API
    api_v1_prefix: str = "/api/v1"

    # CORS
    cors_origins: list[str] = ["*"]

    # Runtime
    environment: str = "production"
    log_level: str = "INFO"

    # Topic catalog used for card provisioning (defaults to app/data/topics.json)
    topic_catalog_path: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = False

    def __init__(self, **kwargs):
        # Ensure we read DATABASE_URL from environment even when it is uppercase only
        if not kwargs.get("database_url"):
            kwargs["database_url"] = os.getenv("DATABASE_URL", "")
        if not kwargs.get("topic_catalog_path"):
            kwargs["topic_catalog_path"] = os.getenv("TOPIC_CATALOG_PATH", "")
        super().__init__(**kwargs)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")


# Create settings instance
settings = Settings()

# Validate required DATABASE_URL
if not settings.database_url:
    raise ValueError("DATABASE_URL environment variable is required")
