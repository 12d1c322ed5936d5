"""
Restock Configuration

Uses pydantic-settings for type-safe environment variable loading.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Find .env file: check CWD first, then parent (project root)
_env_file = Path(".env")
if not _env_file.exists():
    _parent_env = Path(__file__).resolve().parent.parent.parent / ".env"
    if _parent_env.exists():
        _env_file = _parent_env


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Restock"
    app_version: str = "1.0.0"
    app_env: str = "local"
    debug: bool = False

    # Database (product catalog served by the API)
    database_url: str = "sqlite+aiosqlite:///./restock.db"
    database_echo: bool = False

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Product fetch (dashboard client)
    products_api_url: str = "http://localhost:8083/api/products"
    fetch_timeout_seconds: float = 10.0
    fetch_max_attempts: int = 3
    fetch_backoff_min_seconds: float = 1.0
    fetch_backoff_max_seconds: float = 10.0

    # Reorder classifier
    training_epochs: int = 200
    training_learning_rate: float = 0.01
    training_random_state: int | None = None

    # Dashboard views
    page_size: int = 10
    top_sellers_count: int = 5

    model_config = {
        "env_file": str(_env_file),
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    settings = Settings()
    _enforce_guardrails(settings)
    return settings


def _enforce_guardrails(settings: Settings) -> None:
    env = settings.app_env.strip().lower()
    is_local = env in {"", "local", "dev", "development", "test"}

    if not is_local and settings.debug:
        raise ValueError("Refusing to start with debug=true outside local/dev/test")
    if not 200 <= settings.training_epochs <= 250:
        raise ValueError("training_epochs must be between 200 and 250")
    if settings.page_size < 1:
        raise ValueError("page_size must be at least 1")
    if settings.fetch_max_attempts < 1:
        raise ValueError("fetch_max_attempts must be at least 1")
