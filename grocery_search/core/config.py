"""
Application configuration.

Settings are read once at startup and passed explicitly into the AI client,
the catalog and the search orchestrator. Nothing below the app factory reads
the process environment.

Environment configuration:
- GEMINI_API_KEY: API key for the generateContent endpoint (empty disables AI)
- GEMINI_API_ENDPOINT: Full generateContent URL
- GEMINI_TEMPERATURE: Sampling temperature in [0.0, 1.0] (default: 0.6)
- GEMINI_TIMEOUT_SECONDS: Hard wall-clock bound on the AI call (default: 30)
- AI_SEARCH_FALLBACK_ENABLED: Fall back to plain text search on AI failure (default: true)
- SEARCH_RESULT_LIMIT: Maximum products per search (default: 20)
- DATABASE_URL or DB_HOST/DB_PORT/DB_USER/DB_PASSWORD/DB_NAME
- LOG_LEVEL / LOG_JSON
"""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_GEMINI_ENDPOINT = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "gemini-2.0-flash-001:generateContent"
)


class SearchSettings(BaseModel):
    """Immutable configuration record for the AI search pipeline."""

    model_config = ConfigDict(frozen=True)

    gemini_api_key: str = ""
    gemini_api_endpoint: str = DEFAULT_GEMINI_ENDPOINT
    temperature: float = Field(0.6, ge=0.0, le=1.0)
    timeout_seconds: float = Field(30.0, gt=0.0)
    fallback_enabled: bool = True
    result_limit: int = Field(20, ge=1, le=100)
    database_url: Optional[str] = None
    log_level: str = "INFO"
    log_json: bool = True

    @property
    def ai_configured(self) -> bool:
        return bool(self.gemini_api_key.strip())


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def get_database_url() -> str:
    """Get database URL from environment."""
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    host = os.getenv("DB_HOST", "localhost")
    port = int(os.getenv("DB_PORT", "5432"))
    user = os.getenv("DB_USER", "postgres")
    password = os.getenv("DB_PASSWORD", "postgres")
    database = os.getenv("DB_NAME", "ghibligroceries")

    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


def load_settings(env_file: Optional[Path] = None) -> SearchSettings:
    """
    Build SearchSettings from the environment.

    A `.env` file in the working directory (or `env_file`) is loaded first;
    variables already present in the environment take precedence.

    Raises:
        pydantic.ValidationError if a value is out of range.
    """
    env_path = env_file or Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return SearchSettings(
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        gemini_api_endpoint=os.getenv("GEMINI_API_ENDPOINT") or DEFAULT_GEMINI_ENDPOINT,
        temperature=float(os.getenv("GEMINI_TEMPERATURE", "0.6") or "0.6"),
        timeout_seconds=float(os.getenv("GEMINI_TIMEOUT_SECONDS", "30") or "30"),
        fallback_enabled=_env_bool("AI_SEARCH_FALLBACK_ENABLED", True),
        result_limit=int(os.getenv("SEARCH_RESULT_LIMIT", "20") or "20"),
        database_url=get_database_url(),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=_env_bool("LOG_JSON", True),
    )
