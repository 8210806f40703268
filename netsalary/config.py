"""
config.py — netsalary application settings.

Usage:
    from netsalary.config import settings
    print(settings.parameters_dir)

Never use FastAPI Depends() for settings — import directly as a module-level singleton.
"""
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_PARAMETERS_DIR = Path(__file__).parent / "parameters" / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="NETSALARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore any extra env vars
    )

    # --- Parameter tables ---
    # Directory holding peru.json / ecuador.json ({regime: {year: {...}}})
    parameters_dir: Path = _DEFAULT_PARAMETERS_DIR

    # --- CORS ---
    # Comma-separated list of allowed frontend origins
    cors_origins: str = "http://localhost:5173,http://localhost:5174"

    # --- Application ---
    debug: bool = False
    log_level: str = "INFO"
    app_version: str = "0.1.0"

    @property
    def cors_origins_list(self) -> List[str]:
        """Split comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Module-level singleton — import this throughout the codebase
settings = Settings()
