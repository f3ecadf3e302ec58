"""Application configuration loaded from environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from environment variables (or .env file)."""

    # --- App ---
    app_name: str = "Luna"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Engine ---
    engine_config_path: Path | None = None  # defaults to the bundled engine_config.yaml

    # --- Synthetic data ---
    seed_on_startup: bool = True
    synthetic_seed: int | None = None  # unset = fresh randomness each regeneration
    synthetic_history_months: int = 3

    # --- CORS ---
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "LUNA_"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
