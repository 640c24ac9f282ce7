from pathlib import Path
from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

import os

# Load .env for local runs without overriding the real environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Generator settings pulled from ``WORLDMAP_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="WORLDMAP_", extra="ignore")

    # Generation defaults
    default_seed: str = Field(default="day010", description="Seed used when seed text is blank")
    default_width: int = Field(default=1280, description="Default canvas width")
    default_height: int = Field(default=640, description="Default canvas height")
    default_country_count: int = Field(default=90, description="Default number of countries")

    # Accepted canvas sizes
    min_width: int = Field(default=512, description="Smallest accepted canvas width")
    max_width: int = Field(default=2400, description="Largest accepted canvas width")
    min_height: int = Field(default=256, description="Smallest accepted canvas height")
    max_height: int = Field(default=1400, description="Largest accepted canvas height")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")


settings = Settings()
