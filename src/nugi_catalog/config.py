# src/nugi_catalog/config.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------
# Paths
# ---------
APP_ROOT = Path(__file__).resolve().parents[2]  # project root
DATA_DIR = APP_ROOT / "data"
DB_PATH = DATA_DIR / "products.db.json"


class Settings(BaseSettings):
    """
    Runtime settings, read from NUGI_* environment variables or a .env file.
    """
    model_config = SettingsConfigDict(env_prefix="NUGI_", env_file=".env", extra="ignore")

    db_path: Path = DB_PATH
    # "memory" keeps writes in-process only (read-only hosting)
    storage: Literal["file", "memory"] = "file"

    admin_token: Optional[str] = Field(default=None, description="Bearer token accepted for /api/admin routes")

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
