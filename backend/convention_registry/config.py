"""Application settings and configuration helpers."""
from functools import lru_cache
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///./conventions.db", alias="DATABASE_URL"
    )
    session_secret: str = Field(
        default="default-secret-key-change-in-production", alias="SESSION_SECRET"
    )
    environment: Literal["development", "production"] = Field(
        default="development", alias="APP_ENV"
    )
    session_ttl_hours: int = Field(default=24, alias="SESSION_TTL_HOURS")
    session_cookie_name: str = Field(default="convention_sid", alias="SESSION_COOKIE_NAME")
    upload_dir: Path = Field(default=Path("uploads"), alias="UPLOAD_DIR")
    client_dir: Path = Field(default=Path("client"), alias="CLIENT_DIR")
    static_dir: Path = Field(default=Path("dist/public"), alias="STATIC_DIR")
    seed_defaults: bool = Field(default=True, alias="SEED_DEFAULTS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=5000, alias="PORT")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    aliases = {field.alias for field in Settings.model_fields.values() if field.alias}
    return Settings.model_validate(
        {name: value for name, value in os.environ.items() if name in aliases}
    )
