# psi_report/core/config.py
from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Loads environment variables from .env file."""
    # Upstream proxy
    PSI_API_KEY: Optional[str] = None
    PSI_API_ENDPOINT: str = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
    PSI_TIMEOUT_SECONDS: float = 60.0

    # Report client
    REPORT_MODE: Literal["demo", "live"] = "live"
    REPORT_ENDPOINT: Optional[str] = "http://127.0.0.1:8000/api/psi"
    DEMO_DELAY_SECONDS: float = 0.8

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

@lru_cache
def get_settings() -> Settings:
    """Returns the process-wide settings; overridable as a FastAPI dependency."""
    return Settings()
