from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    app_env: str = "dev"
    log_level: str = "INFO"

    # optional here; /generate reports it as a configuration error per request
    google_api_key: Optional[str] = None

    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_temperature: float = 0.4
    gemini_max_output_tokens: int = 2048

    history_file: str = "data/history.json"
    upload_dir: str = "public/temp_pptx"
    upload_url_prefix: str = "/temp_pptx"

    # live editing sessions kept in memory; the least recently used is closed past this
    max_live_sessions: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
