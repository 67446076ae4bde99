# config.py
from typing import Any, Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # GreenCloud API
    API_BASE_URL: str = "https://api.greencloud.dev"
    RESOURCE_ID: str = "678c008b428b9003e155c812"
    JOB_PAYLOAD: Dict[str, Any] = Field(default_factory=lambda: {"exampleKey": "exampleValue"})
    REQUEST_TIMEOUT: float = 30.0

    # Polling
    POLL_INTERVAL: float = 1.5  # seconds between result checks
    MAX_POLLS: int = 400  # ~10 minutes at 1.5s, 0 = no cap

    # Results
    DEDUPE_BY_EMAIL: bool = True

    # App
    APP_TITLE: str = "GreenCloud Contacts"
    LOG_LEVEL: str = "INFO"


settings = Settings()
