"""
Service configuration, read from MEDGRADES_* environment variables or a .env file.
"""
import os

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))


class Settings(BaseSettings):
    APP_NAME: str = "Medical Grade Calculator"

    # Saved calculator sessions, one JSON file per snapshot key
    SESSION_DIR: str = os.path.join(PROJECT_ROOT, "sessions")

    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="MEDGRADES_",
        env_file=os.path.join(PROJECT_ROOT, ".env"),
        extra="ignore",
    )


settings = Settings()
