# repairdesk/config.py
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    SHEET_API_URL: str = "https://script.google.com/macros/s/your-deployment-id/exec"
    SHEET_TIMEOUT: float = 30.0

    # local state only (remembered session, job card counter)
    DATABASE_URL: str = "sqlite:///./repairdesk.db"
    SECRET_KEY: str = "super-secret"

    JOB_CARD_START: int = 262000
    DEFAULT_ADMIN_PASSWORD: str = "123"

    TRANSLATE_URL: Optional[str] = None
    EXPORT_DIR: str = "exports"
    LOG_LEVEL: str = "INFO"

    # optional: read from .env and allow REPAIRDESK_* env vars
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="REPAIRDESK_",
        case_sensitive=False,
    )


settings = Settings()
