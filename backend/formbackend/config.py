"""
Configuration for backend services.
"""

from pathlib import Path
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    api_secret: str | None = Field(default=None, alias="API_SECRET")
    paystack_secret_key: str | None = Field(default=None, alias="PAYSTACK_SECRET_KEY")
    recaptcha_secret_key: str | None = Field(default=None, alias="RECAPTCHA_SECRET_KEY")
    turnstile_secret_key: str | None = Field(default=None, alias="TURNSTILE_SECRET_KEY")
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    email_from: str = Field(default="noreply@yourdomain.com", alias="EMAIL_FROM")
    webhook_url: str | None = Field(default=None, alias="WEBHOOK_URL")
    sqlite_path: Path | None = Field(default=None, alias="SQLITE_PATH")
    kv_path: Path | None = Field(default=None, alias="KV_PATH")
    uploads_dir: Path | None = Field(default=None, alias="UPLOADS_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("sqlite_path", "kv_path", "uploads_dir", mode="before")
    @classmethod
    def convert_path(cls, v):
        """Convert string to Path if needed; blank values mean unconfigured."""
        if isinstance(v, str):
            return Path(v) if v.strip() else None
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        populate_by_name = True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
