from __future__ import annotations

import secrets
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Face Punch Attendance"
    app_env: str = "development"
    api_prefix: str = "/api"
    log_level: str = "INFO"
    log_dir: str = ""

    database_url: str = "sqlite:///./attendance.db"

    jwt_secret: str = Field(default_factory=lambda: secrets.token_urlsafe(48))
    jwt_algorithm: str = "HS256"
    access_token_minutes: int = 60 * 12

    bootstrap_superadmin_email: str = ""
    bootstrap_superadmin_password: str = ""

    descriptor_cipher_key: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    descriptor_length: int = 128
    match_threshold: float = 0.6
    cross_tenant_matching: bool = False

    default_timezone: str = "UTC"

    cors_origins_raw: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins_raw.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
