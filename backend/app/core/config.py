"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    APP_NAME: str = "Secure Token Service"
    ENV: str = "development"

    DATABASE_URL: str = "postgresql+psycopg://postgres@localhost:5432/secure_tokens"
    LOG_LEVEL: str = "INFO"

    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "secure-token-service"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # credential token lifecycle
    PASSWORD_RESET_CODE_LENGTH: int = 6
    PASSWORD_RESET_CODE_EXPIRE_MINUTES: int = 15
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = 48
    TOKEN_RATE_LIMIT_MAX_REQUESTS: int = 3
    TOKEN_RATE_LIMIT_WINDOW_SECONDS: int = 60 * 60
    USED_TOKEN_RETENTION_DAYS: int = 7

    VERIFICATION_BASE_URL: str = "http://localhost:3000/verify"

    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = ""
    SMTP_TLS: bool = True
    SMTP_TIMEOUT_SECONDS: int = 30

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_AUTH_MAX_REQUESTS: int = 20

    model_config = SettingsConfigDict(env_file=str(BASE_DIR / ".env"), env_file_encoding="utf-8")


settings = Settings()
