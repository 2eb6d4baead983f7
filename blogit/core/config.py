"""Application configuration and settings management."""
from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".." / ".env"),
        env_file_encoding="utf-8",
        env_prefix="BLOGIT_",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = "Blogit"
    secret_key: str = "change-me"

    # Server
    host: str = "0.0.0.0"
    port: int = 5000

    # Database
    database_url: str = "sqlite+aiosqlite:///./blogit.db"

    # Security
    access_token_expire_minutes: int = 60 * 24 * 7
    password_hash_rounds: int = 10
    allowed_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Image storage
    image_storage: Literal["local", "s3"] = "local"
    upload_dir: str = "uploads"
    upload_url_prefix: str = "/uploads"
    max_image_bytes: int = 5 * 1024 * 1024
    allowed_image_extensions: List[str] = ["jpg", "jpeg", "png", "webp"]

    # S3
    s3_bucket: str | None = None
    s3_region: str = "us-east-1"
    s3_folder: str = "blogit"
    s3_public_base_url: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None

    @field_validator("allowed_origins", "allowed_image_extensions", mode="before")
    @classmethod
    def _split_csv(cls, value: List[str] | str) -> List[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("allowed_image_extensions")
    @classmethod
    def _normalize_extensions(cls, value: List[str]) -> List[str]:
        return [item.lower().lstrip(".") for item in value]


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings instance."""

    return Settings()
