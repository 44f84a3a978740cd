from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Secrets(BaseSettings):
    """Secrets configuration, loaded from the environment or a secrets management service."""

    model_config = SettingsConfigDict(
        env_prefix="CLIPVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    jwt_secret: str = Field(default="change-me", description="Signing secret for bearer token validation.")
    s3_access_key_id: Optional[str] = Field(default=None, description="Static S3 access key (falls back to the boto3 chain).")
    s3_secret_access_key: Optional[str] = Field(default=None, description="Static S3 secret key.")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Secrets":
        return cls()


class Settings(BaseSettings):
    """Centralised runtime configuration for the Clipvault API."""

    model_config = SettingsConfigDict(
        env_prefix="CLIPVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Clipvault API"
    environment: str = Field(default="development", description="Deployment environment label.")
    version: str = Field(default="0.1.0", description="API version for metadata and OpenAPI.")
    log_level: str = Field(default="info")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./clipvault.db",
        description="SQLAlchemy compatible DSN.",
    )
    create_schema_on_startup: bool = Field(default=False, description="Create missing tables at startup instead of relying on Alembic.")

    storage_backend: Literal["local", "s3"] = Field(default="local", description="Active object store implementation.")
    local_storage_base_path: Path = Field(
        default_factory=lambda: Path("objects"),
        description="Root directory for the local object store (one sub-directory per bucket).",
    )
    s3_bucket: str = Field(default="clipvault-videos", description="Bucket receiving ingested videos.")
    s3_region: str = Field(default="us-east-1")
    s3_endpoint_url: Optional[str] = Field(default=None, description="Custom endpoint for S3-compatible stores.")

    asset_reference_mode: Literal["pair", "url", "opaque"] = Field(
        default="pair",
        description="Encoding written to videos.video_url (pair: 'bucket,key', url: public URL, opaque: bare key).",
    )
    presign_ttl_seconds: int = Field(default=3600, ge=1, description="Lifetime of presigned playback URLs.")
    object_key_encoding: Literal["hex", "base64url"] = Field(default="hex")

    staging_dir: Optional[Path] = Field(default=None, description="Directory for staged uploads (system temp when unset).")
    max_video_upload_bytes: int = Field(default=1 << 30, description="Hard ceiling for video request bodies.")
    max_thumbnail_upload_bytes: int = Field(default=10 << 20, description="Hard ceiling for thumbnail request bodies.")
    thumbnail_lock_shards: int = Field(default=16, ge=1)

    jwt_algorithm: str = Field(default="HS256", description="Algorithm used for JWT tokens.")
    jwt_issuer: Optional[str] = None
    jwt_audience: Optional[str] = None

    secrets: Secrets = Field(default_factory=Secrets, description="Holds sensitive configuration.")

    @property
    def environment_lower(self) -> str:
        return self.environment.lower()


@lru_cache()
def get_settings() -> Settings:
    load_dotenv(".env", override=False)

    _ENV_ALIAS_MAP = {
        "CLIPVAULT_ENV": "CLIPVAULT_ENVIRONMENT",
        "CLIPVAULT_DB_URL": "CLIPVAULT_DATABASE_URL",
    }

    for source, target in _ENV_ALIAS_MAP.items():
        value = os.getenv(source)
        if value:
            os.environ[target] = value

    settings = Settings()

    # In a real application, you would fetch secrets from a secure vault
    # instead of just loading them from the environment.
    secrets = Secrets.from_settings(settings)

    if settings.environment == "production" and secrets.jwt_secret == "change-me":
        raise ValueError("Production environment must have a non-default JWT secret.")

    settings.secrets = secrets
    return settings


__all__ = ["Settings", "Secrets", "get_settings"]
