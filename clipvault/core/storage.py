from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, BinaryIO

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings
from .errors import StoreUnavailable
from .logging import get_logger

DEFAULT_PRESIGN_EXPIRES_S = 3600


class ObjectStore(ABC):
    """Bucket/key object storage. Every call is a single attempt; failures raise ``StoreUnavailable``."""

    @abstractmethod
    def upload(self, bucket: str, key: str, stream: BinaryIO, content_type: str) -> None: ...

    @abstractmethod
    def delete(self, bucket: str, key: str) -> None: ...

    @abstractmethod
    def presign_get(self, bucket: str, key: str, *, expires_s: int = DEFAULT_PRESIGN_EXPIRES_S) -> str: ...


class LocalObjectStore(ObjectStore):
    """Filesystem-backed object store suitable for development."""

    def __init__(self, base_path: Path):
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.logger = get_logger(component="local_object_store")

    def _resolve(self, bucket: str, key: str, operation: str) -> Path:
        bucket_root = (self.base_path / bucket).resolve()
        target = (bucket_root / key).resolve()
        if bucket_root not in target.parents:
            raise StoreUnavailable(operation, bucket, key, "key escapes bucket")
        return target

    def upload(self, bucket: str, key: str, stream: BinaryIO, content_type: str) -> None:
        target = self._resolve(bucket, key, "upload")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as handle:
                shutil.copyfileobj(stream, handle)
        except OSError as exc:
            target.unlink(missing_ok=True)
            raise StoreUnavailable("upload", bucket, key, str(exc)) from exc
        self.logger.debug("object_written", bucket=bucket, key=key, content_type=content_type)

    def delete(self, bucket: str, key: str) -> None:
        target = self._resolve(bucket, key, "delete")
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            raise StoreUnavailable("delete", bucket, key, str(exc)) from exc

    def presign_get(self, bucket: str, key: str, *, expires_s: int = DEFAULT_PRESIGN_EXPIRES_S) -> str:
        return self._resolve(bucket, key, "presign").as_uri()

    def exists(self, bucket: str, key: str) -> bool:
        return self._resolve(bucket, key, "stat").exists()


class S3ObjectStore(ObjectStore):
    """S3 (or S3-compatible) implementation on top of a boto3 client."""

    def __init__(self, client: Any):
        self.client = client
        self.logger = get_logger(component="s3_object_store")

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3ObjectStore":
        client = boto3.client(
            "s3",
            region_name=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.secrets.s3_access_key_id,
            aws_secret_access_key=settings.secrets.s3_secret_access_key,
            config=Config(signature_version="s3v4"),
        )
        return cls(client)

    def upload(self, bucket: str, key: str, stream: BinaryIO, content_type: str) -> None:
        try:
            self.client.put_object(Bucket=bucket, Key=key, Body=stream, ContentType=content_type)
        except (BotoCoreError, ClientError) as exc:
            self.logger.error("s3_put_failed", bucket=bucket, key=key, error=str(exc))
            raise StoreUnavailable("upload", bucket, key, str(exc)) from exc

    def delete(self, bucket: str, key: str) -> None:
        try:
            self.client.delete_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            self.logger.error("s3_delete_failed", bucket=bucket, key=key, error=str(exc))
            raise StoreUnavailable("delete", bucket, key, str(exc)) from exc

    def presign_get(self, bucket: str, key: str, *, expires_s: int = DEFAULT_PRESIGN_EXPIRES_S) -> str:
        try:
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=expires_s,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StoreUnavailable("presign", bucket, key, str(exc)) from exc


def get_object_store(settings: Settings) -> ObjectStore:
    if settings.storage_backend == "local":
        return LocalObjectStore(base_path=Path(settings.local_storage_base_path))
    if settings.storage_backend == "s3":
        return S3ObjectStore.from_settings(settings)
    raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")


__all__ = [
    "ObjectStore",
    "LocalObjectStore",
    "S3ObjectStore",
    "DEFAULT_PRESIGN_EXPIRES_S",
    "get_object_store",
]
