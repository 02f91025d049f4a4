from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import ClientError

from signdesk.core.config import settings


def resolve_storage_root() -> Path:
    """
    Returns the directory where slot files are stored.
    """
    raw = os.getenv("SIGNDESK_STORAGE") or settings.signdesk_storage or "storage"
    try:
        return Path(raw).expanduser().resolve()
    except OSError:
        return Path(raw)


class SlotStorage(Protocol):
    def read(self, key: str) -> str | None:  # None when the slot was never written
        ...

    def write(self, key: str, value: str) -> None:
        ...


@dataclass
class LocalStorage:
    base_dir: Path

    def __post_init__(self) -> None:
        try:
            self.base_dir = self.base_dir.resolve()
        except OSError:
            self.base_dir = Path(self.base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _slot_path(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self._slot_path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        path = self._slot_path(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)


@dataclass
class S3Storage:
    bucket: str
    client: Any
    prefix: str = "slots"

    def _key(self, key: str) -> str:
        return f"{self.prefix.strip('/')}/{key}.json"

    def read(self, key: str) -> str | None:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self._key(key))
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in {"NoSuchKey", "404"}:
                return None
            raise
        body = response.get("Body")
        return body.read().decode("utf-8") if body else None

    def write(self, key: str, value: str) -> None:
        self.client.put_object(
            Bucket=self.bucket,
            Key=self._key(key),
            Body=value.encode("utf-8"),
            ContentType="application/json",
        )


@dataclass
class MemoryStorage:
    slots: dict[str, str] = field(default_factory=dict)
    writes: list[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def read(self, key: str) -> str | None:
        with self._lock:
            return self.slots.get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            self.slots[key] = value
            self.writes.append(key)


def get_storage() -> SlotStorage:
    backend = (settings.storage_backend or "local").strip().lower()

    if backend == "memory":
        return MemoryStorage()

    if backend == "s3":
        if not (settings.s3_access_key and settings.s3_secret_key and settings.s3_bucket_documents):
            raise ValueError("S3 storage selected but credentials or bucket are missing")
        client = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
            config=BotoConfig(signature_version="s3v4"),
            region_name=os.getenv("AWS_REGION", "us-east-1"),
        )
        return S3Storage(bucket=settings.s3_bucket_documents, client=client)

    return LocalStorage(base_dir=resolve_storage_root())
