"""
Storage abstraction for S3-compatible upload buckets and in-memory testing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import boto3
from botocore.config import Config


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def presign_put(self, path: str, expires_in: int = 3600) -> str:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    bucket: str = "test-bucket"
    base_url: str = "https://example.test/storage"
    signed: list = field(default_factory=list)

    def presign_put(self, path: str, expires_in: int = 3600) -> str:
        self.signed.append((path, expires_in))
        return f"{self.base_url}/{self.bucket}/{path}?op=put&expires={expires_in}"


@dataclass
class S3UploadStorageClient:
    """
    S3-compatible storage client used to sign direct browser uploads.
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def presign_put(self, path: str, expires_in: int = 3600) -> str:
        return self._client.generate_presigned_url(
            ClientMethod="put_object",
            Params={"Bucket": self.bucket, "Key": path},
            ExpiresIn=expires_in,
        )
