"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header

from postboard.config import get_settings
from postboard.db import IN_MEMORY_URL, Database
from postboard.posts import PostRepository
from postboard.storage import InMemoryStorageClient, S3UploadStorageClient, StorageClient
from postboard.tags import TagRepository

_database: Database | None = None
_storage_client: StorageClient | None = None


def get_database() -> Database:
    """
    Return a singleton database so the engine and its pool are shared across requests.
    """
    global _database
    if _database:
        return _database

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _database = Database(IN_MEMORY_URL)
    else:
        _database = Database(settings.database_url)
    return _database


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or settings.missing_upload_settings():
        _storage_client = InMemoryStorageClient(
            bucket=settings.s3_upload_bucket or "test-bucket"
        )
    else:
        _storage_client = S3UploadStorageClient(
            bucket=settings.s3_upload_bucket,
            region=settings.s3_upload_region,
            endpoint=settings.s3_upload_endpoint,
            access_key_id=settings.s3_upload_key,
            secret_access_key=settings.s3_upload_secret,
        )
    return _storage_client


def get_post_repository(db: Database = Depends(get_database)) -> PostRepository:
    return PostRepository(db)


def get_tag_repository(db: Database = Depends(get_database)) -> TagRepository:
    return TagRepository(db)


def get_current_user_id(
    x_user_id: Optional[int] = Header(default=None),
) -> Optional[int]:
    """
    Resolve the caller from the `X-User-Id` header set by the auth proxy.
    Operations that need a caller receive it as an explicit argument.
    """
    return x_user_id
