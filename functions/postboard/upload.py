"""
Pre-signed upload URLs for direct browser uploads to the S3 bucket.
"""

from __future__ import annotations

import logging
from typing import Optional

from postboard.config import Settings
from postboard.constants import UploadType
from postboard.errors import AuthorizationError, ConfigurationError
from postboard.schemas import UploadRequest, UploadResponse
from postboard.storage import StorageClient

logger = logging.getLogger(__name__)


def resolve_upload_type(value: Optional[str]) -> UploadType:
    """Known upload categories pass through; anything else is `default`."""
    try:
        return UploadType(value)
    except ValueError:
        return UploadType.DEFAULT


def build_upload_key(user_id: int, upload_type: UploadType, filename: str) -> str:
    return f"{user_id}/{upload_type.value}/{filename}"


def issue_upload_credentials(
    payload: UploadRequest,
    *,
    user_id: Optional[int],
    settings: Settings,
    storage: StorageClient,
) -> UploadResponse:
    """
    Sign a one-hour PUT URL for `{user_id}/{type}/{filename}`.

    Configuration is checked before the caller so a misconfigured deployment
    reports every missing setting. Nothing is signed for anonymous callers.
    """
    missing = settings.missing_upload_settings()
    if missing:
        logger.error("Upload signing is not configured; missing %s", missing)
        raise ConfigurationError(missing)
    if not user_id:
        raise AuthorizationError()

    upload_type = resolve_upload_type(payload.type)
    key = build_upload_key(user_id, upload_type, payload.filename)
    url = storage.presign_put(key, expires_in=settings.upload_expires_in)
    logger.info("Signed %s upload for user %s: %s", upload_type.value, user_id, key)
    return UploadResponse(url=url, bucket=settings.s3_upload_bucket, key=key)
