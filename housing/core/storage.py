"""
Object storage for scanned document images.

S3-compatible (boto3) when the S3_* settings are present, otherwise files are
written under UPLOADS_DIR and served from /uploads.
"""
import logging
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from housing.core.config import settings
from housing.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


def _s3_client():
    return boto3.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT,
        aws_access_key_id=settings.S3_ACCESS_KEY,
        aws_secret_access_key=settings.S3_SECRET_KEY,
        region_name=settings.S3_REGION,
    )


def put(key: str, data: bytes, content_type: str) -> str:
    """Store `data` under `key` and return a URL for it."""
    if settings.s3_configured:
        try:
            _s3_client().put_object(Bucket=settings.S3_BUCKET, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.exception("Failed to upload %s to bucket %s", key, settings.S3_BUCKET)
            raise ExternalServiceError(f"Storage upload failed: {e}")
        logger.info("Uploaded %s (%s bytes) to bucket %s", key, len(data), settings.S3_BUCKET)
        return f"{settings.S3_ENDPOINT.rstrip('/')}/{settings.S3_BUCKET}/{key}"

    path = Path(settings.UPLOADS_DIR) / key
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info("Stored %s (%s bytes) on local disk", path, len(data))
    return f"/uploads/{key}"
