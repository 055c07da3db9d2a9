from typing import Optional, Any
import time
import uuid
from botocore.exceptions import BotoCoreError, ClientError
from ..core.config import settings
from ..core.errors import StorageError
from .clients import s3 as s3_client_factory

"""Storage helpers for naming, uploading and locating compressed images.
"""


def build_key(username: Optional[str], filename: str) -> str:
    """Build the object key for one uploaded file.

    The millisecond timestamp alone collides for same-named files in one
    batch, so a short random suffix follows it.
    """
    millis = int(time.time() * 1000)
    suffix = uuid.uuid4().hex[:8]
    return f"{settings.key_prefix}/{username or ''}-{millis}-{suffix}-{filename}"


def object_url(key: str, bucket: Optional[str] = None) -> str:
    """Public locator for `key`; fixed by configuration, never by input."""
    if settings.public_base_url:
        return f"{settings.public_base_url.rstrip('/')}/{key}"
    bucket = bucket or settings.bucket_name
    return f"https://{bucket}.s3.{settings.aws_region}.amazonaws.com/{key}"


def put_object(
    *,
    key: str,
    body: bytes,
    content_type: str,
    client: Any = None,
    bucket: Optional[str] = None,
) -> None:
    """Upload one object. Any S3 failure is raised as `StorageError`."""
    s3 = client or s3_client_factory()
    try:
        s3.put_object(
            Bucket=bucket or settings.bucket_name,
            Key=key,
            Body=body,
            ContentType=content_type,
        )
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"upload_failed {key}: {e}") from e
