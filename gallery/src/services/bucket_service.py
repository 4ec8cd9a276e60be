import logging
import time
from datetime import datetime
from io import BytesIO
from typing import Any
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from PIL import Image

from gallery.src.config import config
from gallery.src.constants import (
    ALLOWED_IMAGE_CONTENT_TYPES,
    STORAGE_CACHE_CONTROL,
    STORAGE_LIST_PAGE_SIZE,
)

logger = logging.getLogger(__name__)


def resize_image_with_aspect_ratio(
    image_bytes: bytes, max_dimension: int = 1600, jpeg_quality: int = 85
) -> bytes:
    """
    Resize image maintaining aspect ratio with max dimension constraint.

    Args:
        image_bytes: Original image bytes
        max_dimension: Maximum dimension (width or height) in pixels
        jpeg_quality: JPEG compression quality (0-100)

    Returns:
        Resized image as JPEG bytes

    Examples:
        - 3200×1600 → 1600×800 (width capped)
        - 1000×800 → 1000×800 (already small, re-encoded only)
    """
    img = Image.open(BytesIO(image_bytes))

    # Convert to RGB if needed (handles RGBA, grayscale, etc.)
    if img.mode != "RGB":
        img = img.convert("RGB")

    width, height = img.size
    if max(width, height) > max_dimension:
        scale_factor = max_dimension / max(width, height)
        new_size = (int(width * scale_factor), int(height * scale_factor))
        img = img.resize(new_size, Image.Resampling.LANCZOS)

    output = BytesIO()
    img.save(output, format="JPEG", quality=jpeg_quality, optimize=True)
    return output.getvalue()


def make_upload_key(original_name: str, now: float | None = None) -> str:
    """
    Object key for a freshly uploaded image: "<epoch millis>-<file name>".

    The millisecond prefix keeps repeated uploads of the same file name apart.
    """
    timestamp = time.time() if now is None else now
    safe_name = original_name.replace("/", "_").replace("\\", "_").strip()
    if not safe_name:
        raise ValueError("File name must not be empty")
    return f"{int(timestamp * 1000)}-{safe_name}"


class BucketService:
    """
    Access to the S3-compatible bucket holding the painting images.

    Two consumers: the history view reads object timestamps through
    `get_object_created_at`, and the admin creation path writes new images
    through `upload_image`.
    """

    def __init__(
        self,
        bucket_name: str = config.bucket_name,
        region: str = config.aws_region,
        endpoint_url: str = config.storage_endpoint_url,
        aws_access_key_id: str = config.aws_access_key_id,
        aws_secret_access_key: str = config.aws_secret_access_key,
        client: Any = None,
    ):
        self.bucket_name = bucket_name
        self.endpoint_url = endpoint_url.rstrip("/")

        if client is not None:
            self.s3 = client
            return

        boto3_cfg = Config(
            signature_version="s3v4",
            connect_timeout=10,
            read_timeout=30,
            retries={"max_attempts": 2},
            s3={"addressing_style": "path"},
        )

        self.s3 = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            region_name=region,
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            config=boto3_cfg,
        )

    def get_object_created_at(self, object_name: str) -> datetime | None:
        """
        Upload time of the object stored under `object_name`.

        Lists the bucket with the name as prefix and picks the exact key match,
        so "a.jpg" does not pick up "a.jpg.bak". Returns None when no such
        object exists. Client and network errors propagate to the caller.
        """
        paginator = self.s3.get_paginator("list_objects_v2")
        pages = paginator.paginate(
            Bucket=self.bucket_name,
            Prefix=object_name,
            PaginationConfig={"PageSize": STORAGE_LIST_PAGE_SIZE},
        )
        for page in pages:
            for obj in page.get("Contents", []):
                if obj.get("Key") == object_name:
                    return obj.get("LastModified")
        return None

    def object_exists(self, key: str) -> bool:
        """
        Check if an object exists in the S3 bucket.
        Returns True if object exists, False otherwise.
        """
        try:
            self.s3.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            # If object doesn't exist, boto3 raises a 404 ClientError
            if e.response["Error"]["Code"] in ("404", "NoSuchKey", "NotFound"):
                return False
            raise

    def upload_image(
        self,
        file_name: str,
        image_bytes: bytes,
        content_type: str = "image/jpeg",
        max_dimension: int = config.image_max_dimension,
        jpeg_quality: int = config.image_jpeg_quality,
    ) -> str:
        """
        Store a new image under `file_name` and return its public URL.

        Existing objects are never overwritten.
        """
        if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
            raise ValueError(f"Unexpected content type: {content_type}")
        if self.object_exists(file_name):
            raise ValueError(f"Object {file_name} already exists in {self.bucket_name}")

        # Resize image before upload (with graceful fallback)
        try:
            body = resize_image_with_aspect_ratio(
                image_bytes,
                max_dimension=max_dimension,
                jpeg_quality=jpeg_quality,
            )
            content_type = "image/jpeg"  # Always JPEG after resize
        except Exception as e:
            logger.warning(
                "Failed to resize %s, uploading original image: %s", file_name, e
            )
            body = image_bytes

        self.s3.put_object(
            Bucket=self.bucket_name,
            Key=file_name,
            Body=body,
            ACL="public-read",
            ContentType=content_type,
            CacheControl=STORAGE_CACHE_CONTROL,
        )
        logger.info("Uploaded %s to bucket %s", file_name, self.bucket_name)
        return self.get_bucket_image_url(file_name)

    def ping(self) -> None:
        """Cheapest authenticated request against the bucket. Raises on failure."""
        self.s3.list_objects_v2(Bucket=self.bucket_name, MaxKeys=1)

    def get_bucket_image_url(self, key: str) -> str:
        return f"{self.endpoint_url}/{self.bucket_name}/{quote(key)}"


def get_bucket_service() -> BucketService:
    return BucketService()
