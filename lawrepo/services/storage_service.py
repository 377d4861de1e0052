# lawrepo/services/storage_service.py
"""
S3 object storage: presigned single-part uploads, multipart uploads and
small server-side writes (thumbnails).

Key layout inside the bucket:
  videos/{epoch_ms}-{random}.{ext}
  thumbnails/...
"""
from __future__ import annotations

import logging
import math
import re
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, List
from urllib.parse import urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from lawrepo.core.config import settings

logger = logging.getLogger(__name__)

VIDEO_PREFIX = "videos/"
THUMBNAIL_PREFIX = "thumbnails/"

PRESIGN_EXPIRES_SECONDS = 3600

MB = 1024 * 1024
GB = 1024 * MB
MAX_VIDEO_SIZE = 5 * GB
MAX_OTHER_SIZE = 100 * MB
MAX_MULTIPART_SIZE = 5 * 1024 * GB  # 5TB

_CONTROL_CHARS = re.compile(r"[\s\x00-\x1f\x7f-\x9f]")
_KEY_ALPHABET = string.ascii_lowercase + string.digits

_s3_client = None


class StorageError(Exception):
    pass


class UploadValidationError(StorageError):
    pass


def sanitize_credential(value: str | None) -> str | None:
    """
    Env values pasted into hosting dashboards often carry trailing newlines or
    other control characters that break request signing.
    """
    if not value:
        return None
    cleaned = _CONTROL_CHARS.sub("", value).strip()
    return cleaned or None


def get_s3_client():
    global _s3_client
    if _s3_client is None:
        _s3_client = boto3.client(
            "s3",
            region_name=settings.AWS_REGION,
            aws_access_key_id=sanitize_credential(settings.AWS_ACCESS_KEY_ID),
            aws_secret_access_key=sanitize_credential(settings.AWS_SECRET_ACCESS_KEY),
        )
    return _s3_client


def reset_clients() -> None:
    global _s3_client
    _s3_client = None


def now_ms() -> int:
    return int(time.time() * 1000)


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"


def generate_video_key(filename: str) -> str:
    random_part = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(13))
    return f"{VIDEO_PREFIX}{now_ms()}-{random_part}.{file_extension(filename)}"


def public_url(key: str) -> str:
    return f"https://{settings.S3_BUCKET_NAME}.s3.{settings.AWS_REGION}.amazonaws.com/{key}"


def cdn_url(key: str) -> str | None:
    if not settings.CLOUDFRONT_DOMAIN:
        return None
    return f"https://{settings.CLOUDFRONT_DOMAIN}/{key}"


def delivery_url(key: str) -> str:
    return cdn_url(key) or public_url(key)


def key_from_url(url: str | None) -> str | None:
    """
    Recover the object key from an S3 or CloudFront URL pointing into our bucket.
    """
    if not url or not url.startswith("http"):
        return None
    parsed = urlparse(url)
    host = parsed.netloc
    bucket_host = f"{settings.S3_BUCKET_NAME}.s3."
    if host.startswith(bucket_host) or (
        settings.CLOUDFRONT_DOMAIN and host == settings.CLOUDFRONT_DOMAIN
    ):
        key = parsed.path.lstrip("/")
        return key or None
    return None


def validate_upload_size(content_type: str, file_size: int | None) -> None:
    if not file_size:
        return
    is_video = content_type.startswith("video/")
    max_size = MAX_VIDEO_SIZE if is_video else MAX_OTHER_SIZE
    if file_size > max_size:
        raise UploadValidationError(
            f"File too large. Maximum size is {'5GB' if is_video else '100MB'}"
        )


def create_presigned_upload(
    filename: str,
    content_type: str,
    file_size: int | None = None,
) -> Dict[str, Any]:
    validate_upload_size(content_type, file_size)

    s3_key = generate_video_key(filename)
    params = {
        "Bucket": settings.S3_BUCKET_NAME,
        "Key": s3_key,
        "ContentType": content_type,
        "Metadata": {
            "original-filename": filename,
            "upload-date": datetime.now(timezone.utc).isoformat(),
            "file-size": str(file_size or 0),
        },
    }
    try:
        url = get_s3_client().generate_presigned_url(
            "put_object", Params=params, ExpiresIn=PRESIGN_EXPIRES_SECONDS
        )
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"failed to presign upload: {e}") from e

    logger.info(f"Presigned upload created for {filename} -> {s3_key}")
    return {
        "presignedUrl": url,
        "s3Key": s3_key,
        "publicUrl": public_url(s3_key),
        "expiresIn": PRESIGN_EXPIRES_SECONDS,
    }


def choose_part_size(file_size: int | None) -> int:
    if file_size and file_size > 10 * GB:
        return 1 * GB
    if file_size and file_size > 1 * GB:
        return 500 * MB
    return 100 * MB


def init_multipart_upload(
    filename: str,
    content_type: str,
    file_size: int | None = None,
) -> Dict[str, Any]:
    if file_size and file_size > MAX_MULTIPART_SIZE:
        raise UploadValidationError("File too large. Maximum size is 5TB")

    s3_key = generate_video_key(filename)
    try:
        response = get_s3_client().create_multipart_upload(
            Bucket=settings.S3_BUCKET_NAME,
            Key=s3_key,
            ContentType=content_type,
            Metadata={
                "original-filename": filename,
                "upload-date": datetime.now(timezone.utc).isoformat(),
                "file-size": str(file_size or 0),
            },
        )
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"failed to initialize multipart upload: {e}") from e

    upload_id = response.get("UploadId")
    if not upload_id:
        raise StorageError("S3 did not return an UploadId")

    part_size = choose_part_size(file_size)
    total_parts = math.ceil(file_size / part_size) if file_size else 1

    logger.info(f"Multipart upload {upload_id} started for {s3_key} ({total_parts} parts)")
    return {
        "uploadId": upload_id,
        "s3Key": s3_key,
        "partSize": part_size,
        "totalParts": total_parts,
        "publicUrl": public_url(s3_key),
        "cloudFrontUrl": cdn_url(s3_key),
    }


def presign_upload_part(upload_id: str, s3_key: str, part_number: int) -> Dict[str, Any]:
    try:
        url = get_s3_client().generate_presigned_url(
            "upload_part",
            Params={
                "Bucket": settings.S3_BUCKET_NAME,
                "Key": s3_key,
                "UploadId": upload_id,
                "PartNumber": part_number,
            },
            ExpiresIn=PRESIGN_EXPIRES_SECONDS,
        )
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"failed to presign part {part_number}: {e}") from e

    return {"presignedUrl": url, "partNumber": part_number, "expiresIn": PRESIGN_EXPIRES_SECONDS}


def complete_multipart_upload(
    upload_id: str,
    s3_key: str,
    parts: List[Dict[str, Any]],
) -> Dict[str, Any]:
    ordered = sorted(parts, key=lambda p: int(p["partNumber"]))
    try:
        response = get_s3_client().complete_multipart_upload(
            Bucket=settings.S3_BUCKET_NAME,
            Key=s3_key,
            UploadId=upload_id,
            MultipartUpload={
                "Parts": [
                    {"ETag": p["etag"], "PartNumber": int(p["partNumber"])} for p in ordered
                ]
            },
        )
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"failed to complete multipart upload: {e}") from e

    logger.info(f"Multipart upload {upload_id} completed for {s3_key}")
    return {
        "location": response.get("Location"),
        "s3Key": s3_key,
        "publicUrl": public_url(s3_key),
        "cloudFrontUrl": cdn_url(s3_key),
    }


def abort_multipart_upload(upload_id: str, s3_key: str) -> None:
    try:
        get_s3_client().abort_multipart_upload(
            Bucket=settings.S3_BUCKET_NAME, Key=s3_key, UploadId=upload_id
        )
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"failed to abort multipart upload: {e}") from e
    logger.info(f"Multipart upload {upload_id} aborted for {s3_key}")


def upload_bytes(data: bytes, key: str, content_type: str) -> Dict[str, str]:
    try:
        response = get_s3_client().put_object(
            Bucket=settings.S3_BUCKET_NAME,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"failed to upload {key}: {e}") from e

    return {
        "Location": public_url(key),
        "Key": key,
        "Bucket": settings.S3_BUCKET_NAME,
        "ETag": (response or {}).get("ETag", ""),
    }


def delete_object(key: str) -> None:
    try:
        get_s3_client().delete_object(Bucket=settings.S3_BUCKET_NAME, Key=key)
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"failed to delete {key}: {e}") from e
    logger.info(f"Deleted s3://{settings.S3_BUCKET_NAME}/{key}")
