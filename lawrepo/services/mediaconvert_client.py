# lawrepo/services/mediaconvert_client.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from lawrepo.core.config import settings
from lawrepo.services.storage_service import THUMBNAIL_PREFIX, sanitize_credential

logger = logging.getLogger(__name__)

# one frame, ten seconds in, to skip black lead-in frames
CLIP_START = "00:00:10:00"
CLIP_END = "00:00:11:00"
FRAME_WIDTH = 1920
FRAME_HEIGHT = 1080
FRAME_QUALITY = 90

_endpoint_url: str | None = None
_client = None


class MediaConvertError(Exception):
    pass


def is_configured() -> bool:
    return bool(sanitize_credential(settings.MEDIACONVERT_ROLE_ARN))


def _session_kwargs() -> Dict[str, Any]:
    return {
        "region_name": settings.AWS_REGION,
        "aws_access_key_id": sanitize_credential(settings.AWS_ACCESS_KEY_ID),
        "aws_secret_access_key": sanitize_credential(settings.AWS_SECRET_ACCESS_KEY),
    }


def discover_endpoint() -> str:
    """
    Account-specific MediaConvert endpoint; configured value wins, otherwise
    DescribeEndpoints is asked once per process.
    """
    global _endpoint_url
    configured = sanitize_credential(settings.MEDIACONVERT_ENDPOINT)
    if configured:
        return configured
    if _endpoint_url is None:
        try:
            response = boto3.client("mediaconvert", **_session_kwargs()).describe_endpoints(
                MaxResults=1
            )
        except (BotoCoreError, ClientError) as e:
            raise MediaConvertError(f"endpoint discovery failed: {e}") from e
        endpoints = response.get("Endpoints") or []
        if not endpoints:
            raise MediaConvertError("no MediaConvert endpoint available for this account")
        _endpoint_url = endpoints[0]["Url"]
        logger.info(f"Discovered MediaConvert endpoint {_endpoint_url}")
    return _endpoint_url


def get_client():
    global _client
    if _client is None:
        _client = boto3.client(
            "mediaconvert", endpoint_url=discover_endpoint(), **_session_kwargs()
        )
    return _client


def reset_clients() -> None:
    global _client, _endpoint_url
    _client = None
    _endpoint_url = None


def expected_thumbnail_key(base_name: str) -> str:
    # MediaConvert appends NameModifier and a 7 digit frame counter
    return f"{THUMBNAIL_PREFIX}{base_name}_thumb_{base_name}.0000001.jpg"


def build_thumbnail_job(
    s3_key: str,
    video_id: str,
    base_name: str,
    metadata: Dict[str, str] | None = None,
) -> Dict[str, Any]:
    bucket = settings.S3_BUCKET_NAME
    user_metadata = {
        "video-id": video_id,
        "input-s3-key": s3_key,
        "thumbnail-basename": base_name,
        "purpose": "thumbnail-extraction",
        "generated-at": datetime.now(timezone.utc).isoformat(),
    }
    for key, value in (metadata or {}).items():
        user_metadata[key] = str(value)

    return {
        "Role": sanitize_credential(settings.MEDIACONVERT_ROLE_ARN),
        "Settings": {
            "Inputs": [
                {
                    "FileInput": f"s3://{bucket}/{s3_key}",
                    "VideoSelector": {"ColorSpace": "FOLLOW"},
                    "InputClippings": [
                        {"StartTimecode": CLIP_START, "EndTimecode": CLIP_END}
                    ],
                    "TimecodeSource": "ZEROBASED",
                }
            ],
            "OutputGroups": [
                {
                    "Name": "Thumbnail Output",
                    "OutputGroupSettings": {
                        "Type": "FILE_GROUP_SETTINGS",
                        "FileGroupSettings": {"Destination": f"s3://{bucket}/{THUMBNAIL_PREFIX}"},
                    },
                    "Outputs": [
                        {
                            "NameModifier": f"_thumb_{base_name}",
                            "ContainerSettings": {"Container": "RAW"},
                            "VideoDescription": {
                                "CodecSettings": {
                                    "Codec": "FRAME_CAPTURE",
                                    "FrameCaptureSettings": {
                                        "FramerateNumerator": 1,
                                        "FramerateDenominator": 1,
                                        "MaxCaptures": 1,
                                        "Quality": FRAME_QUALITY,
                                    },
                                },
                                "Width": FRAME_WIDTH,
                                "Height": FRAME_HEIGHT,
                                "ScalingBehavior": "DEFAULT",
                            },
                            "Extension": "jpg",
                        }
                    ],
                }
            ],
        },
        "UserMetadata": user_metadata,
    }


def create_thumbnail_job(
    s3_key: str,
    video_id: str,
    base_name: str,
    metadata: Dict[str, str] | None = None,
) -> str:
    if not is_configured():
        raise MediaConvertError("MEDIACONVERT_ROLE_ARN is not configured")

    job = build_thumbnail_job(s3_key, video_id, base_name, metadata)
    try:
        response = get_client().create_job(**job)
    except (BotoCoreError, ClientError) as e:
        raise MediaConvertError(f"create_job failed: {e}") from e

    job_id = (response.get("Job") or {}).get("Id")
    if not job_id:
        raise MediaConvertError("MediaConvert job creation returned no job id")

    logger.info(f"MediaConvert thumbnail job {job_id} created for video {video_id}")
    return job_id


def get_job(job_id: str) -> Dict[str, Any]:
    try:
        response = get_client().get_job(Id=job_id)
    except (BotoCoreError, ClientError) as e:
        raise MediaConvertError(f"get_job failed for {job_id}: {e}") from e
    return response.get("Job") or {}
