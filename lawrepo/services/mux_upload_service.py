# lawrepo/services/mux_upload_service.py
"""
Direct uploads to Mux. The browser PUTs the file to a one-off Mux URL; the
asset Mux builds from it carries the video id as passthrough, so the webhook
handlers attach it to the right row.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict

from sqlalchemy.orm import Session

from lawrepo.core.config import settings
from lawrepo.models.video import Video
from lawrepo.services import mux_client, video_service
from lawrepo.services.mux_client import MuxAPIError, MuxClient

logger = logging.getLogger(__name__)

# Mux upload status -> status reported to the browser
UPLOAD_STATUS_MAP = {
    "waiting": "waiting_for_upload",
    "asset_created": "asset_created",
    "errored": "errored",
    "cancelled": "errored",
    "timed_out": "errored",
}
ASSET_STATUSES = ("preparing", "ready", "errored")

THUMBNAIL_SIZES = {
    "small": (320, 180),
    "medium": (640, 360),
    "large": (1280, 720),
}
MP4_QUALITIES = ("high", "medium", "low")


@dataclass
class UploadStatus:
    upload_id: str
    status: str
    asset_id: str | None = None
    playback_id: str | None = None
    error: str | None = None


def create_direct_upload(
    db: Session,
    *,
    video: Video,
    cors_origin: str | None = None,
    playback_policy: str = "public",
    mp4_support: str = "none",
) -> Dict[str, Any]:
    """
    Ask Mux for an upload URL bound to `video` and remember the upload id on
    the row. Raises MuxAPIError when Mux refuses or answers without a URL.
    """
    with MuxClient.from_settings() as client:
        upload = client.create_direct_upload(
            passthrough=str(video.id),
            cors_origin=cors_origin or settings.MUX_UPLOAD_CORS_ORIGIN,
            playback_policy=playback_policy,
            mp4_support=mp4_support,
            test=settings.MUX_TEST_MODE,
        )

    if not upload.get("id") or not upload.get("url"):
        raise MuxAPIError("Mux returned an upload without id or url", response_body=str(upload))

    video_service.update_fields(
        db,
        db_obj=video,
        mux_upload_id=upload["id"],
        mux_status="waiting_for_upload",
    )
    logger.info(f"Mux direct upload {upload['id']} created for video {video.id}")
    return upload


def _upload_error(upload: Dict[str, Any]) -> str | None:
    error = upload.get("error")
    if not error:
        return None
    if isinstance(error, dict):
        return error.get("message") or error.get("type") or str(error)
    return str(error)


def get_upload_status(upload_id: str) -> UploadStatus:
    with MuxClient.from_settings() as client:
        upload = client.get_upload(upload_id)
        result = UploadStatus(
            upload_id=upload_id,
            status=UPLOAD_STATUS_MAP.get(upload.get("status"), "waiting_for_upload"),
            asset_id=upload.get("asset_id"),
            error=_upload_error(upload),
        )
        if not result.asset_id:
            return result

        # the asset is further along than the upload once it exists
        try:
            asset = client.get_asset(result.asset_id)
        except MuxAPIError as e:
            logger.warning(f"Could not fetch Mux asset {result.asset_id} for upload {upload_id}: {e.message}")
            return result

    if asset.get("status") in ASSET_STATUSES:
        result.status = asset["status"]
    result.playback_id = mux_client.first_playback_id(asset)
    return result


def playback_urls(playback_id: str) -> Dict[str, Any]:
    thumb = mux_client.thumbnail_url(playback_id)
    return {
        "streaming": mux_client.streaming_url(playback_id),
        "thumbnail": thumb,
        "thumbnails": {
            name: f"{thumb}&width={width}&height={height}"
            for name, (width, height) in THUMBNAIL_SIZES.items()
        },
        "mp4": {
            quality: f"{mux_client.STREAM_BASE}/{playback_id}/{quality}.mp4"
            for quality in MP4_QUALITIES
        },
    }
