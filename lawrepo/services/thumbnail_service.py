# lawrepo/services/thumbnail_service.py
"""
Thumbnail generation for uploaded videos.

Strategies are tried in a fixed order and the first one that succeeds is
persisted on the video row:

  1. mediaconvert  - AWS frame capture job (asynchronous, URL is predicted)
  2. ffmpeg        - grab a frame locally from the public S3 URL
  3. client_side   - frame captured by the browser, sent as a data URL
  4. placeholder   - generated SVG
"""
import base64
import binascii
import logging
import os
import shutil
import subprocess
import tempfile
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List

from sqlalchemy.orm import Session

from lawrepo.core.config import settings
from lawrepo.models.video import Video
from lawrepo.services import mediaconvert_client, storage_service, video_service
from lawrepo.services.mediaconvert_client import MediaConvertError
from lawrepo.services.storage_service import THUMBNAIL_PREFIX, StorageError

logger = logging.getLogger(__name__)

PLACEHOLDER_COLORS = [
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#96CEB4",
    "#FFEAA7",
    "#DDA0DD",
    "#98D8C8",
]

FFMPEG_TIMEOUT_SECONDS = 120


class ThumbnailError(Exception):
    pass


@dataclass
class ThumbnailResult:
    success: bool
    method: str
    thumbnail_url: str | None = None
    s3_key: str | None = None
    error: str | None = None
    job_id: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def thumbnail_base_name(video: Video | None, video_id: str) -> str:
    if video is None:
        return video_id
    stem = os.path.splitext(video.filename or "")[0] or "video"
    uploaded_ms = int(video.uploaded_at.timestamp() * 1000) if video.uploaded_at else 0
    return f"{stem}_{uploaded_ms}_{video_id}"


def generate_with_mediaconvert(video: Video) -> ThumbnailResult:
    if not video.s3_key:
        return ThumbnailResult(False, "mediaconvert", error="video has no s3_key")
    if not mediaconvert_client.is_configured():
        return ThumbnailResult(False, "mediaconvert", error="MediaConvert is not configured")

    base_name = thumbnail_base_name(video, str(video.id))
    try:
        job_id = mediaconvert_client.create_thumbnail_job(
            video.s3_key,
            str(video.id),
            base_name,
            metadata={"title": video.title or ""},
        )
    except MediaConvertError as e:
        return ThumbnailResult(False, "mediaconvert", error=str(e))

    # the job finishes later; point at the key it will write
    s3_key = mediaconvert_client.expected_thumbnail_key(base_name)
    return ThumbnailResult(
        True,
        "mediaconvert",
        thumbnail_url=storage_service.delivery_url(s3_key),
        s3_key=s3_key,
        job_id=job_id,
    )


def generate_with_ffmpeg(video: Video) -> ThumbnailResult:
    if not video.s3_key:
        return ThumbnailResult(False, "ffmpeg", error="video has no s3_key")
    ffmpeg = shutil.which(settings.FFMPEG_BINARY)
    if not ffmpeg:
        return ThumbnailResult(False, "ffmpeg", error="ffmpeg not found on PATH")

    source_url = storage_service.public_url(video.s3_key)
    fd, tmp_path = tempfile.mkstemp(suffix=".jpg")
    os.close(fd)
    try:
        cmd = [
            ffmpeg,
            "-i", source_url,
            "-ss", "00:00:10",
            "-vframes", "1",
            "-q:v", "2",
            "-y",
            tmp_path,
        ]
        try:
            subprocess.run(
                cmd,
                check=True,
                capture_output=True,
                timeout=FFMPEG_TIMEOUT_SECONDS,
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="replace")[-500:]
            return ThumbnailResult(False, "ffmpeg", error=f"ffmpeg failed: {stderr}")
        except subprocess.TimeoutExpired:
            return ThumbnailResult(False, "ffmpeg", error="ffmpeg timed out")

        with open(tmp_path, "rb") as f:
            data = f.read()
        if not data:
            return ThumbnailResult(False, "ffmpeg", error="ffmpeg produced an empty frame")

        base_name = thumbnail_base_name(video, str(video.id))
        key = f"{THUMBNAIL_PREFIX}{base_name}_ffmpeg_{storage_service.now_ms()}.jpg"
        try:
            storage_service.upload_bytes(data, key, "image/jpeg")
        except StorageError as e:
            return ThumbnailResult(False, "ffmpeg", error=str(e))
        return ThumbnailResult(True, "ffmpeg", thumbnail_url=storage_service.delivery_url(key), s3_key=key)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def decode_data_url(data_url: str) -> tuple[bytes, str]:
    """
    `data:image/jpeg;base64,...` -> (bytes, content type). Raises ThumbnailError.
    """
    if not data_url or not data_url.startswith("data:") or "," not in data_url:
        raise ThumbnailError("thumbnail is not a data URL")
    header, encoded = data_url.split(",", 1)
    content_type = header[5:].split(";", 1)[0] or "image/jpeg"
    if ";base64" not in header:
        raise ThumbnailError("thumbnail data URL is not base64 encoded")
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ThumbnailError(f"invalid base64 thumbnail data: {e}") from e
    if not data:
        raise ThumbnailError("thumbnail data is empty")
    return data, content_type


def upload_client_thumbnail(video_id: str, data_url: str | None) -> ThumbnailResult:
    if not data_url:
        return ThumbnailResult(False, "client_side", error="no client thumbnail supplied")
    try:
        data, content_type = decode_data_url(data_url)
        key = f"{THUMBNAIL_PREFIX}{video_id}_client_{storage_service.now_ms()}.jpg"
        storage_service.upload_bytes(data, key, content_type)
    except (ThumbnailError, StorageError) as e:
        return ThumbnailResult(False, "client_side", error=str(e))
    return ThumbnailResult(True, "client_side", thumbnail_url=storage_service.delivery_url(key), s3_key=key)


def placeholder_color(video_id: str) -> str:
    return PLACEHOLDER_COLORS[len(video_id) % len(PLACEHOLDER_COLORS)]


def _escape(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def render_placeholder_svg(video_id: str, title: str | None = None) -> str:
    color = placeholder_color(video_id)
    label = _escape((title or "Video")[:40])
    return f"""<svg width="1920" height="1080" xmlns="http://www.w3.org/2000/svg">
  <defs>
    <linearGradient id="bg" x1="0%" y1="0%" x2="100%" y2="100%">
      <stop offset="0%" style="stop-color:{color};stop-opacity:1" />
      <stop offset="100%" style="stop-color:{color}CC;stop-opacity:1" />
    </linearGradient>
  </defs>
  <rect width="100%" height="100%" fill="url(#bg)"/>
  <circle cx="960" cy="480" r="120" fill="white" fill-opacity="0.9"/>
  <polygon points="920,420 920,540 1030,480" fill="{color}"/>
  <text x="960" y="720" text-anchor="middle" fill="white" font-family="Arial, sans-serif" font-size="56" font-weight="bold">{label}</text>
  <text x="960" y="800" text-anchor="middle" fill="white" fill-opacity="0.8" font-family="Arial, sans-serif" font-size="36">Law School Repository</text>
</svg>"""


def generate_placeholder(video_id: str, title: str | None = None) -> ThumbnailResult:
    svg = render_placeholder_svg(video_id, title)
    key = f"{THUMBNAIL_PREFIX}{video_id}_placeholder_{storage_service.now_ms()}.svg"
    try:
        storage_service.upload_bytes(svg.encode("utf-8"), key, "image/svg+xml")
    except StorageError as e:
        return ThumbnailResult(False, "placeholder", error=str(e))
    return ThumbnailResult(True, "placeholder", thumbnail_url=storage_service.delivery_url(key), s3_key=key)


def build_chain(video: Video, client_image: str | None = None) -> List[Callable[[], ThumbnailResult]]:
    video_id = str(video.id)
    return [
        lambda: generate_with_mediaconvert(video),
        lambda: generate_with_ffmpeg(video),
        lambda: upload_client_thumbnail(video_id, client_image),
        lambda: generate_placeholder(video_id, video.title),
    ]


def run_chain(steps: List[Callable[[], ThumbnailResult]]) -> ThumbnailResult:
    """
    Run strategies in order and stop at the first success.
    """
    last: ThumbnailResult | None = None
    for step in steps:
        result = step()
        if result.success:
            return result
        logger.info(f"Thumbnail method {result.method} skipped/failed: {result.error}")
        last = result
    if last is None:
        return ThumbnailResult(False, "none", error="no thumbnail strategies configured")
    return last


def persist_result(db: Session, video: Video, result: ThumbnailResult) -> Video:
    fields: Dict[str, Any] = {
        "thumbnail_path": result.thumbnail_url,
        "thumbnail_method": result.method,
    }
    if result.job_id:
        fields["mediaconvert_job_id"] = result.job_id
    return video_service.update_fields(db, db_obj=video, **fields)


def generate_thumbnail(
    db: Session,
    video: Video,
    client_image: str | None = None,
) -> ThumbnailResult:
    logger.info(f"Generating thumbnail for video {video.id}")
    result = run_chain(build_chain(video, client_image))
    if result.success:
        persist_result(db, video, result)
        logger.info(f"Thumbnail for video {video.id} generated via {result.method}: {result.thumbnail_url}")
    else:
        logger.warning(f"All thumbnail methods failed for video {video.id}: {result.error}")
    return result


def generate_thumbnail_for_id(
    db: Session,
    video_id: str,
    client_image: str | None = None,
) -> ThumbnailResult:
    video = video_service.get_video(db, video_id)
    if video is None:
        raise ThumbnailError(f"Video {video_id} not found")
    return generate_thumbnail(db, video, client_image)


def check_thumbnail_job(db: Session, job_id: str, video_id: str) -> bool:
    """
    True once the MediaConvert job is COMPLETE and the video row points at its output.
    """
    job = mediaconvert_client.get_job(job_id)
    job_status = job.get("Status")
    if job_status != "COMPLETE":
        if job_status == "ERROR":
            logger.warning(f"MediaConvert job {job_id} failed: {job.get('ErrorMessage')}")
        return False

    video = video_service.get_video(db, video_id)
    if video is None:
        raise ThumbnailError(f"Video {video_id} not found")

    base_name = (job.get("UserMetadata") or {}).get("thumbnail-basename") or thumbnail_base_name(
        video, str(video.id)
    )
    key = mediaconvert_client.expected_thumbnail_key(base_name)
    video_service.update_fields(
        db,
        db_obj=video,
        thumbnail_path=storage_service.delivery_url(key),
        thumbnail_method="mediaconvert",
        mediaconvert_job_id=job_id,
    )
    return True


def batch_generate(
    db: Session,
    *,
    limit: int = 10,
    force: bool = False,
    offset: int = 0,
) -> Dict[str, Any]:
    if force:
        videos = video_service.find_all_for_thumbnail_regeneration(db, limit=limit, offset=offset)
    else:
        videos = video_service.find_videos_with_broken_thumbnails(db, limit=limit, offset=offset)

    results: List[Dict[str, Any]] = []
    successful = 0
    for video in videos:
        try:
            result = generate_thumbnail(db, video)
        except Exception as e:
            logger.error(f"Thumbnail generation crashed for video {video.id}: {e}", exc_info=True)
            db.rollback()
            result = ThumbnailResult(False, "none", error=str(e))
        if result.success:
            successful += 1
        entry = result.to_dict()
        entry["video_id"] = str(video.id)
        results.append(entry)

    return {
        "processed": len(videos),
        "successful": successful,
        "failed": len(videos) - successful,
        "results": results,
        "force_regenerate": force,
        "offset": offset,
    }
