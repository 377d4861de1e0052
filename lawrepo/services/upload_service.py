# lawrepo/services/upload_service.py
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lawrepo.core.config import settings
from lawrepo.db.types import is_valid_uuid
from lawrepo.models.video import Video
from lawrepo.schemas.video import UploadCompleteRequest
from lawrepo.services import mux_client, storage_service, thumbnail_service, video_service
from lawrepo.services.mux_client import MuxAPIError, MuxClient
from lawrepo.services.storage_service import UploadValidationError
from lawrepo.workers.queue import enqueue_thumbnail_task

logger = logging.getLogger(__name__)


@dataclass
class UploadOutcome:
    video: Video
    thumbnail_url: str | None = None
    mux_asset_id: str | None = None
    duplicate: bool = False


def normalize_tags(tags: str | List[str] | None) -> str | None:
    if tags is None:
        return None
    if isinstance(tags, str):
        items = tags.split(",")
    else:
        items = tags
    cleaned = [t.strip() for t in items if t and t.strip()]
    return ",".join(cleaned) if cleaned else None


def _store_client_thumbnail(db: Session, video: Video, data_url: str) -> str | None:
    result = thumbnail_service.upload_client_thumbnail(str(video.id), data_url)
    if not result.success:
        logger.warning(f"Client thumbnail upload failed for video {video.id}: {result.error}")
        return None
    try:
        thumbnail_service.persist_result(db, video, result)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Could not save client thumbnail for video {video.id}: {e}")
        return None
    return result.thumbnail_url


def _create_mux_asset(db: Session, video: Video, source_url: str) -> str | None:
    try:
        with MuxClient.from_settings() as client:
            asset = client.create_asset_from_url(
                source_url,
                passthrough=str(video.id),
                test=settings.MUX_TEST_MODE,
            )
    except MuxAPIError as e:
        logger.warning(f"Mux asset creation failed for video {video.id}: {e.message}")
        return None

    asset_id = asset.get("id")
    if not asset_id:
        logger.warning(f"Mux returned no asset id for video {video.id}")
        return None

    try:
        video_service.update_fields(
            db,
            db_obj=video,
            mux_asset_id=asset_id,
            mux_playback_id=mux_client.first_playback_id(asset),
            mux_status=asset.get("status") or "preparing",
            mux_created_at=datetime.now(timezone.utc),
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Could not store Mux asset {asset_id} on video {video.id}: {e}")
        return None
    return asset_id


def complete_upload(
    db: Session,
    *,
    payload: UploadCompleteRequest,
    uploaded_by: str | None = None,
) -> UploadOutcome:
    """
    Register a video whose bytes were already PUT to S3 through a presigned URL.

    Exactly one row is created (or the existing row returned when the Mux
    asset id is already known). Thumbnail upload, Mux asset creation and
    queueing are best effort.
    """
    missing = [
        name
        for name, value in (
            ("s3Key", payload.s3_key),
            ("publicUrl", payload.public_url),
            ("filename", payload.filename),
        )
        if not value
    ]
    if missing:
        raise UploadValidationError(f"Missing required fields: {', '.join(missing)}")

    if payload.mux_asset_id:
        existing = video_service.find_by_mux_asset_id(db, payload.mux_asset_id)
        if existing is not None:
            logger.info(f"Upload for Mux asset {payload.mux_asset_id} already registered as {existing.id}")
            return UploadOutcome(
                video=existing,
                thumbnail_url=existing.thumbnail_path,
                mux_asset_id=existing.mux_asset_id,
                duplicate=True,
            )

    file_url = storage_service.cdn_url(payload.s3_key) or payload.public_url
    is_public = payload.visibility == "public"
    title = payload.title or os.path.splitext(payload.filename)[0] or payload.filename

    video = Video(
        title=title,
        description=payload.description or "",
        filename=payload.filename,
        file_path=file_url,
        stream_url=file_url,
        file_size=payload.file_size or 0,
        duration=payload.duration or 0,
        category=payload.category or "general",
        tags=normalize_tags(payload.tags),
        is_processed=True,
        is_public=is_public,
        status="ready",
        visibility="public" if is_public else "private",
        s3_key=payload.s3_key,
        s3_bucket=settings.S3_BUCKET_NAME,
        mux_asset_id=payload.mux_asset_id,
        course_id=payload.course_id if is_valid_uuid(payload.course_id) else None,
        uploaded_by=uploaded_by if is_valid_uuid(uploaded_by) else None,
        processed_at=datetime.now(timezone.utc),
    )
    db.add(video)
    db.commit()
    db.refresh(video)
    logger.info(f"Video {video.id} created from upload {payload.s3_key}")

    thumbnail_url = None
    if payload.auto_thumbnail:
        thumbnail_url = _store_client_thumbnail(db, video, payload.auto_thumbnail)

    mux_asset_id = payload.mux_asset_id
    if not mux_asset_id and payload.create_mux_asset and mux_client.is_configured():
        mux_asset_id = _create_mux_asset(db, video, payload.public_url)

    if thumbnail_url is None:
        try:
            job_id = enqueue_thumbnail_task(str(video.id))
            logger.info(f"Queued thumbnail job {job_id} for video {video.id}")
        except RedisError as e:
            logger.warning(f"Could not queue thumbnail generation for video {video.id}: {e}")

    return UploadOutcome(video=video, thumbnail_url=thumbnail_url, mux_asset_id=mux_asset_id)
