# lawrepo/services/video_service.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from lawrepo.db.types import is_valid_uuid
from lawrepo.models.video import Video, VideoView
from lawrepo.schemas.video import VideoCreate, VideoPublic, VideoUpdate
from lawrepo.services import mux_client

FALLBACK_THUMBNAIL_PATH = "/api/videos/thumbnail/{video_id}"

# markers of thumbnails that were never really generated
BROKEN_THUMBNAIL_MARKERS = (
    "Video Thumbnail",
    "/api/videos/thumbnail/",
    "placeholder",
    "error",
    "404",
    "broken",
    "missing",
)


def create_video(db: Session, *, obj_in: VideoCreate, uploaded_by: str | None = None) -> Video:
    db_obj = Video(
        title=obj_in.title,
        description=obj_in.description,
        filename=obj_in.filename,
        file_path=obj_in.file_path,
        file_size=obj_in.file_size,
        duration=obj_in.duration,
        thumbnail_path=obj_in.thumbnail_path,
        video_quality=obj_in.video_quality,
        is_processed=obj_in.is_processed,
        is_public=obj_in.is_public,
        visibility="public" if obj_in.is_public else "private",
        status="ready" if obj_in.is_processed else "pending",
        category=obj_in.category,
        tags=obj_in.tags,
        s3_key=obj_in.s3_key,
        course_id=obj_in.course_id,
        uploaded_by=uploaded_by,
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def get_video(db: Session, video_id: str) -> Optional[Video]:
    if not is_valid_uuid(video_id):
        return None
    return db.get(Video, video_id)


def find_by_mux_asset_id(db: Session, mux_asset_id: str | None) -> Optional[Video]:
    if not mux_asset_id:
        return None
    return db.query(Video).filter(Video.mux_asset_id == mux_asset_id).first()


def list_videos(db: Session, *, skip: int = 0, limit: int = 100) -> List[Video]:
    return (
        db.query(Video)
        .order_by(Video.uploaded_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_public_videos(db: Session, *, skip: int = 0, limit: int = 100) -> List[Video]:
    return (
        db.query(Video)
        .filter(Video.is_public.is_(True))
        .order_by(Video.uploaded_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def search_videos(db: Session, term: str, *, limit: int = 20) -> List[Video]:
    pattern = f"%{term}%"
    return (
        db.query(Video)
        .filter(
            or_(
                Video.title.ilike(pattern),
                Video.description.ilike(pattern),
                Video.filename.ilike(pattern),
            )
        )
        .order_by(Video.uploaded_at.desc())
        .limit(limit)
        .all()
    )


def update_video(db: Session, *, db_obj: Video, obj_in: VideoUpdate) -> Video:
    update_data = obj_in.model_dump(exclude_unset=True)
    for flag in ("visibility", "is_public"):
        if flag in update_data and update_data[flag] is None:
            del update_data[flag]

    # visibility and is_public are two views of the same flag
    if "visibility" in update_data and "is_public" not in update_data:
        update_data["is_public"] = update_data["visibility"] == "public"
    elif "is_public" in update_data and "visibility" not in update_data:
        update_data["visibility"] = "public" if update_data["is_public"] else "private"

    for field, value in update_data.items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def update_fields(db: Session, *, db_obj: Video, **fields: Any) -> Video:
    for field, value in fields.items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def delete_video(db: Session, *, db_obj: Video) -> None:
    db.delete(db_obj)
    db.commit()


def increment_views(
    db: Session,
    *,
    video: Video,
    viewer_id: str | None = None,
    watch_duration: int | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> Video:
    # increment happens in SQL; the view row commits with it
    db.query(Video).filter(Video.id == video.id).update(
        {Video.view_count: func.coalesce(Video.view_count, 0) + 1},
        synchronize_session=False,
    )
    db.add(
        VideoView(
            video_id=video.id,
            viewer_id=viewer_id if is_valid_uuid(viewer_id) else None,
            watch_duration=watch_duration,
            ip_address=ip_address,
            user_agent=user_agent,
        )
    )
    db.commit()
    db.refresh(video)
    return video


def find_videos_without_thumbnails(db: Session, *, limit: int = 20) -> List[Video]:
    return (
        db.query(Video)
        .filter(
            or_(
                Video.thumbnail_path.is_(None),
                Video.thumbnail_path == "",
                Video.thumbnail_path.like("%Video Thumbnail%"),
            )
        )
        .order_by(Video.uploaded_at.desc())
        .limit(limit)
        .all()
    )


def find_videos_with_broken_thumbnails(
    db: Session, *, limit: int = 10, offset: int = 0
) -> List[Video]:
    conditions = [Video.thumbnail_path.is_(None), Video.thumbnail_path == ""]
    conditions += [Video.thumbnail_path.like(f"%{marker}%") for marker in BROKEN_THUMBNAIL_MARKERS]
    return (
        db.query(Video)
        .filter(or_(*conditions))
        .order_by(Video.uploaded_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def find_all_for_thumbnail_regeneration(
    db: Session, *, limit: int = 50, offset: int = 0
) -> List[Video]:
    return (
        db.query(Video)
        .order_by(Video.uploaded_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def update_mux_asset(db: Session, *, video_id: str, **mux_fields: Any) -> Optional[Video]:
    """
    Apply webhook data to a video; returns None when the row does not exist.
    Keys whose value is None are left untouched.
    """
    video = get_video(db, video_id)
    if video is None:
        return None
    for field, value in mux_fields.items():
        if value is not None:
            setattr(video, field, value)
    video.webhook_received_at = datetime.now(timezone.utc)
    db.add(video)
    db.commit()
    db.refresh(video)
    return video


def resolve_thumbnail_url(video: Video) -> str:
    if video.thumbnail_method == "timestamp" and video.mux_playback_id:
        return mux_client.thumbnail_url(video.mux_playback_id, video.thumbnail_timestamp or 0)
    if video.thumbnail_path:
        return video.thumbnail_path
    if video.mux_playback_id:
        return mux_client.thumbnail_url(video.mux_playback_id)
    return FALLBACK_THUMBNAIL_PATH.format(video_id=video.id)


def split_tags(tags: str | None) -> List[str]:
    if not tags:
        return []
    return [t.strip() for t in tags.split(",") if t.strip()]


def to_public(video: Video) -> VideoPublic:
    return VideoPublic(
        id=str(video.id),
        title=video.title or video.filename or "Untitled Video",
        description=video.description or "",
        filename=video.filename or "",
        duration=video.duration or video.mux_duration_seconds or 0,
        size=video.file_size or 0,
        upload_date=video.uploaded_at,
        status="ready" if video.is_processed else "processing",
        visibility="public" if video.is_public else "private",
        category=video.category or "general",
        tags=split_tags(video.tags),
        views=video.view_count or 0,
        created_by=str(video.uploaded_by) if video.uploaded_by else "Unknown",
        thumbnail_url=resolve_thumbnail_url(video),
        stream_url=video.mux_streaming_url or video.stream_url or video.file_path,
        s3_key=video.s3_key,
        file_path=video.file_path,
        mux_playback_id=video.mux_playback_id,
        mux_status=video.mux_status,
    )


def summary(video: Video) -> Dict[str, Any]:
    return {
        "id": str(video.id),
        "title": video.title,
        "filename": video.filename,
        "s3Key": video.s3_key,
    }
