# lawrepo/api/v1/endpoints/videos.py
import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from lawrepo.core.security import get_current_user_optional, require_permission
from lawrepo.db.session import get_db
from lawrepo.models.user import User
from lawrepo.schemas.video import (
    VideoCreate,
    VideoDeleteResponse,
    VideoListResponse,
    VideoPublic,
    VideoUpdate,
    VideoViewCreate,
)
from lawrepo.services import audit_service, mux_client, storage_service, video_service
from lawrepo.services.mux_client import MuxAPIError, MuxClient
from lawrepo.services.storage_service import StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/videos", tags=["videos"])


def _get_video_or_404(db: Session, video_id: str):
    video = video_service.get_video(db, video_id)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
    return video


@router.get("", response_model=VideoListResponse)
def list_videos(
    search: str | None = None,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    limit = max(1, min(limit, 200))
    if search:
        videos = video_service.search_videos(db, search, limit=limit)
    else:
        videos = video_service.list_videos(db, skip=max(offset, 0), limit=limit)
    items = [video_service.to_public(v) for v in videos]
    return VideoListResponse(videos=items, count=len(items))


@router.post("", response_model=VideoPublic, status_code=status.HTTP_201_CREATED)
def create_video(
    obj_in: VideoCreate,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(get_current_user_optional),
):
    video = video_service.create_video(
        db, obj_in=obj_in, uploaded_by=current_user.id if current_user else None
    )
    return video_service.to_public(video)


@router.get("/{video_id}", response_model=VideoPublic)
def get_video(video_id: str, db: Session = Depends(get_db)):
    return video_service.to_public(_get_video_or_404(db, video_id))


@router.put("/{video_id}", response_model=VideoPublic)
def update_video(
    video_id: str,
    obj_in: VideoUpdate,
    db: Session = Depends(get_db),
):
    video = _get_video_or_404(db, video_id)
    video = video_service.update_video(db, db_obj=video, obj_in=obj_in)
    return video_service.to_public(video)


def _cleanup_remote_copies(
    video_id: str,
    s3_key: str | None,
    thumbnail_path: str | None,
    mux_asset_id: str | None,
) -> None:
    # best effort: the row is already gone
    keys = [s3_key, storage_service.key_from_url(thumbnail_path)]
    for key in [k for k in keys if k]:
        try:
            storage_service.delete_object(key)
        except StorageError as e:
            logger.warning(f"Could not delete s3 object {key} for video {video_id}: {e}")

    if mux_asset_id and mux_client.is_configured():
        try:
            with MuxClient.from_settings() as client:
                client.delete_asset(mux_asset_id)
        except MuxAPIError as e:
            logger.warning(f"Could not delete Mux asset {mux_asset_id}: {e.message}")


@router.delete("/{video_id}", response_model=VideoDeleteResponse)
def delete_video(
    video_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("videos:delete")),
):
    video = _get_video_or_404(db, video_id)
    deleted = video_service.summary(video)
    remote = (str(video.id), video.s3_key, video.thumbnail_path, video.mux_asset_id)

    audit_service.record(
        db,
        action="video_deleted",
        user_id=current_user.id,
        resource_type="video",
        resource_id=video.id,
        old_values=deleted,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        commit=False,
    )
    video_service.delete_video(db, db_obj=video)
    logger.info(f"Video {video_id} deleted by {current_user.id}")

    _cleanup_remote_copies(*remote)

    return VideoDeleteResponse(
        message=f"Video '{deleted['title']}' deleted successfully",
        deleted_video=deleted,
    )


@router.post("/{video_id}/view")
def record_view(
    video_id: str,
    request: Request,
    payload: VideoViewCreate | None = Body(default=None),
    db: Session = Depends(get_db),
    current_user: User | None = Depends(get_current_user_optional),
):
    video = _get_video_or_404(db, video_id)
    payload = payload or VideoViewCreate()
    viewer_id = current_user.id if current_user else payload.viewer_id
    video = video_service.increment_views(
        db,
        video=video,
        viewer_id=viewer_id,
        watch_duration=payload.watch_duration,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return {"success": True, "views": video.view_count}
