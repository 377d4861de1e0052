# lawrepo/api/v1/endpoints/mux_uploads.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from lawrepo.core.errors import error_body
from lawrepo.db.session import get_db
from lawrepo.schemas.video import MuxUploadRequest
from lawrepo.services import mux_client, mux_upload_service, video_service
from lawrepo.services.mux_client import MuxAPIError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mux", tags=["mux"])


def _require_mux() -> None:
    if not mux_client.is_configured():
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Mux is not configured", "Set MUX_TOKEN_ID and MUX_TOKEN_SECRET"),
        )


@router.post("/create-upload")
def create_upload(payload: MuxUploadRequest, db: Session = Depends(get_db)):
    if not payload.video_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required videoId")

    video = video_service.get_video(db, payload.video_id)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")

    _require_mux()
    try:
        upload = mux_upload_service.create_direct_upload(
            db,
            video=video,
            cors_origin=payload.cors_origin,
            playback_policy=payload.playback_policy,
            mp4_support=payload.mp4_support,
        )
    except MuxAPIError as e:
        logger.error(f"Mux upload creation failed for video {video.id}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Failed to create Mux upload", e.message),
        )

    return {
        "success": True,
        "endpoint": upload["url"],
        "uploadId": upload["id"],
        "videoId": str(video.id),
        "message": "Upload endpoint created",
    }


@router.get("/upload-status/{upload_id}")
def upload_status(upload_id: str):
    _require_mux()
    try:
        result = mux_upload_service.get_upload_status(upload_id)
    except MuxAPIError as e:
        if e.status_code == status.HTTP_404_NOT_FOUND:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Upload not found")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Failed to get upload status", e.message),
        )

    urls = {}
    if result.status == "ready" and result.playback_id:
        urls = mux_upload_service.playback_urls(result.playback_id)

    return {
        "success": True,
        "status": {
            "uploadId": result.upload_id,
            "status": result.status,
            "assetId": result.asset_id,
            "playbackId": result.playback_id,
            "error": result.error,
        },
        "urls": urls,
        "message": f"Upload status: {result.status}",
    }
