# lawrepo/api/v1/endpoints/thumbnails.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse, Response
from sqlalchemy.orm import Session

from lawrepo.core.errors import error_body
from lawrepo.db.session import get_db
from lawrepo.schemas.video import (
    BatchThumbnailResponse,
    ThumbnailGenerateRequest,
    ThumbnailResultPublic,
)
from lawrepo.services import thumbnail_service, video_service
from lawrepo.services.mediaconvert_client import MediaConvertError
from lawrepo.services.thumbnail_service import ThumbnailError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/videos", tags=["thumbnails"])


@router.post("/generate-thumbnails")
def generate_thumbnails(payload: ThumbnailGenerateRequest, db: Session = Depends(get_db)):
    if payload.batch_mode:
        summary = thumbnail_service.batch_generate(
            db,
            limit=max(1, min(payload.limit, 100)),
            force=payload.force_regenerate,
            offset=max(payload.offset, 0),
        )
        return BatchThumbnailResponse(
            message=f"Processed {summary['processed']} videos",
            processed=summary["processed"],
            successful=summary["successful"],
            failed=summary["failed"],
            results=[ThumbnailResultPublic(**r) for r in summary["results"]],
            force_regenerate=summary["force_regenerate"],
            offset=summary["offset"],
        )

    if not payload.video_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="videoId is required unless batchMode is set",
        )

    video = video_service.get_video(db, payload.video_id)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")

    result = thumbnail_service.generate_thumbnail(db, video)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Thumbnail generation failed", result.error),
        )
    return ThumbnailResultPublic(video_id=payload.video_id, **result.to_dict())


@router.get("/generate-thumbnails")
def thumbnail_status(
    action: str | None = None,
    job_id: str | None = Query(default=None, alias="jobId"),
    video_id: str | None = Query(default=None, alias="videoId"),
    limit: int = 20,
    db: Session = Depends(get_db),
):
    if action == "check-job-status":
        if not job_id or not video_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="jobId and videoId are required",
            )
        try:
            completed = thumbnail_service.check_thumbnail_job(db, job_id, video_id)
        except ThumbnailError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
        except MediaConvertError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=error_body("Failed to check job status", str(e)),
            )
        return {"success": True, "jobId": job_id, "videoId": video_id, "completed": completed}

    if action == "list-videos-without-thumbnails":
        videos = video_service.find_videos_without_thumbnails(db, limit=max(1, min(limit, 100)))
        return {
            "success": True,
            "count": len(videos),
            "videos": [
                {
                    "id": str(v.id),
                    "title": v.title,
                    "filename": v.filename,
                    "s3Key": v.s3_key,
                    "thumbnailPath": v.thumbnail_path,
                }
                for v in videos
            ],
        }

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Unknown action; use check-job-status or list-videos-without-thumbnails",
    )


@router.get("/thumbnail/{video_id}")
def serve_thumbnail(video_id: str, db: Session = Depends(get_db)):
    video = video_service.get_video(db, video_id)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")

    url = video_service.resolve_thumbnail_url(video)
    if url.startswith("http"):
        return RedirectResponse(url, status_code=status.HTTP_302_FOUND)

    svg = thumbnail_service.render_placeholder_svg(str(video.id), video.title)
    return Response(
        content=svg,
        media_type="image/svg+xml",
        headers={"Cache-Control": "public, max-age=3600"},
    )
