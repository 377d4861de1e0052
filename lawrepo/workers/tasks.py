"""
Thumbnail tasks for the rq worker.
Enqueued after an upload completes, see enqueue_thumbnail_task() in queue.py.
"""

import logging

from lawrepo.db.session import SessionLocal
from lawrepo.services.thumbnail_service import ThumbnailError, generate_thumbnail_for_id

logger = logging.getLogger(__name__)


def thumbnail_task(video_id: str) -> dict:
    """
    Run the thumbnail fallback chain for one video.

    Opens its own database session and never raises; the returned dict
    reports the outcome to rq.
    """
    db = SessionLocal()
    try:
        logger.info(f"Starting thumbnail task for video {video_id}")

        result = generate_thumbnail_for_id(db, video_id)

        if not result.success:
            logger.warning(f"Thumbnail task for video {video_id} failed: {result.error}")
            return {
                "status": "error",
                "video_id": video_id,
                "method": result.method,
                "error": result.error,
                "message": f"All thumbnail methods failed for video {video_id}",
            }

        logger.info(f"Completed thumbnail task for video {video_id}: method={result.method}")
        return {
            "status": "success",
            "video_id": video_id,
            "method": result.method,
            "thumbnail_url": result.thumbnail_url,
            "job_id": result.job_id,
            "message": f"Thumbnail generated for video {video_id}",
        }

    except ThumbnailError as e:
        logger.error(f"Thumbnail task failed for video {video_id}: {e}")
        return {
            "status": "error",
            "video_id": video_id,
            "error": str(e),
            "message": f"Thumbnail generation failed for video {video_id}",
        }

    except Exception as e:
        logger.error(
            f"Unexpected error during thumbnail task for video {video_id}: {e}",
            exc_info=True,
        )
        return {
            "status": "error",
            "video_id": video_id,
            "error": str(e),
            "message": "Unexpected error during thumbnail generation",
        }

    finally:
        db.close()
