# lawrepo/api/v1/endpoints/uploads.py
"""
Browser-direct uploads: the API hands out presigned S3 URLs, the browser PUTs
the bytes, then calls /upload to register the video.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from lawrepo.core.errors import error_body
from lawrepo.core.security import get_current_user_optional
from lawrepo.db.session import get_db
from lawrepo.models.user import User
from lawrepo.schemas.video import (
    MultipartAbortRequest,
    MultipartCompleteRequest,
    MultipartInitRequest,
    MultipartPartRequest,
    PresignedUrlRequest,
    UploadCompleteRequest,
    UploadCompleteResponse,
)
from lawrepo.services import storage_service, upload_service, video_service
from lawrepo.services.storage_service import StorageError, UploadValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/videos", tags=["uploads"])


def _require(**fields) -> None:
    missing = [name for name, value in fields.items() if value in (None, "", [])]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing required fields: {', '.join(missing)}",
        )


def _storage_failure(message: str, e: StorageError) -> HTTPException:
    logger.error(f"{message}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=error_body(message, str(e)),
    )


@router.post("/presigned-url")
def create_presigned_url(payload: PresignedUrlRequest):
    _require(filename=payload.filename, contentType=payload.content_type)
    try:
        result = storage_service.create_presigned_upload(
            payload.filename, payload.content_type, payload.file_size
        )
    except UploadValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StorageError as e:
        raise _storage_failure("Failed to generate upload URL", e)
    return {"success": True, **result}


@router.post("/multipart-upload")
def init_multipart_upload(payload: MultipartInitRequest):
    _require(filename=payload.filename, contentType=payload.content_type)
    try:
        result = storage_service.init_multipart_upload(
            payload.filename, payload.content_type, payload.file_size
        )
    except UploadValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StorageError as e:
        raise _storage_failure("Failed to initialize multipart upload", e)
    return {"success": True, **result}


@router.put("/multipart-upload")
def get_part_upload_url(payload: MultipartPartRequest):
    _require(uploadId=payload.upload_id, s3Key=payload.s3_key, partNumber=payload.part_number)
    if payload.part_number < 1 or payload.part_number > 10000:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="partNumber must be between 1 and 10000",
        )
    try:
        result = storage_service.presign_upload_part(
            payload.upload_id, payload.s3_key, payload.part_number
        )
    except StorageError as e:
        raise _storage_failure("Failed to generate part upload URL", e)
    return {"success": True, **result}


@router.patch("/multipart-upload")
def complete_multipart_upload(payload: MultipartCompleteRequest):
    _require(uploadId=payload.upload_id, s3Key=payload.s3_key, parts=payload.parts)
    parts = [{"partNumber": p.part_number, "etag": p.etag} for p in payload.parts]
    try:
        result = storage_service.complete_multipart_upload(payload.upload_id, payload.s3_key, parts)
    except StorageError as e:
        raise _storage_failure("Failed to complete multipart upload", e)
    return {"success": True, **result}


@router.delete("/multipart-upload")
def abort_multipart_upload(payload: MultipartAbortRequest):
    _require(uploadId=payload.upload_id, s3Key=payload.s3_key)
    try:
        storage_service.abort_multipart_upload(payload.upload_id, payload.s3_key)
    except StorageError as e:
        raise _storage_failure("Failed to abort multipart upload", e)
    return {"success": True, "message": "Multipart upload aborted"}


@router.post("/upload", response_model=UploadCompleteResponse)
def complete_upload(
    payload: UploadCompleteRequest,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(get_current_user_optional),
):
    try:
        outcome = upload_service.complete_upload(
            db,
            payload=payload,
            uploaded_by=current_user.id if current_user else None,
        )
    except UploadValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if outcome.duplicate:
        message = "Video already exists for this Mux asset"
    else:
        message = "Video uploaded successfully"
    return UploadCompleteResponse(
        message=message,
        video=video_service.to_public(outcome.video),
        thumbnail_url=outcome.thumbnail_url,
        mux_asset_id=outcome.mux_asset_id,
        duplicate=outcome.duplicate,
    )
