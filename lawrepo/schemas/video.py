# lawrepo/schemas/video.py
from datetime import datetime
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # front end speaks camelCase, python side stays snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VideoBase(BaseModel):
    title: str
    description: str | None = None
    category: str | None = None
    tags: str | None = None
    is_public: bool = False
    course_id: str | None = None


class VideoCreate(VideoBase):
    filename: str
    file_path: str
    file_size: int | None = None
    duration: int | None = None
    s3_key: str | None = None
    thumbnail_path: str | None = None
    video_quality: str = "HD"
    is_processed: bool = False


class VideoUpdate(CamelModel):
    title: str | None = None
    description: str | None = None
    category: str | None = None
    tags: str | None = None
    is_public: bool | None = None
    visibility: Literal["public", "private"] | None = None
    thumbnail_path: str | None = None
    thumbnail_method: str | None = None
    thumbnail_timestamp: int | None = None
    course_id: str | None = None


class VideoPublic(CamelModel):
    id: str
    title: str
    description: str = ""
    filename: str = ""
    duration: int = 0
    size: int = 0
    upload_date: datetime | None = None
    status: str
    visibility: str
    category: str = "general"
    tags: List[str] = []
    views: int = 0
    created_by: str = "Unknown"
    thumbnail_url: str
    stream_url: str | None = None
    s3_key: str | None = None
    file_path: str | None = None
    mux_playback_id: str | None = None
    mux_status: str | None = None


class VideoListResponse(BaseModel):
    success: bool = True
    videos: List[VideoPublic]
    count: int


class VideoViewCreate(CamelModel):
    viewer_id: str | None = None
    watch_duration: int | None = None


class PresignedUrlRequest(CamelModel):
    filename: str | None = None
    content_type: str | None = None
    file_size: int | None = None


class MultipartInitRequest(PresignedUrlRequest):
    pass


class MultipartPartRequest(CamelModel):
    upload_id: str | None = None
    s3_key: str | None = None
    part_number: int | None = None


class CompletedPart(CamelModel):
    part_number: int
    etag: str


class MultipartCompleteRequest(CamelModel):
    upload_id: str | None = None
    s3_key: str | None = None
    parts: List[CompletedPart] | None = None


class MultipartAbortRequest(CamelModel):
    upload_id: str | None = None
    s3_key: str | None = None


class UploadCompleteRequest(CamelModel):
    """Sent by the browser once its presigned PUT finished."""

    s3_key: str | None = None
    public_url: str | None = None
    filename: str | None = None
    title: str | None = None
    description: str | None = None
    category: str | None = None
    tags: str | List[str] | None = None
    visibility: str = "private"
    file_size: int | None = None
    duration: int | None = None
    course_id: str | None = None
    auto_thumbnail: str | None = None  # data:image/...;base64,...
    mux_asset_id: str | None = None
    create_mux_asset: bool = True


class MuxUploadRequest(CamelModel):
    video_id: str | None = None
    cors_origin: str | None = None
    playback_policy: Literal["public", "signed"] = "public"
    mp4_support: Literal["none", "standard", "capped-1080p"] = "none"


class UploadCompleteResponse(CamelModel):
    success: bool = True
    message: str
    video: VideoPublic
    thumbnail_url: str | None = None
    mux_asset_id: str | None = None
    duplicate: bool = False


class ThumbnailGenerateRequest(CamelModel):
    video_id: str | None = None
    batch_mode: bool = False
    limit: int = 10
    offset: int = 0
    force_regenerate: bool = False


class ThumbnailResultPublic(CamelModel):
    success: bool
    method: str
    thumbnail_url: str | None = None
    s3_key: str | None = None
    error: str | None = None
    job_id: str | None = None
    video_id: str | None = None


class BatchThumbnailResponse(CamelModel):
    success: bool = True
    message: str
    processed: int
    successful: int
    failed: int
    results: List[ThumbnailResultPublic]
    force_regenerate: bool
    offset: int


class VideoDeleteResponse(CamelModel):
    success: bool = True
    message: str
    deleted_video: Dict[str, Any]
