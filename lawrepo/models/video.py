# lawrepo/models/video.py
from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func

from lawrepo.db.base_class import Base
from lawrepo.db.types import GUID, JSONType, new_uuid


class Video(Base):
    __tablename__ = "videos"

    id = Column(GUID, primary_key=True, default=new_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    filename = Column(String(255), nullable=False)
    file_path = Column(Text, nullable=False)
    file_size = Column(BigInteger, nullable=True)
    duration = Column(Integer, nullable=True)  # seconds

    # thumbnail_method: mediaconvert / ffmpeg / client_side / placeholder / mux / timestamp
    thumbnail_path = Column(Text, nullable=True)
    thumbnail_method = Column(String(30), nullable=True)
    thumbnail_timestamp = Column(Integer, nullable=True, default=0)

    video_quality = Column(String(20), nullable=False, default="HD")
    is_processed = Column(Boolean, nullable=False, default=False, index=True)
    is_public = Column(Boolean, nullable=False, default=False, index=True)
    view_count = Column(Integer, nullable=False, default=0)

    # pending / processing / ready / failed
    status = Column(String(50), nullable=False, default="pending", index=True)
    visibility = Column(String(20), nullable=False, default="private")
    category = Column(String(100), nullable=True)
    tags = Column(Text, nullable=True)  # comma separated

    uploaded_by = Column(GUID, ForeignKey("users.id"), nullable=True, index=True)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now())
    processed_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # storage
    s3_key = Column(String(255), nullable=True, index=True)
    s3_bucket = Column(String(255), nullable=True)
    stream_url = Column(Text, nullable=True)

    # AWS MediaConvert
    mediaconvert_job_id = Column(String(255), nullable=True)
    hls_manifest_path = Column(Text, nullable=True)

    course_id = Column(GUID, ForeignKey("courses.id"), nullable=True, index=True)

    # Mux
    mux_asset_id = Column(String(255), nullable=True, unique=True)
    mux_playback_id = Column(String(255), nullable=True)
    mux_upload_id = Column(String(255), nullable=True)
    mux_status = Column(String(50), nullable=True, default="pending", index=True)
    mux_thumbnail_url = Column(Text, nullable=True)
    mux_streaming_url = Column(Text, nullable=True)
    mux_mp4_url = Column(Text, nullable=True)
    mux_duration_seconds = Column(Integer, nullable=True)
    mux_aspect_ratio = Column(String(20), nullable=True)
    mux_created_at = Column(DateTime(timezone=True), nullable=True)
    mux_ready_at = Column(DateTime(timezone=True), nullable=True)
    webhook_received_at = Column(DateTime(timezone=True), nullable=True)

    # captions / transcripts written by Mux generated subtitles
    captions_webvtt_url = Column(Text, nullable=True)
    transcript_text = Column(Text, nullable=True)
    transcript_confidence = Column(Numeric(3, 2), nullable=True)
    speaker_identifications = Column(JSONType, nullable=True)
    speaker_count = Column(Integer, nullable=True, default=0)


class VideoView(Base):
    __tablename__ = "video_views"

    id = Column(GUID, primary_key=True, default=new_uuid)
    video_id = Column(GUID, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)
    viewer_id = Column(GUID, ForeignKey("users.id"), nullable=True)  # anonymous views allowed
    viewed_at = Column(DateTime(timezone=True), server_default=func.now())
    watch_duration = Column(Integer, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
