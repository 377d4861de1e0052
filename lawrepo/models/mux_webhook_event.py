# lawrepo/models/mux_webhook_event.py
from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.sql import func

from lawrepo.db.base_class import Base
from lawrepo.db.types import GUID, JSONType, new_uuid


class MuxWebhookEvent(Base):
    __tablename__ = "mux_webhook_events"

    id = Column(GUID, primary_key=True, default=new_uuid)
    event_type = Column(String(100), nullable=False)
    mux_asset_id = Column(String(255), nullable=True, index=True)
    mux_upload_id = Column(String(255), nullable=True)
    # no FK: events may arrive for videos that were already deleted
    video_id = Column(GUID, nullable=True)
    event_data = Column(JSONType, nullable=True)
    processed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    processed_at = Column(DateTime(timezone=True), nullable=True)
