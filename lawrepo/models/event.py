# lawrepo/models/event.py
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from lawrepo.db.base_class import Base
from lawrepo.db.types import GUID, new_uuid


class Event(Base):
    __tablename__ = "events"

    id = Column(GUID, primary_key=True, default=new_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_type = Column(String(50), nullable=False, default="general")
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    location = Column(String(255), nullable=True)
    virtual_link = Column(Text, nullable=True)
    is_virtual = Column(Boolean, nullable=False, default=False)
    is_public = Column(Boolean, nullable=False, default=True, index=True)
    max_attendees = Column(Integer, nullable=True)
    registration_required = Column(Boolean, nullable=False, default=False)
    registration_deadline = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(GUID, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )


class EventRegistration(Base):
    __tablename__ = "event_registrations"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_registrations_user"),
        CheckConstraint(
            "attendance_status IN ('registered', 'attended', 'no_show', 'cancelled')",
            name="ck_event_registrations_status",
        ),
    )

    id = Column(GUID, primary_key=True, default=new_uuid)
    event_id = Column(GUID, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    registered_at = Column(DateTime(timezone=True), server_default=func.now())
    attendance_status = Column(String(20), nullable=False, default="registered")
