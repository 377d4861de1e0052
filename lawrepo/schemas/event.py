# lawrepo/schemas/event.py
from datetime import datetime

from pydantic import BaseModel


class EventBase(BaseModel):
    title: str
    description: str | None = None
    event_type: str = "general"
    start_date: datetime
    end_date: datetime | None = None
    location: str | None = None
    virtual_link: str | None = None
    is_virtual: bool = False
    is_public: bool = True
    max_attendees: int | None = None
    registration_required: bool = False
    registration_deadline: datetime | None = None


class EventCreate(EventBase):
    pass


class EventPublic(EventBase):
    id: str
    created_by: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class RegistrationPublic(BaseModel):
    id: str
    event_id: str
    user_id: str
    registered_at: datetime | None = None
    attendance_status: str

    model_config = {"from_attributes": True}
