# lawrepo/services/event_service.py
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lawrepo.db.types import is_valid_uuid
from lawrepo.models.event import Event, EventRegistration
from lawrepo.models.user import User
from lawrepo.schemas.event import EventCreate


def create_event(db: Session, *, creator: User, obj_in: EventCreate) -> Event:
    event = Event(**obj_in.model_dump(), created_by=creator.id)
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def get_event(db: Session, event_id: str) -> Optional[Event]:
    if not is_valid_uuid(event_id):
        return None
    return db.get(Event, event_id)


def list_upcoming(db: Session, *, limit: int = 10, now: datetime | None = None) -> List[Event]:
    now = now or datetime.now(timezone.utc)
    return (
        db.query(Event)
        .filter(Event.is_public.is_(True), Event.start_date > now)
        .order_by(Event.start_date.asc())
        .limit(limit)
        .all()
    )


def _find_registration(db: Session, event_id: str, user_id: str) -> Optional[EventRegistration]:
    return (
        db.query(EventRegistration)
        .filter(EventRegistration.event_id == event_id, EventRegistration.user_id == user_id)
        .first()
    )


def register_user(db: Session, *, event: Event, user: User) -> EventRegistration:
    existing = _find_registration(db, event.id, user.id)
    if existing is not None:
        return existing

    registration = EventRegistration(event_id=event.id, user_id=user.id)
    db.add(registration)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return _find_registration(db, event.id, user.id)
    db.refresh(registration)
    return registration


def list_registrations(db: Session, *, event_id: str) -> List[EventRegistration]:
    return (
        db.query(EventRegistration)
        .filter(EventRegistration.event_id == event_id)
        .order_by(EventRegistration.registered_at.asc())
        .all()
    )
