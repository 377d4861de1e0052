# lawrepo/api/v1/endpoints/events.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from lawrepo.core.security import get_current_user, require_permission
from lawrepo.db.session import get_db
from lawrepo.models.user import User
from lawrepo.schemas.event import EventCreate, EventPublic, RegistrationPublic
from lawrepo.services import event_service

router = APIRouter(prefix="/events", tags=["events"])


def _get_event_or_404(db: Session, event_id: str):
    event = event_service.get_event(db, event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


@router.post("", response_model=EventPublic, status_code=status.HTTP_201_CREATED)
def create_event(
    obj_in: EventCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("events:create")),
):
    return event_service.create_event(db, creator=current_user, obj_in=obj_in)


@router.get("", response_model=List[EventPublic])
def list_upcoming_events(limit: int = 10, db: Session = Depends(get_db)):
    return event_service.list_upcoming(db, limit=max(1, min(limit, 100)))


@router.get("/{event_id}", response_model=EventPublic)
def get_event(event_id: str, db: Session = Depends(get_db)):
    return _get_event_or_404(db, event_id)


@router.post("/{event_id}/register", response_model=RegistrationPublic)
def register_for_event(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    event = _get_event_or_404(db, event_id)
    return event_service.register_user(db, event=event, user=current_user)


@router.get("/{event_id}/registrations", response_model=List[RegistrationPublic])
def list_event_registrations(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("events:manage")),
):
    event = _get_event_or_404(db, event_id)
    return event_service.list_registrations(db, event_id=event.id)
