# lawrepo/services/audit_service.py
import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from lawrepo.db.types import is_valid_uuid
from lawrepo.models.system import AuditLog

logger = logging.getLogger(__name__)


def record(
    db: Session,
    *,
    action: str,
    user_id: str | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    old_values: Dict[str, Any] | None = None,
    new_values: Dict[str, Any] | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    commit: bool = True,
) -> AuditLog:
    entry = AuditLog(
        user_id=user_id if is_valid_uuid(user_id) else None,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        old_values=old_values,
        new_values=new_values,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(entry)
    if commit:
        db.commit()
        db.refresh(entry)
    logger.debug(f"Audit {action} on {resource_type}:{resource_id} by {user_id}")
    return entry


def list_for_resource(
    db: Session,
    *,
    resource_type: str,
    resource_id: str,
    limit: int = 50,
) -> List[AuditLog]:
    return (
        db.query(AuditLog)
        .filter(AuditLog.resource_type == resource_type, AuditLog.resource_id == str(resource_id))
        .order_by(AuditLog.created_at.desc())
        .limit(limit)
        .all()
    )
