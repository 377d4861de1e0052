# lawrepo/services/user_service.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from lawrepo.core.security import get_password_hash, get_user_permissions
from lawrepo.db.types import is_valid_uuid
from lawrepo.models.user import Role, User, UserRole
from lawrepo.schemas.auth import RegisterRequest
from lawrepo.schemas.user import UserUpdate
from lawrepo.services import audit_service

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "student"


class RoleNotFoundError(Exception):
    pass


def get_user(db: Session, user_id: str) -> Optional[User]:
    if not is_valid_uuid(user_id):
        return None
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_role_by_name(db: Session, name: str) -> Optional[Role]:
    return db.query(Role).filter(Role.name == name).first()


def create_user(db: Session, *, obj_in: RegisterRequest) -> User:
    user = User(
        email=obj_in.email,
        name=obj_in.name,
        department=obj_in.department,
        password_hash=get_password_hash(obj_in.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    # new accounts start as students when the role table is seeded
    if get_role_by_name(db, DEFAULT_ROLE) is not None:
        assign_role(db, user=user, role_name=DEFAULT_ROLE)
    return user


def update_user(db: Session, *, db_obj: User, obj_in: UserUpdate) -> User:
    update_data = obj_in.model_dump(exclude_unset=True)
    password = update_data.pop("password", None)
    if password:
        db_obj.password_hash = get_password_hash(password)
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def record_login(db: Session, *, user: User) -> User:
    user.last_login = datetime.now(timezone.utc)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def assign_role(
    db: Session,
    *,
    user: User,
    role_name: str,
    assigned_by: str | None = None,
) -> User:
    role = get_role_by_name(db, role_name)
    if role is None:
        raise RoleNotFoundError(f"Role {role_name} does not exist")

    existing = (
        db.query(UserRole)
        .filter(UserRole.user_id == user.id, UserRole.role_id == role.id)
        .first()
    )
    if existing is None:
        db.add(UserRole(user_id=user.id, role_id=role.id, assigned_by=assigned_by))
        audit_service.record(
            db,
            action="role_assigned",
            user_id=assigned_by,
            resource_type="user",
            resource_id=user.id,
            new_values={"role": role_name},
            commit=False,
        )
        db.commit()
        logger.info(f"Role {role_name} assigned to user {user.id}")

    db.expire(user, ["roles"])
    return user


def list_permissions(user: User) -> List[str]:
    return get_user_permissions(user)
