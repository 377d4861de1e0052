# lawrepo/api/v1/endpoints/users.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from lawrepo.core.security import get_current_user, require_permission
from lawrepo.db.session import get_db
from lawrepo.models.user import User
from lawrepo.schemas.user import PermissionsPublic, RoleAssignRequest, UserPublic, UserUpdate
from lawrepo.services import user_service
from lawrepo.services.user_service import RoleNotFoundError

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserPublic)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/me", response_model=UserPublic)
def update_me(
    obj_in: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return user_service.update_user(db, db_obj=current_user, obj_in=obj_in)


@router.get("/me/permissions", response_model=PermissionsPublic)
def read_my_permissions(current_user: User = Depends(get_current_user)):
    return PermissionsPublic(
        user_id=current_user.id,
        roles=[r.name for r in current_user.roles],
        permissions=user_service.list_permissions(current_user),
    )


@router.post("/{user_id}/roles", response_model=UserPublic)
def assign_role(
    user_id: str,
    payload: RoleAssignRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("users:manage")),
):
    user = user_service.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    try:
        return user_service.assign_role(
            db, user=user, role_name=payload.role_name, assigned_by=current_user.id
        )
    except RoleNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
