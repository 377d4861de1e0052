# lawrepo/schemas/user.py
from datetime import datetime
from typing import List

from pydantic import BaseModel, EmailStr, field_validator


class UserBase(BaseModel):
    email: EmailStr
    name: str
    department: str | None = None
    bio: str | None = None


class UserUpdate(BaseModel):
    name: str | None = None
    department: str | None = None
    bio: str | None = None
    profile_picture_url: str | None = None
    password: str | None = None


class UserPublic(UserBase):
    id: str
    is_active: bool = True
    email_verified: bool = False
    last_login: datetime | None = None
    created_at: datetime | None = None
    roles: List[str] = []

    model_config = {"from_attributes": True}

    @field_validator("roles", mode="before")
    @classmethod
    def role_names(cls, value):
        # ORM rows carry Role objects
        return [getattr(r, "name", r) for r in (value or [])]


class RoleAssignRequest(BaseModel):
    role_name: str


class PermissionsPublic(BaseModel):
    user_id: str
    roles: List[str]
    permissions: List[str]
