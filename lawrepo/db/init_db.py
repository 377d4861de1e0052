# lawrepo/db/init_db.py
import logging
from typing import Dict

from sqlalchemy.orm import Session

from lawrepo.db.base import Base
from lawrepo.models.system import SystemSetting
from lawrepo.models.user import Role

logger = logging.getLogger(__name__)

DEFAULT_ROLES = [
    ("admin", "System administrator with full access", ["*"]),
    (
        "faculty",
        "Faculty member who can create courses and assignments",
        ["courses:*", "assignments:*", "videos:upload", "events:*", "articles:review"],
    ),
    ("video_editor", "Can manage video content", ["videos:*"]),
    (
        "editor_in_chief",
        "Editor-in-chief of the law review",
        ["articles:*", "editorial:*", "reviews:*"],
    ),
    ("editor", "Law review editor", ["articles:edit", "articles:review", "editorial:assign"]),
    ("reviewer", "Article reviewer", ["articles:review", "articles:comment"]),
    ("approver", "Final approval authority", ["articles:approve", "articles:publish"]),
    ("researcher", "Research assistant", ["citations:validate", "sources:research"]),
    (
        "student",
        "Student with basic access",
        ["assignments:submit", "articles:submit", "courses:view"],
    ),
    ("public", "Public access", ["content:view"]),
]

# key, value, type, description, is_public
DEFAULT_SETTINGS = [
    ("site_name", "Law School Repository", "string", "Name of the repository", True),
    (
        "site_description",
        "Institutional repository for law school content",
        "string",
        "Description of the repository",
        True,
    ),
    ("max_file_size", "52428800", "number", "Maximum file upload size in bytes (50MB)", False),
    (
        "allowed_file_types",
        '["pdf","doc","docx","mp4","mov","avi","jpg","png"]',
        "json",
        "Allowed file types for upload",
        False,
    ),
    ("plagiarism_threshold", "25", "number", "Plagiarism detection threshold percentage", False),
    ("auto_backup_enabled", "true", "boolean", "Enable automatic backups", False),
    ("maintenance_mode", "false", "boolean", "Enable maintenance mode", True),
]


def seed_roles(db: Session) -> int:
    existing = {name for (name,) in db.query(Role.name).all()}
    created = 0
    for name, description, permissions in DEFAULT_ROLES:
        if name in existing:
            continue
        db.add(Role(name=name, description=description, permissions=list(permissions)))
        created += 1
    return created


def seed_settings(db: Session) -> int:
    existing = {key for (key,) in db.query(SystemSetting.setting_key).all()}
    created = 0
    for key, value, setting_type, description, is_public in DEFAULT_SETTINGS:
        if key in existing:
            continue
        db.add(
            SystemSetting(
                setting_key=key,
                setting_value=value,
                setting_type=setting_type,
                description=description,
                is_public=is_public,
            )
        )
        created += 1
    return created


def init_db(db: Session) -> Dict[str, int]:
    """
    Create missing tables and seed default roles and settings.
    Safe to run repeatedly.
    """
    Base.metadata.create_all(bind=db.connection())
    roles = seed_roles(db)
    settings_count = seed_settings(db)
    db.commit()
    logger.info(f"Database initialised: {roles} roles and {settings_count} settings seeded")
    return {"rolesSeeded": roles, "settingsSeeded": settings_count}
