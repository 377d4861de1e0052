# lawrepo/db/types.py
import uuid

from sqlalchemy import JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB

# native UUID / JSONB on Postgres, portable fallbacks elsewhere (tests run on SQLite)
GUID = Uuid(as_uuid=False)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def new_uuid() -> str:
    return str(uuid.uuid4())


def is_valid_uuid(value: str | None) -> bool:
    if not value:
        return False
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True
