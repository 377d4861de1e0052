# lawrepo/schemas/database.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class MigrationRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    migration_name: str | None = None
    dry_run: bool = False
