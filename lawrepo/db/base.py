# lawrepo/db/base.py
from lawrepo.db.base_class import Base  # noqa

# registers every model on Base.metadata
from lawrepo import models  # noqa
