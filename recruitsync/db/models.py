# Import every model so Base.metadata is complete (create_all / Alembic)
from recruitsync.models.run import Run, Search  # noqa: F401
from recruitsync.models.job import Job  # noqa: F401
from recruitsync.models.company import Company, Contact  # noqa: F401
from recruitsync.models.message import OutreachMessage  # noqa: F401
