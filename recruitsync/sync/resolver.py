# recruitsync/sync/resolver.py
import logging
from typing import Any

from recruitsync.schemas.contact import ContactOut
from recruitsync.schemas.job import JobOut
from recruitsync.sync.source import ResultSource

logger = logging.getLogger(__name__)


def _field(job: JobOut | dict[str, Any], name: str) -> Any:
    if isinstance(job, dict):
        return job.get(name)
    return getattr(job, name, None)


class ContactResolver:
    """
    Loads the contacts for the currently selected job.

    Every selection bumps a generation counter; a fetch that resolves after a
    newer selection was made is discarded, so the displayed contacts always
    belong to the last selected job. A job without a resolved company_id
    simply has no contacts yet.
    """

    def __init__(self, source: ResultSource) -> None:
        self.source = source
        self.selected_job_id: str | None = None
        self.contacts: list[ContactOut] = []
        self.loading = False
        self._generation = 0

    async def select(self, job: JobOut | dict[str, Any] | None) -> list[ContactOut] | None:
        """Returns the contacts shown for `job`, or None when a later selection superseded it."""
        self._generation += 1
        generation = self._generation
        self.selected_job_id = _field(job, "job_id") if job is not None else None
        company_id = _field(job, "company_id") if job is not None else None

        if not company_id:
            self.contacts = []
            self.loading = False
            return self.contacts

        self.loading = True
        try:
            contacts = await self.source.list_contacts(company_id)
        except Exception:
            if generation == self._generation:
                self.loading = False
                raise
            logger.debug("dropping error from superseded contact fetch for company %s", company_id)
            return None

        if generation != self._generation:
            logger.debug("discarding stale contacts for company %s", company_id)
            return None
        self.contacts = contacts
        self.loading = False
        return contacts
