# recruitsync/sync/view.py
"""
Results view state: the filter/page query the job table renders from, and the
activation lifecycle that binds one ResultSynchronizer to the viewed run.
"""

from dataclasses import dataclass, field, replace
from typing import Any

from recruitsync.core.config import settings
from recruitsync.schemas.job import JobPage
from recruitsync.services.filters import JobFilters
from recruitsync.sync.source import ResultSource
from recruitsync.sync.synchronizer import ResultSynchronizer, SyncOptions


@dataclass(frozen=True)
class JobQuery:
    filters: JobFilters = field(default_factory=JobFilters)
    page: int = 1
    limit: int = settings.JOBS_PAGE_SIZE
    run_id: str | None = None

    def with_filters(self, **changes: Any) -> "JobQuery":
        """Apply filter changes (camelCase or snake_case keys). Any change resets page to 1."""
        raw = self.filters.model_dump(by_alias=True)
        for key, value in changes.items():
            alias = JobFilters.model_fields[key].alias if key in JobFilters.model_fields else None
            raw[alias or key] = value
        filters = JobFilters.parse(**raw)
        if filters == self.filters:
            return self
        return replace(self, filters=filters, page=1)

    def clear_filters(self) -> "JobQuery":
        return replace(self, filters=JobFilters(), page=1)

    def with_page(self, page: int) -> "JobQuery":
        return replace(self, page=max(1, page))

    def with_run(self, run_id: str | None) -> "JobQuery":
        return replace(self, run_id=run_id, page=1)

    def total_pages(self, total: int) -> int:
        return max(1, -(-total // self.limit))

    def to_params(self) -> dict[str, Any]:
        """Query-string form of this query for GET /api/jobs."""
        params = self.filters.model_dump(mode="json", by_alias=True, exclude_none=True)
        if not self.filters.has_contacts:
            params.pop("hasContacts", None)
        params.update(page=self.page, limit=self.limit)
        if self.run_id:
            params["run_id"] = self.run_id
        return params


class ResultsView:
    """One results screen. At most one synchronizer is alive at a time."""

    def __init__(self, source: ResultSource, options: SyncOptions | None = None) -> None:
        self.source = source
        self.options = options
        self.query = JobQuery()
        self.synchronizer: ResultSynchronizer | None = None

    @property
    def run_id(self) -> str | None:
        return self.query.run_id

    async def activate(self, run_id: str | None) -> ResultSynchronizer | None:
        """Switch to `run_id` (None = browse mode), tearing down the previous run's sync."""
        await self.deactivate()
        self.query = self.query.with_run(run_id)
        if run_id is None:
            return None
        self.synchronizer = ResultSynchronizer(self.source, run_id, options=self.options)
        await self.synchronizer.start()
        return self.synchronizer

    async def deactivate(self) -> None:
        sync, self.synchronizer = self.synchronizer, None
        if sync is not None:
            await sync.stop()

    def set_filters(self, **changes: Any) -> JobQuery:
        self.query = self.query.with_filters(**changes)
        return self.query

    def set_page(self, page: int) -> JobQuery:
        self.query = self.query.with_page(page)
        return self.query

    async def load_page(self) -> JobPage:
        q = self.query
        return await self.source.list_jobs(q.filters, page=q.page, limit=q.limit, run_id=q.run_id)

    @property
    def redirect_home(self) -> bool:
        return bool(self.synchronizer and self.synchronizer.state.redirect_home)
