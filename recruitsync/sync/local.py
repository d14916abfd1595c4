# recruitsync/sync/local.py
"""
In-process ResultSource: reads straight from the database through the service
layer and subscribes to the app's ChangeFeed. Used by tests and by tooling
that runs next to the API. Blocking session work goes through
`asyncio.to_thread`; credential checks are the same ones the HTTP routes run.
"""

import asyncio
import contextlib
import logging
from typing import Callable

from sqlalchemy.orm import Session

from recruitsync.auth.deps import check_run_access
from recruitsync.realtime.feed import ChangeFeed, Subscription
from recruitsync.schemas.contact import ContactOut
from recruitsync.schemas.job import JobPage, JobSuggestions, RunResults
from recruitsync.schemas.message import OutreachMessageOut
from recruitsync.services import registry
from recruitsync.services.contacts import list_contacts
from recruitsync.services.filters import JobFilters, job_suggestions, list_jobs
from recruitsync.services.messages import MessageGateway
from recruitsync.sync.source import EventCallback, ResultSource, RunCredential, SubscriptionHandle

logger = logging.getLogger(__name__)


class _FeedHandle(SubscriptionHandle):
    def __init__(self, sub: Subscription, task: asyncio.Task) -> None:
        self._sub = sub
        self._task = task

    async def close(self) -> None:
        self._sub.close()
        if not self._task.done():
            self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task


class LocalResultSource(ResultSource):
    def __init__(
        self,
        session_factory: Callable[[], Session],
        feed: ChangeFeed,
        credential: RunCredential | None = None,
        gateway: MessageGateway | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.feed = feed
        self.credential = credential
        self.gateway = gateway or MessageGateway()
        self.calls = 0

    def _token(self) -> str | None:
        return self.credential.access_token if self.credential else None

    def _fetch(self, run_id: str) -> RunResults:
        with self.session_factory() as db:
            check_run_access(db, run_id, self._token())
            return registry.get_run_results(db, run_id)

    async def fetch_results(self, run_id: str) -> RunResults:
        self.calls += 1
        return await asyncio.to_thread(self._fetch, run_id)

    def _authorize(self, run_id: str) -> None:
        with self.session_factory() as db:
            check_run_access(db, run_id, self._token())

    async def subscribe(self, run_id: str, on_event: EventCallback) -> SubscriptionHandle:
        self.calls += 1
        await asyncio.to_thread(self._authorize, run_id)
        sub = self.feed.subscribe(run_id)

        async def pump() -> None:
            while True:
                event = await sub.get()
                try:
                    on_event(event)
                except (KeyError, ValueError):
                    logger.warning("skipping malformed %s event for run %s", event.table, run_id, exc_info=True)

        task = asyncio.create_task(pump(), name=f"feed:{run_id}")
        return _FeedHandle(sub, task)

    def _list_jobs(self, filters: JobFilters, page: int, limit: int | None, run_id: str | None) -> JobPage:
        with self.session_factory() as db:
            if run_id:
                check_run_access(db, run_id, self._token())
            return list_jobs(db, filters, page=page, limit=limit, run_id=run_id)

    async def list_jobs(
        self,
        filters: JobFilters,
        page: int = 1,
        limit: int | None = None,
        run_id: str | None = None,
    ) -> JobPage:
        self.calls += 1
        return await asyncio.to_thread(self._list_jobs, filters, page, limit, run_id)

    def _suggestions(self, run_id: str | None) -> JobSuggestions:
        with self.session_factory() as db:
            if run_id:
                check_run_access(db, run_id, self._token())
            return job_suggestions(db, run_id=run_id)

    async def job_suggestions(self, run_id: str | None = None) -> JobSuggestions:
        self.calls += 1
        return await asyncio.to_thread(self._suggestions, run_id)

    def _contacts(self, company_id: str) -> list[ContactOut]:
        with self.session_factory() as db:
            return [ContactOut.model_validate(c) for c in list_contacts(db, company_id)]

    async def list_contacts(self, company_id: str) -> list[ContactOut]:
        self.calls += 1
        return await asyncio.to_thread(self._contacts, company_id)

    def _generate(self, contact_id: str, job_id: str, tone: str, channel: str) -> OutreachMessageOut:
        with self.session_factory() as db:
            msg = self.gateway.generate(db, contact_id, job_id, tone=tone, channel=channel)
            return OutreachMessageOut.model_validate(msg)

    async def generate_message(
        self,
        contact_id: str,
        job_id: str,
        tone: str = "professional",
        channel: str = "email",
    ) -> OutreachMessageOut:
        self.calls += 1
        return await asyncio.to_thread(self._generate, contact_id, job_id, tone, channel)
