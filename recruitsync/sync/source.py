# recruitsync/sync/source.py
"""
Store interface the client-side components read through.

A ResultSource is an explicitly constructed object scoped to one viewer: it
holds that viewer's run credential (if any) and is handed to the
synchronizer, resolver and view. Two implementations ship: `ApiClient`
(HTTP, httpx) and `LocalResultSource` (in-process, same database).
"""

import abc
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from recruitsync.auth.jwt import is_expired
from recruitsync.schemas.contact import ContactOut
from recruitsync.schemas.events import ChangeEvent
from recruitsync.schemas.job import JobPage, JobSuggestions, RunResults
from recruitsync.schemas.message import OutreachMessageOut
from recruitsync.schemas.run import StartRunOut
from recruitsync.services.filters import JobFilters

EventCallback = Callable[[ChangeEvent], None]


@dataclass(frozen=True)
class RunCredential:
    run_id: str
    access_token: str
    expires_at: datetime | None

    @classmethod
    def from_start(cls, out: StartRunOut) -> "RunCredential":
        return cls(run_id=out.run_id, access_token=out.access_token, expires_at=out.expires_at)

    def expired(self, now: datetime | None = None) -> bool:
        return is_expired(self.expires_at, now=now)


class SubscriptionHandle(abc.ABC):
    @abc.abstractmethod
    async def close(self) -> None:
        """Stop delivering events. Safe to call more than once."""


class ResultSource(abc.ABC):
    credential: RunCredential | None = None

    @abc.abstractmethod
    async def fetch_results(self, run_id: str) -> RunResults:
        """Run row plus every job currently linked to it."""

    @abc.abstractmethod
    async def subscribe(self, run_id: str, on_event: EventCallback) -> SubscriptionHandle:
        """Start delivering run/job change events for `run_id` to `on_event`."""

    @abc.abstractmethod
    async def list_jobs(
        self,
        filters: JobFilters,
        page: int = 1,
        limit: int | None = None,
        run_id: str | None = None,
    ) -> JobPage: ...

    @abc.abstractmethod
    async def job_suggestions(self, run_id: str | None = None) -> JobSuggestions: ...

    @abc.abstractmethod
    async def list_contacts(self, company_id: str) -> list[ContactOut]: ...

    @abc.abstractmethod
    async def generate_message(
        self,
        contact_id: str,
        job_id: str,
        tone: str = "professional",
        channel: str = "email",
    ) -> OutreachMessageOut: ...

    async def aclose(self) -> None:
        return None
