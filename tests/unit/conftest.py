"""Fakes for the client-side sync components."""

from datetime import datetime, timedelta, timezone

import pytest

from recruitsync.models.run import RunStatus
from recruitsync.schemas.contact import ContactOut
from recruitsync.schemas.job import JobOut, RunResults
from recruitsync.schemas.run import RunOut
from recruitsync.sync.source import ResultSource, RunCredential, SubscriptionHandle

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def run_out(status: RunStatus, run_id: str = "r1", stop_reason: str | None = None) -> RunOut:
    return RunOut(
        run_id=run_id, query="Software Engineer", params={}, status=status, stats={},
        stop_reason=stop_reason, created_at=NOW, updated_at=NOW,
    )


def job_out(job_id: str, run_id: str = "r1", **kw: object) -> JobOut:
    fields: dict[str, object] = {"title": "Engineer", "company_name": "Acme", "created_at": NOW, "updated_at": NOW}
    fields.update(kw)
    return JobOut(job_id=job_id, run_id=run_id, **fields)  # type: ignore[arg-type]


def results(status: RunStatus, *job_ids: str, stop_reason: str | None = None) -> RunResults:
    return RunResults(run=run_out(status, stop_reason=stop_reason), jobs=[job_out(j) for j in job_ids])


class FakeHandle(SubscriptionHandle):
    def __init__(self) -> None:
        self.closed = 0

    async def close(self) -> None:
        self.closed += 1


class FakeSource(ResultSource):
    """Scripted fetches: items are consumed in order and the last one repeats."""

    def __init__(self, credential: RunCredential | None, *script: object) -> None:
        self.credential = credential
        self.script = list(script)
        self.fetch_calls = 0
        self.subscribe_calls = 0
        self.on_event = None
        self.handle = FakeHandle()
        self.contacts: dict[str, list[ContactOut]] = {}

    async def fetch_results(self, run_id: str) -> RunResults:
        self.fetch_calls += 1
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return item  # type: ignore[return-value]

    async def subscribe(self, run_id, on_event):  # type: ignore[no-untyped-def]
        self.subscribe_calls += 1
        self.on_event = on_event
        return self.handle

    async def list_jobs(self, filters, page=1, limit=None, run_id=None):  # type: ignore[no-untyped-def]
        raise NotImplementedError

    async def job_suggestions(self, run_id=None):  # type: ignore[no-untyped-def]
        raise NotImplementedError

    async def list_contacts(self, company_id: str) -> list[ContactOut]:
        return self.contacts.get(company_id, [])

    async def generate_message(self, contact_id, job_id, tone="professional", channel="email"):  # type: ignore[no-untyped-def]
        raise NotImplementedError


def credential(run_id: str = "r1", expires_in: timedelta = timedelta(hours=1)) -> RunCredential:
    return RunCredential(run_id=run_id, access_token="token", expires_at=datetime.now(timezone.utc) + expires_in)


@pytest.fixture()
def fakes():  # type: ignore[no-untyped-def]
    """Builders for fake sources and payloads."""

    class Fakes:
        Source = FakeSource
        credential = staticmethod(credential)
        results = staticmethod(results)
        run_out = staticmethod(run_out)
        job_out = staticmethod(job_out)

    return Fakes
