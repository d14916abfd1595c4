# recruitsync/sync/client.py
"""
HTTP ResultSource backed by httpx.

One ApiClient per viewer: it carries the run credential as a bearer token and
its lifetime is the lifetime of the view, not of the process.

Error mapping:
    401            -> CredentialError (terminal)
    404            -> NotFoundError / RunNotFound
    422            -> FilterValidationError
    502 (generate) -> GenerationError
    network, 5xx   -> TransientFetchError
    bad body       -> retried once, then ResponseParseError
"""

import asyncio
import contextlib
import json
import logging
from typing import Any, AsyncIterator, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from recruitsync.core.config import settings
from recruitsync.core.errors import (
    CREDENTIAL_INVALID,
    CredentialError,
    FilterValidationError,
    GenerationError,
    NotFoundError,
    RecruitSyncError,
    ResponseParseError,
    RunNotFound,
    TransientFetchError,
)
from recruitsync.schemas.contact import ContactList, ContactOut
from recruitsync.schemas.events import ChangeEvent
from recruitsync.schemas.job import JobPage, JobSuggestions, RunResults
from recruitsync.schemas.message import OutreachMessageOut
from recruitsync.schemas.run import RunHistoryItem, StartRunOut
from recruitsync.services.filters import JobFilters
from recruitsync.sync.backoff import Backoff
from recruitsync.sync.source import EventCallback, ResultSource, RunCredential, SubscriptionHandle
from recruitsync.sync.view import JobQuery

logger = logging.getLogger(__name__)

T = TypeVar("T")

PARSE_ATTEMPTS = 2
DEFAULT_TIMEOUT = 15.0


def _detail(r: httpx.Response) -> dict[str, Any]:
    try:
        body = r.json()
    except ValueError:
        return {}
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, dict):
        return detail
    if isinstance(detail, str):
        return {"message": detail}
    if isinstance(detail, list) and detail:
        first = detail[0] if isinstance(detail[0], dict) else {}
        loc = first.get("loc") or ()
        return {"field": str(loc[-1]) if loc else None, "message": first.get("msg")}
    return {}


def _is_json(r: httpx.Response) -> bool:
    ctype = r.headers.get("content-type", "")
    return "json" in ctype.lower()


async def iter_sse(lines: AsyncIterator[str]) -> AsyncIterator[tuple[str, str]]:
    """Yield (event, data) pairs from a text/event-stream body."""
    event, data = "message", []
    async for line in lines:
        if line == "":
            if data:
                yield event, "\n".join(data)
            event, data = "message", []
        elif line.startswith(":"):
            continue
        elif line.startswith("event:"):
            event = line[6:].strip()
        elif line.startswith("data:"):
            data.append(line[5:].lstrip())
    if data:
        yield event, "\n".join(data)


class _StreamHandle(SubscriptionHandle):
    def __init__(self, task: asyncio.Task) -> None:
        self._task = task

    async def close(self) -> None:
        if not self._task.done():
            self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task


class ApiClient(ResultSource):
    def __init__(
        self,
        base_url: str,
        credential: RunCredential | None = None,
        http: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        reconnect_backoff: Backoff | None = None,
    ) -> None:
        self.credential = credential
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._reconnect = reconnect_backoff or Backoff(base=1.0, cap=30.0)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        if self.credential and self.credential.access_token:
            return {"Authorization": f"Bearer {self.credential.access_token}"}
        return {}

    def _raise_for_status(self, r: httpx.Response) -> None:
        if r.status_code < 400:
            return
        detail = _detail(r)
        message = detail.get("message") or r.reason_phrase
        if r.status_code == 401:
            raise CredentialError(detail.get("code") or CREDENTIAL_INVALID, detail.get("message") or "")
        if r.status_code == 404:
            raise NotFoundError(message)
        if r.status_code == 422:
            raise FilterValidationError(detail.get("field") or "request", message)
        if r.status_code == 502 and detail.get("code") == GenerationError.code:
            raise GenerationError(message)
        if r.status_code >= 500:
            raise TransientFetchError(f"{r.status_code} from {r.request.url.path}: {message}")
        raise RecruitSyncError(f"{r.status_code} from {r.request.url.path}: {message}")

    async def _request(
        self,
        method: str,
        path: str,
        adapter: TypeAdapter[T],
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> T:
        last_err: Exception | None = None
        for attempt in range(1, PARSE_ATTEMPTS + 1):
            try:
                r = await self._http.request(method, path, params=params, json=json_body, headers=self._headers())
            except httpx.HTTPError as e:
                raise TransientFetchError(f"{method} {path} failed: {e}") from e
            self._raise_for_status(r)
            if not _is_json(r):
                last_err = ValueError(f"unexpected content-type {r.headers.get('content-type')!r}")
            else:
                try:
                    return adapter.validate_json(r.content)
                except ValidationError as e:
                    last_err = e
            logger.warning("%s %s: unexpected response body (attempt %d/%d)", method, path, attempt, PARSE_ATTEMPTS)
        raise ResponseParseError(f"{method} {path}: {last_err}")

    # --- run lifecycle ---------------------------------------------------------

    async def start_run(self, query: str, params: dict[str, Any] | None = None) -> StartRunOut:
        out = await self._request(
            "POST", "/webhook/search/start", TypeAdapter(StartRunOut),
            json_body={"query": query, "params": params or {}},
        )
        self.credential = RunCredential.from_start(out)
        return out

    async def start_company_run(self, company: str) -> StartRunOut:
        out = await self._request(
            "POST", "/webhook/company-search/start", TypeAdapter(StartRunOut),
            json_body={"company": company},
        )
        self.credential = RunCredential.from_start(out)
        return out

    async def run_history(self, limit: int = 50) -> list[RunHistoryItem]:
        return await self._request("GET", "/api/runs", TypeAdapter(list[RunHistoryItem]), params={"limit": limit})

    async def fetch_results(self, run_id: str) -> RunResults:
        try:
            return await self._request("GET", f"/api/runs/{run_id}/results", TypeAdapter(RunResults))
        except NotFoundError as e:
            raise RunNotFound(run_id) from e

    # --- change stream ---------------------------------------------------------

    async def subscribe(self, run_id: str, on_event: EventCallback) -> SubscriptionHandle:
        task = asyncio.create_task(self._stream(run_id, on_event), name=f"changes:{run_id}")
        return _StreamHandle(task)

    async def _stream(self, run_id: str, on_event: EventCallback) -> None:
        path = f"/api/runs/{run_id}/changes"
        backoff = self._reconnect
        while True:
            try:
                async with self._http.stream(
                    "GET", path,
                    headers={**self._headers(), "Accept": "text/event-stream"},
                    timeout=httpx.Timeout(None, connect=DEFAULT_TIMEOUT),
                ) as r:
                    if r.status_code >= 400:
                        await r.aread()
                        self._raise_for_status(r)
                    backoff.reset()
                    async for _, data in iter_sse(r.aiter_lines()):
                        try:
                            event = ChangeEvent.model_validate(json.loads(data))
                        except (ValueError, ValidationError):
                            logger.warning("skipping malformed change event for run %s", run_id)
                            continue
                        try:
                            on_event(event)
                        except (KeyError, ValueError):
                            logger.warning("skipping malformed %s event for run %s", event.table, run_id, exc_info=True)
                logger.debug("change stream for run %s ended; reconnecting", run_id)
                await asyncio.sleep(backoff.delay())
            except CredentialError as e:
                logger.info("change stream for run %s rejected (%s)", run_id, e.code)
                return
            except NotFoundError:
                logger.info("change stream for run %s: run not found", run_id)
                return
            except (httpx.HTTPError, TransientFetchError) as e:
                delay = backoff.failure()
                logger.warning("change stream for run %s dropped (%s); retry in %.1fs", run_id, e, delay)
                await asyncio.sleep(delay)

    # --- listings / generation -------------------------------------------------

    async def list_jobs(
        self,
        filters: JobFilters,
        page: int = 1,
        limit: int | None = None,
        run_id: str | None = None,
    ) -> JobPage:
        query = JobQuery(filters=filters, page=page, limit=limit or settings.JOBS_PAGE_SIZE, run_id=run_id)
        params = query.to_params()
        return await self._request("GET", "/api/jobs", TypeAdapter(JobPage), params=params)

    async def job_suggestions(self, run_id: str | None = None) -> JobSuggestions:
        params = {"run_id": run_id} if run_id else None
        return await self._request("GET", "/api/jobs/suggestions", TypeAdapter(JobSuggestions), params=params)

    async def list_contacts(self, company_id: str) -> list[ContactOut]:
        out = await self._request(
            "GET", "/api/contacts", TypeAdapter(ContactList), params={"company_id": company_id}
        )
        return out.data

    async def generate_message(
        self,
        contact_id: str,
        job_id: str,
        tone: str = "professional",
        channel: str = "email",
    ) -> OutreachMessageOut:
        return await self._request(
            "POST", "/webhook/generate-message", TypeAdapter(OutreachMessageOut),
            json_body={"contact_id": contact_id, "job_id": job_id, "tone": tone, "channel": channel},
        )
