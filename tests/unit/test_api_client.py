"""Tests for the httpx-backed ResultSource using a mock transport."""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from recruitsync.core.errors import (
    CREDENTIAL_EXPIRED,
    CredentialError,
    FilterValidationError,
    GenerationError,
    ResponseParseError,
    RunNotFound,
    TransientFetchError,
)
from recruitsync.models.run import RunStatus
from recruitsync.services.filters import JobFilters
from recruitsync.sync.backoff import Backoff
from recruitsync.sync.client import ApiClient, iter_sse
from recruitsync.sync.source import RunCredential

CRED = RunCredential("r1", "tok-123", datetime.now(timezone.utc) + timedelta(hours=1))


def _client(handler, **kw) -> ApiClient:  # type: ignore[no-untyped-def]
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    return ApiClient("http://test", credential=CRED, http=http, **kw)


def _results_body(fakes) -> dict:  # type: ignore[no-untyped-def]
    return fakes.results(RunStatus.RUNNING, "j1").model_dump(mode="json")


class TestRequests:
    async def test_sends_bearer_and_parses(self, fakes) -> None:  # type: ignore[no-untyped-def]
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("authorization")
            seen["path"] = request.url.path
            return httpx.Response(200, json=_results_body(fakes))

        results = await _client(handler).fetch_results("r1")
        assert seen == {"auth": "Bearer tok-123", "path": "/api/runs/r1/results"}
        assert results.run.status == RunStatus.RUNNING
        assert [j.job_id for j in results.jobs] == ["j1"]

    async def test_401_is_credential_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"detail": {"code": CREDENTIAL_EXPIRED, "message": "Session expired."}})

        with pytest.raises(CredentialError) as exc:
            await _client(handler).fetch_results("r1")
        assert exc.value.code == CREDENTIAL_EXPIRED

    async def test_404_is_run_not_found(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"detail": {"code": "run_not_found", "message": "Run not found: r1"}})

        with pytest.raises(RunNotFound):
            await _client(handler).fetch_results("r1")

    async def test_5xx_is_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="upstream down")

        with pytest.raises(TransientFetchError):
            await _client(handler).fetch_results("r1")

    async def test_network_error_is_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TransientFetchError):
            await _client(handler).fetch_results("r1")

    async def test_html_body_retried_once(self, fakes) -> None:  # type: ignore[no-untyped-def]
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            if len(calls) == 1:
                return httpx.Response(200, text="<html>gateway</html>", headers={"content-type": "text/html"})
            return httpx.Response(200, json=_results_body(fakes))

        results = await _client(handler).fetch_results("r1")
        assert len(calls) == 2
        assert results.run.run_id == "r1"

    async def test_bad_shape_twice_is_parse_error(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(200, json={"unexpected": True})

        with pytest.raises(ResponseParseError):
            await _client(handler).fetch_results("r1")
        assert len(calls) == 2

    async def test_filter_error_names_field(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"detail": {"code": "invalid_filter", "field": "dateFrom", "message": "bad"}})

        with pytest.raises(FilterValidationError) as exc:
            await _client(handler).list_jobs(JobFilters())
        assert exc.value.field == "dateFrom"

    async def test_list_jobs_query_string(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(dict(request.url.params))
            return httpx.Response(200, json={"data": [], "total": 0, "page": 2, "limit": 20})

        filters = JobFilters.parse(search="python", hasContacts=True)
        page = await _client(handler).list_jobs(filters, page=2, limit=20, run_id="r1")
        assert page.total == 0
        assert seen == {"search": "python", "hasContacts": "true", "page": "2", "limit": "20", "run_id": "r1"}

    async def test_generation_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, json={"detail": {"code": "generation_failed", "message": "x", "retryable": True}})

        with pytest.raises(GenerationError):
            await _client(handler).generate_message("c1", "j1")

    async def test_start_run_keeps_credential(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content) == {"query": "Software Engineer", "params": {"location": "Minneapolis"}}
            return httpx.Response(200, json={
                "run_id": "r7", "search_id": "s7", "access_token": "tok-7",
                "expires_at": "2026-03-02T12:00:00Z",
            })

        client = _client(handler)
        out = await client.start_run("Software Engineer", {"location": "Minneapolis"})
        assert out.run_id == "r7"
        assert client.credential is not None and client.credential.access_token == "tok-7"


class TestChangeStream:
    async def test_iter_sse(self) -> None:
        async def lines():  # type: ignore[no-untyped-def]
            for line in [": connected", "", "event: jobs", 'data: {"a": 1}', "", ": keep-alive", "", "data: x"]:
                yield line

        assert [e async for e in iter_sse(lines())] == [("jobs", '{"a": 1}'), ("message", "x")]

    async def test_delivers_events_and_closes(self, fakes) -> None:  # type: ignore[no-untyped-def]
        record = fakes.job_out("j1").model_dump(mode="json")
        body = (
            ": connected\n\n"
            "event: jobs\n"
            f"data: {json.dumps({'table': 'jobs', 'type': 'INSERT', 'run_id': 'r1', 'record': record})}\n\n"
            "event: jobs\ndata: not-json\n\n"
        )

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["authorization"] == "Bearer tok-123"
            return httpx.Response(200, text=body, headers={"content-type": "text/event-stream"})

        client = _client(handler, reconnect_backoff=Backoff(base=0.01, cap=0.01))
        got = []
        arrived = asyncio.Event()

        def on_event(event):  # type: ignore[no-untyped-def]
            got.append(event)
            arrived.set()

        handle = await client.subscribe("r1", on_event)
        await asyncio.wait_for(arrived.wait(), timeout=2)
        await handle.close()
        await handle.close()
        assert got[0].record["job_id"] == "j1"

    async def test_stream_stops_on_401(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(401, json={"detail": {"code": CREDENTIAL_EXPIRED}})

        client = _client(handler, reconnect_backoff=Backoff(base=0.01, cap=0.01))
        handle = await client.subscribe("r1", lambda e: None)
        await asyncio.sleep(0.05)
        await handle.close()
        assert calls == [1]
