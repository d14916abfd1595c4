# recruitsync/sync/synchronizer.py
"""
Result Synchronizer.

Keeps one deduplicated, continuously updated list of jobs for a single run by
combining three independent activities on the event loop:

    1. one authoritative fetch at start (seeds jobs + phase)
    2. the change stream (push, best effort)
    3. a polling task (pull, the correctness backstop)

All three feed the same upsert-by-job_id merge, so delivery order and
duplicates do not matter. Background work exists only while the run is
pending/running; a terminal run status tears it down, and `stop()` tears it
down unconditionally.
"""

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from recruitsync.core.config import settings
from recruitsync.core.errors import CredentialError, NotFoundError, TransientFetchError
from recruitsync.models.run import RunStatus
from recruitsync.schemas.events import ChangeEvent
from recruitsync.schemas.job import RunResults
from recruitsync.schemas.run import RunOut
from recruitsync.sync.backoff import Backoff
from recruitsync.sync.merge import JobCollection, Record
from recruitsync.sync.source import ResultSource, SubscriptionHandle

logger = logging.getLogger(__name__)

SESSION_EXPIRED = "Session expired. Please start a new search to view results."
RUN_FAILED = "The search stopped before it could finish. Please try again."
FETCH_TROUBLE = "Having trouble reaching the server. Showing the results collected so far."
RUN_MISSING = "This search could not be found."

_RANK = {
    RunStatus.PENDING: 0,
    RunStatus.RUNNING: 1,
    RunStatus.COMPLETED: 2,
    RunStatus.FAILED: 2,
}


@dataclass
class SyncOptions:
    poll_interval: float = 3.0
    max_backoff: float = 30.0
    max_retries: int = 5
    soft_deadline: float = 600.0
    flush_grace: float = 1.0

    @classmethod
    def from_settings(cls) -> "SyncOptions":
        return cls(
            poll_interval=settings.SYNC_POLL_INTERVAL,
            max_backoff=settings.SYNC_MAX_BACKOFF,
            max_retries=settings.SYNC_MAX_RETRIES,
            soft_deadline=settings.SYNC_SOFT_DEADLINE,
            flush_grace=settings.SYNC_FLUSH_GRACE,
        )


@dataclass
class Notice:
    level: str
    message: str


@dataclass
class SyncState:
    phase: RunStatus | None = None
    run: RunOut | None = None
    redirect_home: bool = False
    still_collecting: bool = False
    notices: list[Notice] = field(default_factory=list)


class ResultSynchronizer:
    def __init__(
        self,
        source: ResultSource,
        run_id: str,
        options: SyncOptions | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.source = source
        self.run_id = run_id
        self.options = options or SyncOptions.from_settings()
        self.state = SyncState()
        self.jobs_by_id = JobCollection()

        self._clock = clock
        self._backoff = Backoff(base=self.options.poll_interval, cap=self.options.max_backoff)
        self._subscription: SubscriptionHandle | None = None
        self._poll_task: asyncio.Task | None = None
        self._teardown_task: asyncio.Task | None = None
        self._settled = asyncio.Event()
        self._started_at: float | None = None
        self._trouble_reported = False
        self._started = False
        self._stopped = False

    # --- public surface --------------------------------------------------------

    @property
    def phase(self) -> RunStatus | None:
        return self.state.phase

    @property
    def active(self) -> bool:
        """True while any background activity (poll, stream, flush) is alive."""
        return any(
            t is not None and not t.done() for t in (self._poll_task, self._teardown_task)
        ) or self._subscription is not None

    def jobs(self) -> list[Record]:
        return self.jobs_by_id.ordered()

    async def wait_settled(self, timeout: float | None = None) -> bool:
        """Wait for terminal teardown (or stop). False on timeout."""
        try:
            await asyncio.wait_for(self._settled.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def start(self) -> None:
        if self._started:
            raise RuntimeError("synchronizer already started")
        self._started = True

        cred = self.source.credential
        if cred is None or not cred.access_token or cred.run_id != self.run_id or cred.expired():
            logger.info("run %s: no valid credential; redirecting home", self.run_id)
            self._credential_rejected()
            self._settled.set()
            return

        self._started_at = self._clock()
        try:
            results = await self.source.fetch_results(self.run_id)
        except CredentialError as e:
            logger.info("run %s: credential rejected on first fetch (%s)", self.run_id, e.code)
            self._credential_rejected()
            self._settled.set()
            return
        except NotFoundError:
            self._run_missing()
            self._settled.set()
            return
        except TransientFetchError as e:
            self._record_failure(e)
        else:
            self._apply_results(results)

        if self._is_terminal():
            # finished before we attached; nothing to stream or poll
            if self._teardown_task is None:
                self._settled.set()
            return

        try:
            self._subscription = await self.source.subscribe(self.run_id, self._on_event)
        except CredentialError as e:
            logger.info("run %s: subscription rejected (%s)", self.run_id, e.code)
            self._credential_rejected()
            self._settled.set()
            return
        except (TransientFetchError, NotFoundError) as e:
            logger.warning("run %s: change stream unavailable (%s); relying on polling", self.run_id, e)

        if not self._is_terminal() and not self._stopped:
            self._poll_task = asyncio.create_task(self._poll_loop(), name=f"poll:{self.run_id}")

    async def stop(self) -> None:
        """Cancel everything for this run. Idempotent."""
        if self._stopped:
            return
        self._stopped = True
        for task in (self._poll_task, self._teardown_task):
            if task is not None and not task.done() and task is not asyncio.current_task():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        await self._close_subscription()
        self._settled.set()
        logger.debug("run %s: synchronizer stopped", self.run_id)

    # --- merge paths -----------------------------------------------------------

    def _apply_results(self, results: RunResults) -> None:
        for job in results.jobs:
            self.jobs_by_id.upsert(job.model_dump(mode="json"))
        self._apply_run(results.run)

    def _on_event(self, event: ChangeEvent) -> None:
        if self._stopped or event.run_id != self.run_id:
            return
        if event.table == "jobs":
            self.jobs_by_id.upsert(event.record)
        elif event.table == "runs":
            self._apply_run(RunOut.model_validate(event.record))

    def _apply_run(self, run: RunOut) -> None:
        current = self.state.phase
        if current is not None and (current.is_terminal or _RANK[run.status] < _RANK[current]):
            return
        self.state.run = run
        self.state.phase = run.status
        if run.status.is_terminal and current != run.status:
            self._on_terminal(run)

    def _is_terminal(self) -> bool:
        return self.state.phase is not None and self.state.phase.is_terminal

    # --- terminal handling -----------------------------------------------------

    def _on_terminal(self, run: RunOut) -> None:
        logger.info("run %s reached %s (%d jobs)", self.run_id, run.status.value, len(self.jobs_by_id))
        self.state.still_collecting = False
        if run.status == RunStatus.FAILED:
            self.state.notices.append(Notice("error", run.stop_reason or RUN_FAILED))
        if self._started_at is not None and not self._stopped:
            self._teardown_task = asyncio.create_task(self._teardown(), name=f"teardown:{self.run_id}")

    async def _teardown(self) -> None:
        if self._poll_task is not None and self._poll_task is not asyncio.current_task():
            self._poll_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poll_task
        if self._subscription is not None:
            # in-flight events still merge during the grace period
            await asyncio.sleep(self.options.flush_grace)
            await self._close_subscription()
        self._settled.set()

    async def _close_subscription(self) -> None:
        sub, self._subscription = self._subscription, None
        if sub is not None:
            await sub.close()

    def _credential_rejected(self) -> None:
        self.state.phase = RunStatus.FAILED
        self.state.redirect_home = True
        self.state.still_collecting = False
        self.state.notices.append(Notice("error", SESSION_EXPIRED))

    def _run_missing(self) -> None:
        self.state.phase = RunStatus.FAILED
        self.state.notices.append(Notice("error", RUN_MISSING))

    # --- polling ---------------------------------------------------------------

    def _record_failure(self, err: Exception) -> float:
        delay = self._backoff.failure()
        logger.warning(
            "run %s: fetch failed (%d in a row): %s; next attempt in %.1fs",
            self.run_id, self._backoff.failures, err, delay,
        )
        if self._backoff.failures >= self.options.max_retries and not self._trouble_reported:
            self._trouble_reported = True
            self.state.notices.append(Notice("warning", FETCH_TROUBLE))
        return delay

    def _check_deadline(self) -> None:
        if self.state.still_collecting or self._started_at is None:
            return
        if self._clock() - self._started_at >= self.options.soft_deadline:
            logger.info("run %s: soft deadline passed; still collecting", self.run_id)
            self.state.still_collecting = True
            self._backoff.freeze()

    async def _poll_loop(self) -> None:
        while not self._stopped and not self._is_terminal():
            delay = self._backoff.delay() if self._backoff.failures else self.options.poll_interval
            await asyncio.sleep(delay)
            if self._stopped or self._is_terminal():
                break
            self._check_deadline()
            try:
                results = await self.source.fetch_results(self.run_id)
            except CredentialError as e:
                logger.info("run %s: credential rejected while polling (%s)", self.run_id, e.code)
                self._credential_rejected()
                await self._close_subscription()
                self._settled.set()
                return
            except NotFoundError:
                self._run_missing()
                await self._close_subscription()
                self._settled.set()
                return
            except TransientFetchError as e:
                self._record_failure(e)
                continue
            self._backoff.reset()
            self._apply_results(results)
        logger.debug("run %s: polling finished", self.run_id)
