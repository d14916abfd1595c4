# recruitsync/services/registry.py
"""
Run Registry: the single source of truth for "is this run still producing results".

Runs are created here (run start) and afterwards only mutated by the producer
through `update_run_status`, which enforces

    pending -> running -> completed | failed

Forward skips (pending -> completed) are accepted, nothing ever moves back,
and a terminal run is immutable.
"""

import logging
import secrets
from typing import Any

from sqlalchemy import select, func, distinct, desc
from sqlalchemy.orm import Session

from recruitsync.auth.jwt import issue_run_credential
from recruitsync.core.errors import InvalidTransitionError, RunNotFound
from recruitsync.models.company import Contact
from recruitsync.models.job import Job
from recruitsync.models.run import Run, RunStatus, Search
from recruitsync.realtime.feed import ChangeFeed
from recruitsync.schemas.events import ChangeEvent
from recruitsync.schemas.job import JobOut, RunResults
from recruitsync.schemas.run import RunHistoryItem, RunOut, StartRunOut
from recruitsync.services.filters import JOB_ORDER

logger = logging.getLogger(__name__)

_RANK = {
    RunStatus.PENDING: 0,
    RunStatus.RUNNING: 1,
    RunStatus.COMPLETED: 2,
    RunStatus.FAILED: 2,
}


def can_transition(current: RunStatus, new: RunStatus) -> bool:
    if current.is_terminal:
        return False
    return _RANK[new] >= _RANK[current]


def run_record(run: Run) -> dict[str, Any]:
    return RunOut.model_validate(run).model_dump(mode="json")


def _create(db: Session, query: str, params: dict[str, Any], location: str = "") -> StartRunOut:
    search = Search(query=query, location=location, params=params)
    db.add(search)
    db.flush()  # get search.search_id

    view_token = secrets.token_hex(32)
    run = Run(
        query=query,
        params=params,
        status=RunStatus.PENDING,
        stats={},
        search_id=search.search_id,
        view_token=view_token,
    )
    db.add(run)
    db.commit()

    token, expires_at = issue_run_credential(run.run_id, view_token)
    logger.info("run %s started (search %s): %r", run.run_id, search.search_id, query)
    return StartRunOut(
        run_id=run.run_id,
        search_id=search.search_id,
        access_token=token,
        expires_at=expires_at,
    )


def start_run(db: Session, query: str, params: dict[str, Any] | None = None) -> StartRunOut:
    params = dict(params or {})
    location = str(params.get("location") or "")
    return _create(db, query, params, location=location)


def start_company_run(db: Session, company: str) -> StartRunOut:
    return _create(db, f"Company: {company}", {"company": company})


def get_run(db: Session, run_id: str) -> Run:
    run = db.get(Run, run_id)
    if run is None:
        raise RunNotFound(run_id)
    return run


def get_run_results(db: Session, run_id: str) -> RunResults:
    """Run row plus every job currently linked to it (used to seed and poll the synchronizer)."""
    run = get_run(db, run_id)
    jobs = db.execute(select(Job).where(Job.run_id == run_id).order_by(*JOB_ORDER)).scalars().all()
    return RunResults(
        run=RunOut.model_validate(run),
        jobs=[JobOut.model_validate(j) for j in jobs],
    )


def update_run_status(
    db: Session,
    run_id: str,
    status: RunStatus,
    stats: dict[str, Any] | None = None,
    stop_reason: str | None = None,
    feed: ChangeFeed | None = None,
) -> Run:
    """Producer-only status/stats write."""
    run = get_run(db, run_id)
    if run.status.is_terminal:
        if status == run.status:
            return run
        raise InvalidTransitionError(
            f"Run {run_id} is {run.status.value}; cannot move to {status.value}"
        )
    if not can_transition(run.status, status):
        raise InvalidTransitionError(
            f"Run {run_id} cannot go back from {run.status.value} to {status.value}"
        )

    run.status = status
    if stats is not None:
        run.stats = {**(run.stats or {}), **stats}
    if stop_reason is not None:
        run.stop_reason = stop_reason
    db.commit()
    logger.info("run %s -> %s", run_id, status.value)

    if feed is not None:
        feed.publish(ChangeEvent(table="runs", type="UPDATE", run_id=run_id, record=run_record(run)))
    return run


def list_run_history(db: Session, limit: int = 50) -> list[RunHistoryItem]:
    """Newest runs first, with their search and job/company/contact counts."""
    total_jobs = (
        select(func.count(Job.job_id)).where(Job.run_id == Run.run_id).correlate(Run).scalar_subquery()
    )
    unique_companies = (
        select(func.count(distinct(Job.company_name)))
        .where(Job.run_id == Run.run_id)
        .correlate(Run)
        .scalar_subquery()
    )
    total_contacts = (
        select(func.count(distinct(Contact.contact_id)))
        .where(Contact.company_id.in_(select(Job.company_id).where(Job.run_id == Run.run_id)))
        .correlate(Run)
        .scalar_subquery()
    )
    q = (
        select(Run, Search, total_jobs, unique_companies, total_contacts)
        .outerjoin(Search, Search.search_id == Run.search_id)
        .order_by(desc(Run.created_at), desc(Run.run_id))
        .limit(max(1, min(limit, 500)))
    )
    out = []
    for run, search, n_jobs, n_companies, n_contacts in db.execute(q).all():
        out.append(RunHistoryItem(
            run_id=run.run_id,
            search_id=run.search_id,
            query=run.query,
            location=search.location if search else "",
            params=run.params or {},
            status=run.status,
            stats=run.stats or {},
            created_at=run.created_at,
            updated_at=run.updated_at,
            total_jobs=n_jobs or 0,
            unique_companies=n_companies or 0,
            total_contacts=n_contacts or 0,
        ))
    return out
