# recruitsync/api/job_routes.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from recruitsync.auth.deps import optional_run_access
from recruitsync.core.config import settings
from recruitsync.db.session import get_db
from recruitsync.schemas.job import JobPage, JobSuggestions
from recruitsync.services.filters import JobFilters, job_suggestions, list_jobs

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


@router.get("", response_model=JobPage)
def list_jobs_route(
    run_id: str | None = Depends(optional_run_access),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.JOBS_PAGE_SIZE, ge=1, le=settings.JOBS_MAX_PAGE_SIZE),
    search: str | None = None,
    company: str | None = None,
    date_from: str | None = Query(None, alias="dateFrom"),
    date_to: str | None = Query(None, alias="dateTo"),
    location: str | None = None,
    source: str | None = None,
    has_contacts: bool = Query(False, alias="hasContacts"),
    db: Session = Depends(get_db),
):
    """
    Jobs, filtered and paginated. With `run_id` (and its bearer token) the
    listing is scoped to one run; without it, it spans every run.
    """
    filters = JobFilters.parse(
        search=search,
        company=company,
        dateFrom=date_from,
        dateTo=date_to,
        location=location,
        source=source,
        hasContacts=has_contacts,
    )
    return list_jobs(db, filters, page=page, limit=limit, run_id=run_id)


@router.get("/suggestions", response_model=JobSuggestions)
def suggestions_route(
    run_id: str | None = Depends(optional_run_access),
    db: Session = Depends(get_db),
):
    return job_suggestions(db, run_id=run_id)
