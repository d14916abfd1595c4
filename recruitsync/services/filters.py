# recruitsync/services/filters.py
"""
Filter/Pagination Engine.

One query path for both viewing modes: run mode is browse mode plus a
`run_id` predicate. `compose_job_query` is pure (no session, no state), so
identical filters + page always produce the same statement, and with a fixed
total order (posted_at desc nulls last, created_at desc, job_id desc) the
same rows.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from sqlalchemy import Select, and_, exists, func, or_, select
from sqlalchemy.orm import Session

from recruitsync.core.config import settings
from recruitsync.core.errors import FilterValidationError
from recruitsync.models.company import Contact
from recruitsync.models.job import Job
from recruitsync.schemas.job import JobOut, JobPage, JobSuggestions

JOB_ORDER = (
    Job.posted_at.is_(None),
    Job.posted_at.desc(),
    Job.created_at.desc(),
    Job.job_id.desc(),
)


def _parse_date(v):
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    if not isinstance(v, str):
        raise ValueError("expected a date string (YYYY-MM-DD)")
    s = v.strip()
    try:
        if len(s) == 10:
            return date.fromisoformat(s)
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValueError(f"invalid date: {v!r}")


class JobFilters(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    search: str | None = None
    company: str | None = None
    date_from: date | None = Field(default=None, alias="dateFrom")
    date_to: date | None = Field(default=None, alias="dateTo")
    location: str | None = None
    source: str | None = None
    has_contacts: bool = Field(default=False, alias="hasContacts")

    @field_validator("search", "company", "location", "source", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def strict_date(cls, v):
        return _parse_date(v)

    @field_validator("date_to")
    @classmethod
    def range_in_order(cls, v, info: ValidationInfo):
        start = info.data.get("date_from")
        if v and start and start > v:
            raise ValueError("dateTo must not be before dateFrom")
        return v

    @classmethod
    def parse(cls, **raw) -> "JobFilters":
        """Validate raw input; failures surface as a field-level FilterValidationError."""
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            err = e.errors()[0]
            loc = err.get("loc") or ()
            field = str(loc[0]) if loc else "filters"
            msg = str(err.get("msg", "invalid value")).removeprefix("Value error, ")
            raise FilterValidationError(field, msg) from e


def _contains(col, text: str):
    return col.icontains(text, autoescape=True)


def compose_job_query(filters: JobFilters, run_id: str | None = None) -> Select:
    """WHERE clause for the job listing, without ordering or paging."""
    conditions = []
    if run_id:
        conditions.append(Job.run_id == run_id)
    if filters.search:
        conditions.append(or_(_contains(Job.title, filters.search), _contains(Job.company_name, filters.search)))
    if filters.company:
        conditions.append(_contains(Job.company_name, filters.company))
    if filters.date_from:
        conditions.append(Job.posted_at >= filters.date_from)
    if filters.date_to:
        conditions.append(Job.posted_at <= filters.date_to)
    if filters.location:
        conditions.append(_contains(Job.location, filters.location))
    if filters.source:
        conditions.append(or_(_contains(Job.source, filters.source), _contains(Job.source_type, filters.source)))
    if filters.has_contacts:
        conditions.append(
            and_(
                Job.company_id.is_not(None),
                exists().where(Contact.company_id == Job.company_id),
            )
        )

    q = select(Job)
    if conditions:
        q = q.where(and_(*conditions))
    return q


def page_bounds(page: int, limit: int) -> tuple[int, int]:
    if page < 1:
        raise FilterValidationError("page", "page must be >= 1")
    if limit < 1 or limit > settings.JOBS_MAX_PAGE_SIZE:
        raise FilterValidationError("limit", f"limit must be between 1 and {settings.JOBS_MAX_PAGE_SIZE}")
    return (page - 1) * limit, limit


def list_jobs(
    db: Session,
    filters: JobFilters,
    page: int = 1,
    limit: int | None = None,
    run_id: str | None = None,
) -> JobPage:
    limit = limit or settings.JOBS_PAGE_SIZE
    offset, limit = page_bounds(page, limit)
    base = compose_job_query(filters, run_id=run_id)

    total = db.execute(select(func.count()).select_from(base.subquery())).scalar_one()
    rows = db.execute(base.order_by(*JOB_ORDER).offset(offset).limit(limit)).scalars().all()
    return JobPage(
        data=[JobOut.model_validate(r) for r in rows],
        total=total,
        page=page,
        limit=limit,
    )


def job_suggestions(db: Session, run_id: str | None = None, limit: int = 50) -> JobSuggestions:
    """Distinct company names and sources for filter auto-complete."""
    scope = [Job.run_id == run_id] if run_id else []
    companies = db.execute(
        select(Job.company_name).where(*scope).distinct().order_by(Job.company_name).limit(limit)
    ).scalars().all()
    sources = set()
    for src, src_type in db.execute(select(Job.source, Job.source_type).where(*scope).distinct()).all():
        for s in (src, src_type):
            if s:
                sources.add(s)
    return JobSuggestions(companies=list(companies), sources=sorted(sources)[:limit])
