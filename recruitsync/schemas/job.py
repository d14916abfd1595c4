# recruitsync/schemas/job.py
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from recruitsync.schemas.run import RunOut


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    job_id: str
    title: str
    company_name: str
    company_id: str | None = None
    location: str | None = None
    salary: str | None = None
    posted_at: date | None = None
    source: str | None = None
    source_type: str | None = None
    link: str | None = None
    schedule_type: str | None = None
    tags: list[str] | None = None
    relevance_score: float | None = None
    run_id: str | None = None
    scraped_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class JobPage(BaseModel):
    data: list[JobOut]
    total: int
    page: int
    limit: int


class RunResults(BaseModel):
    """Authoritative snapshot of one run: the run row plus every job linked to it."""
    run: RunOut
    jobs: list[JobOut]


class JobSuggestions(BaseModel):
    companies: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
