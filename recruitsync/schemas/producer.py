# recruitsync/schemas/producer.py
"""Payloads the external workflow engine writes with. Every upsert is keyed by its primary id."""
from datetime import date, datetime

from pydantic import BaseModel, Field

from recruitsync.models.company import EmailStatus


class CompanyIn(BaseModel):
    company_id: str
    name: str
    domain: str | None = None
    industry: str | None = None
    linkedin: str | None = None
    size: str | None = None


class JobIn(BaseModel):
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


class ContactIn(BaseModel):
    contact_id: str
    name: str
    title: str | None = None
    email: str | None = None
    email_status: EmailStatus | None = None
    linkedin: str | None = None
    phone: str | None = None
    confidence: float | None = None
    company_id: str | None = None
    job_id: str | None = None
    source: str | None = None


class CompaniesIn(BaseModel):
    companies: list[CompanyIn]


class JobsIn(BaseModel):
    jobs: list[JobIn]


class ContactsIn(BaseModel):
    contacts: list[ContactIn]


class UpsertResult(BaseModel):
    ok: bool = True
    inserted: int = 0
    updated: int = 0
    ids: list[str] = Field(default_factory=list)
