from datetime import datetime

from pydantic import BaseModel, ConfigDict

from recruitsync.models.company import EmailStatus


class ContactOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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
    created_at: datetime


class ContactList(BaseModel):
    data: list[ContactOut]
