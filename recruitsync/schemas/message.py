from datetime import datetime

from pydantic import BaseModel, ConfigDict

from recruitsync.models.message import MessageStatus


class GenerateMessageIn(BaseModel):
    contact_id: str
    job_id: str
    tone: str = "professional"
    channel: str = "email"


class GeneratedDraft(BaseModel):
    """Shape the external generator must answer with."""
    subject: str
    body: str
    channel: str | None = None


class OutreachMessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    message_id: str
    contact_id: str | None
    job_id: str | None
    company_id: str | None = None
    subject: str | None
    body: str | None
    tone: str | None = None
    channel: str
    status: MessageStatus
    created_at: datetime
    updated_at: datetime
