# recruitsync/schemas/run.py
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recruitsync.models.run import RunStatus


class StartRunIn(BaseModel):
    query: str
    params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("query")
    @classmethod
    def query_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be empty")
        return v.strip()


class StartCompanyRunIn(BaseModel):
    company: str

    @field_validator("company")
    @classmethod
    def company_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("company must not be empty")
        return v.strip()


class StartRunOut(BaseModel):
    run_id: str
    search_id: str | None
    access_token: str
    expires_at: datetime


class RunOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    run_id: str
    query: str
    params: dict[str, Any]
    status: RunStatus
    stats: dict[str, Any]
    stop_reason: str | None = None
    search_id: str | None = None
    created_at: datetime
    updated_at: datetime


class RunStatusUpdate(BaseModel):
    """Producer -> registry status/stats write."""
    status: RunStatus
    stats: dict[str, Any] | None = None
    stop_reason: str | None = None


class RunHistoryItem(BaseModel):
    run_id: str
    search_id: str | None
    query: str
    location: str
    params: dict[str, Any]
    status: RunStatus
    stats: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    total_jobs: int
    unique_companies: int
    total_contacts: int
