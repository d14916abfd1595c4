# recruitsync/services/producer.py
"""
Write path for the external workflow engine.

Every upsert is keyed by the row's primary id and only touches the fields the
producer actually sent, so a partial follow-up write (say, a resolved
company_id) never blanks columns written earlier. Job writes are published on
the change feed after commit.
"""

import logging
from typing import Iterable, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Session

from recruitsync.db.base import Base
from recruitsync.models.company import Company, Contact
from recruitsync.models.job import Job
from recruitsync.realtime.feed import ChangeFeed
from recruitsync.schemas.events import ChangeEvent
from recruitsync.schemas.job import JobOut
from recruitsync.schemas.producer import CompanyIn, ContactIn, JobIn, UpsertResult

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Base)


def _upsert(db: Session, model: type[M], key: str, item: BaseModel) -> tuple[M, bool]:
    fields = item.model_dump(exclude_unset=True)
    row = db.get(model, fields[key])
    if row is None:
        row = model(**fields)
        db.add(row)
        # the session does not autoflush; a repeated key later in the batch must find this row
        db.flush()
        return row, True
    for name, value in fields.items():
        if name != key:
            setattr(row, name, value)
    return row, False


def upsert_companies(db: Session, companies: Iterable[CompanyIn]) -> UpsertResult:
    result = UpsertResult()
    for c in companies:
        row, created = _upsert(db, Company, "company_id", c)
        result.ids.append(row.company_id)
        if created:
            result.inserted += 1
        else:
            result.updated += 1
    db.commit()
    logger.debug("companies upserted: %d new, %d updated", result.inserted, result.updated)
    return result


def upsert_contacts(db: Session, contacts: Iterable[ContactIn]) -> UpsertResult:
    result = UpsertResult()
    for c in contacts:
        row, created = _upsert(db, Contact, "contact_id", c)
        result.ids.append(row.contact_id)
        if created:
            result.inserted += 1
        else:
            result.updated += 1
    db.commit()
    logger.debug("contacts upserted: %d new, %d updated", result.inserted, result.updated)
    return result


def upsert_jobs(db: Session, jobs: Iterable[JobIn], feed: ChangeFeed | None = None) -> UpsertResult:
    result = UpsertResult()
    touched: dict[str, tuple[Job, bool]] = {}
    for j in jobs:
        row, created = _upsert(db, Job, "job_id", j)
        was_created = touched.get(row.job_id, (row, created))[1]
        touched[row.job_id] = (row, was_created)
        result.ids.append(row.job_id)
        if created:
            result.inserted += 1
        else:
            result.updated += 1
    db.commit()
    logger.debug("jobs upserted: %d new, %d updated", result.inserted, result.updated)

    if feed is not None:
        for row, created in touched.values():
            if not row.run_id:
                continue
            feed.publish(ChangeEvent(
                table="jobs",
                type="INSERT" if created else "UPDATE",
                run_id=row.run_id,
                record=JobOut.model_validate(row).model_dump(mode="json"),
            ))
    return result
