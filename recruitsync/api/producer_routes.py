# recruitsync/api/producer_routes.py
"""Write interface for the external workflow engine (not called by the UI)."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from recruitsync.api.deps import get_feed, require_producer_key
from recruitsync.db.session import get_db
from recruitsync.realtime.feed import ChangeFeed
from recruitsync.schemas.producer import CompaniesIn, ContactsIn, JobsIn, UpsertResult
from recruitsync.schemas.run import RunOut, RunStatusUpdate
from recruitsync.services import producer, registry

router = APIRouter(prefix="/producer", tags=["producer"], dependencies=[Depends(require_producer_key)])


@router.put("/companies", response_model=UpsertResult)
def upsert_companies(payload: CompaniesIn, db: Session = Depends(get_db)):
    return producer.upsert_companies(db, payload.companies)


@router.put("/jobs", response_model=UpsertResult)
def upsert_jobs(payload: JobsIn, db: Session = Depends(get_db), feed: ChangeFeed = Depends(get_feed)):
    return producer.upsert_jobs(db, payload.jobs, feed=feed)


@router.put("/contacts", response_model=UpsertResult)
def upsert_contacts(payload: ContactsIn, db: Session = Depends(get_db)):
    return producer.upsert_contacts(db, payload.contacts)


@router.patch("/runs/{run_id}", response_model=RunOut)
def update_run(
    run_id: str,
    payload: RunStatusUpdate,
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_feed),
):
    return registry.update_run_status(
        db, run_id, payload.status, stats=payload.stats, stop_reason=payload.stop_reason, feed=feed
    )
