# recruitsync/api/run_routes.py
import asyncio
import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from recruitsync.auth.deps import require_run_access
from recruitsync.api.deps import get_feed
from recruitsync.db.session import get_db
from recruitsync.realtime.feed import ChangeFeed
from recruitsync.schemas.job import RunResults
from recruitsync.schemas.run import (
    RunHistoryItem,
    RunOut,
    StartCompanyRunIn,
    StartRunIn,
    StartRunOut,
)
from recruitsync.services import registry

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 15.0

start_router = APIRouter(prefix="/webhook", tags=["runs"])
router = APIRouter(prefix="/api/runs", tags=["runs"])


@start_router.post("/search/start", response_model=StartRunOut)
def start_search(payload: StartRunIn, db: Session = Depends(get_db)):
    """Create a run for a role search and hand back its scoped access token."""
    return registry.start_run(db, payload.query, payload.params)


@start_router.post("/company-search/start", response_model=StartRunOut)
def start_company_search(payload: StartCompanyRunIn, db: Session = Depends(get_db)):
    return registry.start_company_run(db, payload.company)


@router.get("", response_model=list[RunHistoryItem], summary="Run history (newest first)")
def run_history(limit: int = Query(50, ge=1, le=500), db: Session = Depends(get_db)):
    return registry.list_run_history(db, limit=limit)


@router.get("/{run_id}", response_model=RunOut)
def get_run(run_id: str = Depends(require_run_access), db: Session = Depends(get_db)):
    return registry.get_run(db, run_id)


@router.get("/{run_id}/results", response_model=RunResults)
def get_run_results(run_id: str = Depends(require_run_access), db: Session = Depends(get_db)):
    return registry.get_run_results(db, run_id)


@router.get("/{run_id}/changes", summary="Server-sent change events for one run")
async def stream_changes(
    request: Request,
    run_id: str = Depends(require_run_access),
    feed: ChangeFeed = Depends(get_feed),
):
    sub = feed.subscribe(run_id)

    async def events():
        try:
            yield ": connected\n\n"
            while not await request.is_disconnected():
                event = await sub.get(timeout=KEEPALIVE_SECONDS)
                if event is None:
                    yield ": keep-alive\n\n"
                    continue
                yield f"event: {event.table}\ndata: {event.model_dump_json()}\n\n"
        except asyncio.CancelledError:
            logger.debug("change stream for run %s cancelled", run_id)
            raise
        finally:
            sub.close()

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
