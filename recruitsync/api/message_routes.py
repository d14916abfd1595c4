from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from recruitsync.api.deps import get_gateway
from recruitsync.db.session import get_db
from recruitsync.schemas.message import GenerateMessageIn, OutreachMessageOut
from recruitsync.services.messages import MessageGateway, latest_draft

router = APIRouter(tags=["messages"])


@router.post("/webhook/generate-message", response_model=OutreachMessageOut, status_code=201)
def generate_message(
    payload: GenerateMessageIn,
    db: Session = Depends(get_db),
    gateway: MessageGateway = Depends(get_gateway),
):
    """Generate a new outreach draft. Every call creates a fresh draft."""
    return gateway.generate(db, payload.contact_id, payload.job_id, tone=payload.tone, channel=payload.channel)


@router.get("/api/messages/latest", response_model=OutreachMessageOut)
def get_latest_draft(contact_id: str, job_id: str, db: Session = Depends(get_db)):
    msg = latest_draft(db, contact_id, job_id)
    if msg is None:
        raise HTTPException(status_code=404, detail="No draft for this contact and job")
    return msg
