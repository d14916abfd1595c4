from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from recruitsync.db.session import get_db
from recruitsync.schemas.contact import ContactList, ContactOut
from recruitsync.services.contacts import list_contacts

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


@router.get("", response_model=ContactList)
def list_contacts_route(company_id: str | None = None, db: Session = Depends(get_db)):
    if not company_id:
        raise HTTPException(status_code=400, detail="Missing company_id parameter")
    rows = list_contacts(db, company_id)
    return ContactList(data=[ContactOut.model_validate(r) for r in rows])
