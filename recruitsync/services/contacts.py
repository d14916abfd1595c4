from sqlalchemy import select
from sqlalchemy.orm import Session

from recruitsync.models.company import Contact


def list_contacts(db: Session, company_id: str) -> list[Contact]:
    """All contacts at one company, by title (nulls last) then name, contact_id as the final tie-break."""
    q = (
        select(Contact)
        .where(Contact.company_id == company_id)
        .order_by(
            Contact.title.is_(None),
            Contact.title.asc(),
            Contact.name.asc(),
            Contact.contact_id.asc(),
        )
    )
    return list(db.execute(q).scalars().all())
