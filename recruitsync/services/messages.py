# recruitsync/services/messages.py
"""
Message Generation Gateway.

Stateless wrapper around the outreach generator webhook:
    contact + job in  ->  subject/body out  ->  new OutreachMessage draft row.

Each call creates a new draft; readers show the most recently updated one
(`latest_draft`). When no webhook is configured drafts come from a local
template so the rest of the flow still works in development.

A reply that is not JSON or not the expected shape is retried once, then
reported as a GenerationError. Nothing is written unless generation
succeeded.
"""

import logging
from typing import Any

import requests
from pydantic import ValidationError
from sqlalchemy import select, desc
from sqlalchemy.orm import Session

from recruitsync.core.config import settings
from recruitsync.core.errors import GenerationError, NotFoundError
from recruitsync.models.company import Contact
from recruitsync.models.job import Job
from recruitsync.models.message import MessageStatus, OutreachMessage
from recruitsync.schemas.message import GeneratedDraft

logger = logging.getLogger(__name__)

PARSE_ATTEMPTS = 2


def compose_template_draft(contact: Contact, job: Job, tone: str = "professional") -> GeneratedDraft:
    first_name = (contact.name or "").split(" ")[0] or "there"
    subject = f"Exploring the {job.title} opportunity at {job.company_name}"
    body = (
        f"Hi {first_name},\n\n"
        f"I came across the {job.title} role at {job.company_name} and was immediately drawn to your team's work.\n\n"
        "With my background and passion for the field, I believe I could contribute to your continued success.\n\n"
        "Would you be available for a brief conversation about this opportunity?\n\n"
        "Best regards"
    )
    return GeneratedDraft(subject=subject, body=body, channel="email")


def _payload(contact: Contact, job: Job, tone: str, channel: str) -> dict[str, Any]:
    return {
        "tone": tone,
        "channel": channel,
        "contact": {
            "contact_id": contact.contact_id,
            "name": contact.name,
            "title": contact.title,
            "email": contact.email,
            "linkedin": contact.linkedin,
        },
        "job": {
            "job_id": job.job_id,
            "title": job.title,
            "company_name": job.company_name,
            "location": job.location,
            "link": job.link,
        },
    }


class MessageGateway:
    def __init__(
        self,
        webhook_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.webhook_url = settings.MESSAGE_WEBHOOK_URL if webhook_url is None else webhook_url
        self.timeout = timeout or settings.MESSAGE_WEBHOOK_TIMEOUT
        self.http = session or requests.Session()

    def _call_webhook(self, body: dict[str, Any]) -> GeneratedDraft:
        last_err: Exception | None = None
        for attempt in range(1, PARSE_ATTEMPTS + 1):
            try:
                r = self.http.post(self.webhook_url, json=body, timeout=self.timeout)
            except requests.RequestException as e:
                raise GenerationError(f"Message generator unreachable: {e}") from e
            if r.status_code >= 400:
                raise GenerationError(f"Message generator error {r.status_code}: {r.text[:300]}")
            try:
                data = r.json()
                if isinstance(data, list) and data:
                    data = data[0]  # single-item list wrapper
                return GeneratedDraft.model_validate(data)
            except (ValueError, ValidationError) as e:
                last_err = e
                logger.warning(
                    "generator reply failed validation (attempt %d/%d, content-type=%s)",
                    attempt, PARSE_ATTEMPTS, r.headers.get("content-type"),
                )
        raise GenerationError(f"Message generator returned an unexpected response: {last_err}")

    def generate(
        self,
        db: Session,
        contact_id: str,
        job_id: str,
        tone: str = "professional",
        channel: str = "email",
    ) -> OutreachMessage:
        contact = db.get(Contact, contact_id)
        job = db.get(Job, job_id)
        if contact is None or job is None:
            raise NotFoundError("Contact or job not found")

        if self.webhook_url:
            draft = self._call_webhook(_payload(contact, job, tone, channel))
        else:
            draft = compose_template_draft(contact, job, tone)

        msg = OutreachMessage(
            contact_id=contact_id,
            job_id=job_id,
            company_id=contact.company_id or job.company_id,
            subject=draft.subject,
            body=draft.body,
            tone=tone,
            channel=draft.channel or channel,
            status=MessageStatus.DRAFT,
        )
        db.add(msg)
        db.commit()
        logger.info("draft %s generated for contact %s / job %s", msg.message_id, contact_id, job_id)
        return msg


def latest_draft(db: Session, contact_id: str, job_id: str) -> OutreachMessage | None:
    q = (
        select(OutreachMessage)
        .where(OutreachMessage.contact_id == contact_id, OutreachMessage.job_id == job_id)
        .order_by(desc(OutreachMessage.updated_at), desc(OutreachMessage.created_at))
        .limit(1)
    )
    return db.execute(q).scalars().first()
