from fastapi import Header, Request

from recruitsync.core.config import settings
from recruitsync.core.errors import CREDENTIAL_INVALID, CredentialError
from recruitsync.realtime.feed import ChangeFeed
from recruitsync.services.messages import MessageGateway


def get_feed(request: Request) -> ChangeFeed:
    return request.app.state.feed


def get_gateway(request: Request) -> MessageGateway:
    return request.app.state.gateway


def require_producer_key(x_producer_key: str | None = Header(default=None)) -> None:
    if settings.PRODUCER_API_KEY and x_producer_key != settings.PRODUCER_API_KEY:
        raise CredentialError(CREDENTIAL_INVALID, "Invalid producer key")
