# recruitsync/auth/jwt.py
"""
Run-scoped read credentials.

A credential is an HS256 JWT minted at run start. It names exactly one run
(`sub`) and carries that run's random `view_token`, so a leaked token for one
run never reads another run's rows. There is no refresh: once `exp` passes
the viewer has to start a new search.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt, JWTError, ExpiredSignatureError

from recruitsync.core.config import settings
from recruitsync.core.errors import (
    CREDENTIAL_EXPIRED,
    CREDENTIAL_INVALID,
    CREDENTIAL_MISSING,
    CREDENTIAL_SCOPE,
    CredentialError,
)

ALGORITHM = "HS256"
RUN_SCOPE = "run:read"


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def issue_run_credential(
    run_id: str,
    view_token: str,
    now: datetime | None = None,
    expires_minutes: int | None = None,
) -> tuple[str, datetime]:
    """Mint the bearer token handed back by the run-start operation."""
    issued = now or _utcnow()
    expire_delta = expires_minutes or settings.RUN_TOKEN_EXPIRE_MINUTES
    expires_at = (issued + timedelta(minutes=expire_delta)).replace(microsecond=0)
    payload = {
        "sub": run_id,
        "view_token": view_token,
        "scope": RUN_SCOPE,
        "iat": int(issued.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM), expires_at


def is_expired(expires_at: datetime | int | float | None, now: datetime | None = None) -> bool:
    """True when the expiry has passed. A missing expiry counts as expired."""
    if expires_at is None:
        return True
    if isinstance(expires_at, (int, float)):
        expires_at = datetime.fromtimestamp(expires_at, tz=timezone.utc)
    elif expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return (now or _utcnow()) >= expires_at


def decode_run_credential(token: str | None) -> dict[str, Any]:
    if not token:
        raise CredentialError(CREDENTIAL_MISSING, "Missing run access token.")
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError as e:
        raise CredentialError(CREDENTIAL_EXPIRED) from e
    except JWTError as e:
        raise CredentialError(CREDENTIAL_INVALID, "Run access token is not valid.") from e
    if claims.get("scope") != RUN_SCOPE or not claims.get("sub"):
        raise CredentialError(CREDENTIAL_INVALID, "Run access token is not valid.")
    return claims


def verify_run_credential(token: str | None, run_id: str) -> dict[str, Any]:
    """Decode `token` and check it was issued for `run_id`."""
    claims = decode_run_credential(token)
    if claims["sub"] != run_id:
        raise CredentialError(CREDENTIAL_SCOPE, "Access token was issued for a different run.")
    return claims
