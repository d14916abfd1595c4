from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from recruitsync.auth.jwt import verify_run_credential
from recruitsync.core.errors import CREDENTIAL_INVALID, CredentialError
from recruitsync.db.session import get_db
from recruitsync.models.run import Run

bearer = HTTPBearer(auto_error=False)


def _token(creds: HTTPAuthorizationCredentials | None) -> str | None:
    return creds.credentials if creds else None


def check_run_access(db: Session, run_id: str, token: str | None) -> None:
    """Token must name this run and carry the run's current view_token."""
    claims = verify_run_credential(token, run_id)
    run = db.get(Run, run_id)
    # unknown run falls through to the route's 404
    if run is not None and run.view_token and claims.get("view_token") != run.view_token:
        raise CredentialError(CREDENTIAL_INVALID, "Run access token is not valid.")


def require_run_access(
    run_id: str,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> str:
    """Dependency for routes with a `{run_id}` path parameter."""
    check_run_access(db, run_id, _token(creds))
    return run_id


def optional_run_access(
    run_id: str | None = None,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> str | None:
    """Dependency for listings where `run_id` is an optional query parameter (browse mode)."""
    if run_id:
        check_run_access(db, run_id, _token(creds))
    return run_id
