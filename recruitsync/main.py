# recruitsync/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.engine import Engine

from recruitsync.core.config import settings
from recruitsync.core.errors import CredentialError, RecruitSyncError
from recruitsync.core.logging import setup_logging
from recruitsync.db.session import engine
from recruitsync.db.base import Base
from recruitsync.realtime.feed import ChangeFeed
from recruitsync.services.messages import MessageGateway

# Import models so SQLAlchemy knows about them (for create_all)
import recruitsync.db.models  # noqa: F401

# Routers
from recruitsync.api.routes import router as api_router
from recruitsync.api.run_routes import router as run_router, start_router
from recruitsync.api.job_routes import router as job_router
from recruitsync.api.contact_routes import router as contact_router
from recruitsync.api.message_routes import router as message_router
from recruitsync.api.producer_routes import router as producer_router

logger = logging.getLogger(__name__)


async def recruitsync_error_handler(request: Request, exc: RecruitSyncError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, CredentialError) else None
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()}, headers=headers)


def create_app(db_engine: Engine | None = None, gateway: MessageGateway | None = None) -> FastAPI:
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(title=settings.APP_NAME)

    # Root -> redirect to Swagger UI
    @app.get("/", include_in_schema=False)
    def root():
        return RedirectResponse(url="/docs")

    # CORS
    origins = [o.strip() for o in settings.BACKEND_CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Ensure tables exist (Alembic owns real migrations)
    Base.metadata.create_all(bind=db_engine or engine)

    app.state.feed = ChangeFeed()
    app.state.gateway = gateway or MessageGateway()
    app.add_exception_handler(RecruitSyncError, recruitsync_error_handler)

    app.include_router(api_router)        # /health
    app.include_router(start_router)      # /webhook/search/start, /webhook/company-search/start
    app.include_router(run_router)        # /api/runs/*
    app.include_router(job_router)        # /api/jobs
    app.include_router(contact_router)    # /api/contacts
    app.include_router(message_router)    # /webhook/generate-message, /api/messages/latest
    app.include_router(producer_router)   # /producer/*

    logger.info("%s ready (env=%s)", settings.APP_NAME, settings.APP_ENV)
    return app


app = create_app()
