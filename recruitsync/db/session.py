# recruitsync/db/session.py
from typing import Generator
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from recruitsync.core.config import settings


def make_engine(db_url: str) -> Engine:
    """Engine with SQLite-friendly connect args and pragmas."""
    is_sqlite = db_url.startswith("sqlite")
    connect_args = {"check_same_thread": False, "timeout": 30} if is_sqlite else {}

    eng = create_engine(
        db_url,
        future=True,
        pool_pre_ping=True,
        connect_args=connect_args,
    )

    # Enable WAL + sane pragmas for SQLite
    if is_sqlite:
        @event.listens_for(eng, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cur = dbapi_connection.cursor()
            if ":memory:" not in db_url:
                cur.execute("PRAGMA journal_mode=WAL;")
            cur.execute("PRAGMA synchronous=NORMAL;")
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.close()

    return eng


def make_sessionmaker(eng: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=eng,
        future=True,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = make_engine(settings.DATABASE_URL)
SessionLocal = make_sessionmaker(engine)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a request-scoped Session.
    Use this SAME session for all writes within a request to avoid SQLite locks.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
