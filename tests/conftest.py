"""Shared fixtures: a throwaway SQLite database and an app wired to it."""

import os

# settings are read at import time; keep tests off the developer's database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("MESSAGE_WEBHOOK_URL", "")
os.environ.setdefault("PRODUCER_API_KEY", "")

from datetime import date, datetime, timezone  # noqa: E402

import pytest  # noqa: E402

from recruitsync.db.base import Base  # noqa: E402
from recruitsync.db.session import make_engine, make_sessionmaker  # noqa: E402
import recruitsync.db.models  # noqa: F401,E402
from recruitsync.models.company import Company, Contact  # noqa: E402
from recruitsync.models.job import Job  # noqa: E402


@pytest.fixture()
def engine(tmp_path):  # type: ignore[no-untyped-def]
    eng = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):  # type: ignore[no-untyped-def]
    return make_sessionmaker(engine)


@pytest.fixture()
def db(session_factory):  # type: ignore[no-untyped-def]
    with session_factory() as session:
        yield session


def _add_job(db, job_id: str, run_id: str | None = None, **kw: object) -> Job:  # type: ignore[no-untyped-def]
    defaults: dict[str, object] = {
        "title": "Software Engineer",
        "company_name": "Acme",
        "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
    }
    defaults.update(kw)
    job = Job(job_id=job_id, run_id=run_id, **defaults)  # type: ignore[arg-type]
    db.add(job)
    db.commit()
    return job


def _add_company(db, company_id: str, name: str, contacts: list[dict] | None = None) -> Company:  # type: ignore[no-untyped-def]
    company = Company(company_id=company_id, name=name)
    db.add(company)
    for i, c in enumerate(contacts or []):
        db.add(Contact(contact_id=f"{company_id}-c{i}", company_id=company_id, **c))
    db.commit()
    return company


@pytest.fixture()
def dataset(db):  # type: ignore[no-untyped-def]
    """Three jobs in run R1; only Globex has contacts."""
    _add_company(db, "co-acme", "Acme")
    _add_company(db, "co-globex", "Globex", contacts=[{"name": "Dana Lee", "title": "Recruiter"}])
    _add_job(db, "j1", "R1", company_name="Acme", company_id="co-acme", posted_at=date(2026, 3, 1),
            location="Minneapolis, MN", source="LinkedIn")
    _add_job(db, "j2", "R1", title="Backend Engineer", company_name="Globex", company_id="co-globex",
            posted_at=date(2026, 3, 5), location="Remote", source="Indeed", source_type="aggregator")
    _add_job(db, "j3", "R1", title="Data Engineer", company_name="Initech", posted_at=None, location="St Paul, MN")
    _add_job(db, "j4", "R2", title="Platform Engineer", company_name="Acme", company_id="co-acme",
            posted_at=date(2026, 2, 1))
    return db


@pytest.fixture()
def add_job():  # type: ignore[no-untyped-def]
    return _add_job


@pytest.fixture()
def add_company():  # type: ignore[no-untyped-def]
    return _add_company
