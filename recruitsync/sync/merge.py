# recruitsync/sync/merge.py
"""
Upsert-by-key merge for the synchronizer's job collection.

Rules for combining an incoming job record into the one already held:

* an unknown job_id is inserted as-is;
* a None value never overwrites anything ("not present");
* keys are never dropped;
* when the incoming record's `updated_at` is older than the held one, it may
  only fill keys the held record has no value for.

Together these make the merge idempotent and order independent, so the same
row arriving twice (seed fetch, change stream, poll) converges to one entry.
"""

from datetime import date, datetime, timezone
from typing import Any, Iterable

Record = dict[str, Any]


def as_utc(value: Any) -> datetime | None:
    """datetime or ISO-8601 string -> aware UTC datetime (naive counts as UTC)."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _as_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def is_older(incoming: Record, existing: Record) -> bool:
    new_ts = as_utc(incoming.get("updated_at"))
    old_ts = as_utc(existing.get("updated_at"))
    return new_ts is not None and old_ts is not None and new_ts < old_ts


def merge_job(existing: Record | None, incoming: Record) -> Record:
    """Return the merged record. Neither argument is mutated."""
    if existing is None:
        return dict(incoming)

    stale = is_older(incoming, existing)
    merged = dict(existing)
    for key, value in incoming.items():
        if value is None:
            merged.setdefault(key, None)
            continue
        if stale and merged.get(key) is not None:
            continue
        merged[key] = value
    return merged


class JobCollection:
    """jobs_by_id plus the display order used by the job listing."""

    def __init__(self) -> None:
        self._jobs: dict[str, Record] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    def get(self, job_id: str) -> Record | None:
        return self._jobs.get(job_id)

    def upsert(self, record: Record) -> bool:
        """Merge one record; True when the held entry changed."""
        job_id = record.get("job_id")
        if not job_id:
            return False
        current = self._jobs.get(job_id)
        merged = merge_job(current, record)
        if merged == current:
            return False
        self._jobs[job_id] = merged
        return True

    def upsert_many(self, records: Iterable[Record]) -> int:
        return sum(1 for r in records if self.upsert(r))

    def ordered(self) -> list[Record]:
        # posted_at desc (nulls last), created_at desc, job_id desc
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        rows = sorted(self._jobs.values(), key=lambda j: j["job_id"], reverse=True)
        rows.sort(key=lambda j: as_utc(j.get("created_at")) or epoch, reverse=True)
        rows.sort(key=lambda j: _as_date(j.get("posted_at")) or date.min, reverse=True)
        rows.sort(key=lambda j: _as_date(j.get("posted_at")) is None)
        return rows
