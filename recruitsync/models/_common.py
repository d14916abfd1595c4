import uuid
from datetime import datetime, timezone


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def enum_values(enum_cls) -> list[str]:
    return [m.value for m in enum_cls]
