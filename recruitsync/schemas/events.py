from typing import Any, Literal

from pydantic import BaseModel


class ChangeEvent(BaseModel):
    """One row change on the run's change stream."""
    table: Literal["runs", "jobs"]
    type: Literal["INSERT", "UPDATE"]
    run_id: str
    record: dict[str, Any]
