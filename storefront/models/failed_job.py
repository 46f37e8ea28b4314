"""Dead-letter store for notification jobs that exhausted their run."""

from datetime import datetime, timezone
from typing import Any, Optional

from beanie import Document
from pydantic import Field


class FailedJob(Document):
    job_name: str
    job_id: str
    order_id: Optional[str] = None
    args: list[Any] = Field(default_factory=list)
    reason: str = ""
    attempt: int = 1
    failed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "failed_jobs"
        indexes = [[("order_id", 1)], [("job_name", 1), ("failed_at", -1)]]
