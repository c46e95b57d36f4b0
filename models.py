from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from utils import ensure_utc

@dataclass(frozen=True)
class JobRecord:
    id: str
    job_class: str
    queue_name: str
    created_at: datetime
    cron_key: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    performed_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None
    retried_job_id: Optional[str] = None

    def __post_init__(self):
        for name in ("created_at", "scheduled_at", "performed_at", "finished_at"):
            object.__setattr__(self, name, ensure_utc(getattr(self, name)))

    def to_dict(self):
        return {
            "id": self.id,
            "job_class": self.job_class,
            "queue_name": self.queue_name,
            "cron_key": self.cron_key,
            "scheduled_at": _iso(self.scheduled_at),
            "performed_at": _iso(self.performed_at),
            "finished_at": _iso(self.finished_at),
            "error": self.error,
            "retried_job_id": self.retried_job_id,
            "created_at": _iso(self.created_at),
        }


def _iso(value):
    return value.isoformat() if value else None
