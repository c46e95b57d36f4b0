"""
Lifecycle state of a job record, derived from its timestamps and error.

The state is never stored: it depends on the current time (a scheduled job
turns into a queued one once its ``scheduled_at`` passes), so it is computed
on every read.
"""
from datetime import datetime

from models import JobRecord
from utils import ensure_utc

SCHEDULED = "scheduled"
RETRIED = "retried"
QUEUED = "queued"
RUNNING = "running"
SUCCEEDED = "succeeded"
DISCARDED = "discarded"

# Facet order shown by the dashboard and CLI
STATE_NAMES = (SCHEDULED, RETRIED, QUEUED, RUNNING, SUCCEEDED, DISCARDED)

FINISHED = "finished"
FINISHED_STATES = frozenset((SUCCEEDED, DISCARDED, RETRIED))


def classify(record: JobRecord, now: datetime) -> str:
    """Return the derived state of ``record`` at ``now``.

    Rules are checked in order and the first match wins, so a finished record
    is never reported as running even though ``performed_at`` is also set.
    """
    now = ensure_utc(now)
    if record.finished_at is not None:
        if record.error and record.retried_job_id:
            return RETRIED
        if record.error:
            return DISCARDED
        return SUCCEEDED
    if record.performed_at is not None:
        return RUNNING
    if record.scheduled_at is not None and record.scheduled_at > now:
        return SCHEDULED
    return QUEUED


def state_names():
    return STATE_NAMES
