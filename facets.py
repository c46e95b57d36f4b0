from collections import Counter
from datetime import datetime
from typing import Dict, Iterable

from models import JobRecord
from states import STATE_NAMES, classify


def aggregate_by_job_class(records: Iterable[JobRecord]) -> Dict[str, int]:
    counts = Counter(r.job_class for r in records)
    return {name: counts[name] for name in sorted(counts)}


def aggregate_by_queue(records: Iterable[JobRecord]) -> Dict[str, int]:
    counts = Counter(r.queue_name for r in records)
    return {name: counts[name] for name in sorted(counts)}


def aggregate_by_state(records: Iterable[JobRecord], now: datetime) -> Dict[str, int]:
    """Count records per derived state; every state is present, zero-filled."""
    counts = Counter(classify(r, now) for r in records)
    return {state: counts.get(state, 0) for state in STATE_NAMES}
