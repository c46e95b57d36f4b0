"""Pytest configuration to make the project root importable.

Also provides an in-memory job store seeded with five jobs, one per queue
slot and lifecycle stage, mirroring a small but realistic dashboard.
"""

import os
import sys
from datetime import timedelta

import pytest

# Project root = parent directory of this tests/ folder
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from models import JobRecord  # noqa: E402
from storage import JobStorage  # noqa: E402
from utils import utc_now  # noqa: E402


@pytest.fixture(autouse=True)
def config_path(tmp_path, monkeypatch):
    """Keep Config() from writing next to the sources."""
    path = tmp_path / "jobsfilter_config.json"
    monkeypatch.setenv("JOBSFILTER_CONFIG", str(path))
    return path


@pytest.fixture
def now():
    return utc_now()


@pytest.fixture
def storage():
    return JobStorage("sqlite://")


def make_job(job_id, now, **fields):
    fields.setdefault("job_class", "ExampleJob")
    fields.setdefault("queue_name", "default")
    fields.setdefault("created_at", now - timedelta(minutes=30))
    return JobRecord(id=job_id, **fields)


@pytest.fixture
def seeded_jobs(storage, now):
    jobs = {
        "cron": make_job(
            "00000000-0000-4000-8000-000000000001", now,
            queue_name="cron", cron_key="frequent_cron",
            created_at=now - timedelta(minutes=50),
        ),
        "succeeded": make_job(
            "00000000-0000-4000-8000-000000000002", now,
            created_at=now - timedelta(minutes=40),
            performed_at=now - timedelta(minutes=39),
            finished_at=now - timedelta(minutes=38),
        ),
        "scheduled": make_job(
            "00000000-0000-4000-8000-000000000003", now,
            queue_name="mice",
            created_at=now - timedelta(minutes=30),
            scheduled_at=now + timedelta(minutes=10),
        ),
        "discarded": make_job(
            "00000000-0000-4000-8000-000000000004", now,
            queue_name="elephants",
            created_at=now - timedelta(hours=1),
            performed_at=now - timedelta(minutes=55),
            finished_at=now - timedelta(minutes=55),
            error="ExampleJob::DeadError: Dead job",
        ),
        "running": make_job(
            "00000000-0000-4000-8000-000000000005", now,
            created_at=now - timedelta(minutes=2),
            performed_at=now - timedelta(minutes=1),
        ),
    }
    for job in jobs.values():
        storage.add_job(job)
    return jobs
