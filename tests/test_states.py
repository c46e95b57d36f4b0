from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_job
from states import (
    DISCARDED, QUEUED, RETRIED, RUNNING, SCHEDULED, STATE_NAMES, SUCCEEDED,
    classify, state_names,
)


def test_future_scheduled_job_is_scheduled(now):
    job = make_job("a", now, scheduled_at=now + timedelta(minutes=10))
    assert classify(job, now) == SCHEDULED


def test_job_without_timestamps_is_queued(now):
    assert classify(make_job("a", now), now) == QUEUED


def test_overdue_scheduled_job_is_queued(now):
    job = make_job("a", now, scheduled_at=now - timedelta(seconds=1))
    assert classify(job, now) == QUEUED


def test_scheduled_exactly_now_is_queued(now):
    assert classify(make_job("a", now, scheduled_at=now), now) == QUEUED


def test_performed_but_unfinished_job_is_running(now):
    job = make_job("a", now, performed_at=now - timedelta(minutes=1))
    assert classify(job, now) == RUNNING


def test_running_wins_over_future_schedule(now):
    job = make_job("a", now, performed_at=now, scheduled_at=now + timedelta(hours=1))
    assert classify(job, now) == RUNNING


def test_retry_link_error_and_finish_round_trip(now):
    retried = make_job(
        "a", now,
        performed_at=now - timedelta(minutes=2),
        finished_at=now - timedelta(minutes=1),
        error="ExampleJob::ExpectedError: Raised expected error",
        retried_job_id="b",
    )
    assert classify(retried, now) == RETRIED

    discarded = replace(retried, retried_job_id=None)
    assert classify(discarded, now) == DISCARDED

    succeeded = replace(discarded, error=None)
    assert classify(succeeded, now) == SUCCEEDED


def test_finished_job_without_performed_at_is_succeeded(now):
    job = make_job("a", now, finished_at=now)
    assert classify(job, now) == SUCCEEDED


def test_empty_error_counts_as_no_error(now):
    job = make_job("a", now, performed_at=now, finished_at=now, error="")
    assert classify(job, now) == SUCCEEDED


def test_finished_job_ignores_future_schedule(now):
    job = make_job("a", now, scheduled_at=now + timedelta(days=1), finished_at=now, error="Boom: x")
    assert classify(job, now) == DISCARDED


def test_classification_depends_on_now(now):
    job = make_job("a", now, scheduled_at=now + timedelta(minutes=5))
    assert classify(job, now) == SCHEDULED
    assert classify(job, now + timedelta(minutes=5, seconds=1)) == QUEUED


@pytest.mark.parametrize("fields", [
    {},
    {"scheduled_at": "future"},
    {"performed_at": "past"},
    {"finished_at": "past", "error": "E: x", "retried_job_id": "z"},
    {"finished_at": "past", "retried_job_id": "z"},
])
def test_classify_always_returns_a_canonical_state(now, fields):
    resolved = {
        k: (now + timedelta(hours=1) if v == "future" else now - timedelta(hours=1) if v == "past" else v)
        for k, v in fields.items()
    }
    job = make_job("a", now, **resolved)
    assert classify(job, now) in STATE_NAMES
    assert classify(job, now) == classify(job, now)


def test_state_names_is_fixed():
    assert state_names() == ("scheduled", "retried", "queued", "running", "succeeded", "discarded")


def test_naive_record_timestamps_are_read_as_utc(now):
    job = make_job("a", now, created_at=datetime(2024, 1, 1), scheduled_at=datetime(2030, 1, 1))
    assert job.scheduled_at.tzinfo == timezone.utc
    assert classify(job, datetime(2025, 1, 1, tzinfo=timezone.utc)) == SCHEDULED


def test_naive_now_is_read_as_utc(now):
    job = make_job("a", now, scheduled_at=now + timedelta(minutes=10))
    assert classify(job, now.replace(tzinfo=None)) == SCHEDULED
    assert classify(job, (now + timedelta(hours=1)).replace(tzinfo=None)) == QUEUED
