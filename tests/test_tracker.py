"""Tests for the SQLite application tracker."""

from __future__ import annotations

import json

import pytest

from applypilot.models import ApplicationStatus, ApplyOutcome, QueueRunResult
from applypilot.reporting.tracker import ApplicationTracker

from conftest import make_job, make_questions


@pytest.fixture()
def tracker(tmp_path):
    t = ApplicationTracker(tmp_path / "state" / "history.db")
    yield t
    t.close()


def test_upsert_dedup(tracker):
    first = tracker.upsert_listing(make_job("1"))
    again = tracker.upsert_listing(make_job("1", title="Renamed"))
    other = tracker.upsert_listing(make_job("2"))
    assert first == again
    assert other != first
    assert tracker.count_listings() == 2


def test_status_transitions(tracker):
    job = make_job("1")
    assert tracker.get_status(job) is None

    tracker.set_status(job, ApplicationStatus.QUEUED)
    tracker.set_status(job, ApplicationStatus.PROCESSING)
    assert tracker.get_status(job) is ApplicationStatus.PROCESSING
    assert not tracker.already_applied(job)

    tracker.record_outcome(job, ApplyOutcome.applied())
    assert tracker.already_applied(job)

    [row] = json.loads(tracker.export_json())
    assert row["status"] == "applied"
    assert row["attempts"] == 1
    assert row["applied_at"] is not None


def test_record_outcome_keeps_screening_answers(tracker):
    job = make_job("7")
    questions = make_questions(2)
    questions[0].answer = "Yes"

    status = tracker.record_outcome(job, ApplyOutcome.failed("Application submission failed", questions))

    assert status is ApplicationStatus.FAILED
    row = tracker._conn.execute("SELECT error, answers FROM applications").fetchone()
    assert row["error"] == "Application submission failed"
    answers = json.loads(row["answers"])
    assert answers[0]["answer"] == "Yes"
    assert answers[0]["type"] == "text"


def test_already_applied_outcome_is_skipped(tracker):
    job = make_job("8")
    assert tracker.record_outcome(job, ApplyOutcome.skipped_already_applied()) is ApplicationStatus.SKIPPED
    assert tracker.already_applied(job)


def test_failed_listing_is_retried(tracker):
    job = make_job("9")
    tracker.record_outcome(job, ApplyOutcome.failed("Apply button not found"))
    assert not tracker.already_applied(job)


def test_runs(tracker):
    run_id = tracker.start_run("naukri")
    tracker.end_run(run_id, QueueRunResult(applied=2, failed=1, skipped=3))
    run = tracker.get_run(run_id)
    assert run["source"] == "naukri"
    assert (run["applied"], run["failed"], run["skipped"]) == (2, 1, 3)
    assert run["ended_at"] is not None
    assert tracker.get_run(run_id + 1) is None
