"""Queue-processing tests for the scraper manager (scripted scraper, fake LLM)."""

from __future__ import annotations

import asyncio

import pytest

from applypilot.cancellation import CancellationToken
from applypilot.events import EventSink
from applypilot.exceptions import (
    ProfileNotSetError,
    QueueAlreadyRunningError,
    UnknownSourceError,
)
from applypilot.models import ApplyOutcome, OutcomeKind
from applypilot.orchestrator import ScraperManager

from conftest import FakeLLM, ScriptedScraper, make_job, make_questions


def _manager(settings, profile=None, outcomes=None, replies=None, events=None):
    events = events or EventSink()
    scraper = ScriptedScraper(settings, outcomes, events=events)
    llm = FakeLLM(replies)
    manager = ScraperManager(settings, llm, events, scrapers={"naukri": scraper})
    if profile is not None:
        manager.set_profile(profile)
    return manager, scraper, llm


def test_all_jobs_applied_with_progress_events(settings, profile):
    progress: list[tuple[int, int]] = []
    events = EventSink(on_queue_progress=lambda cur, total: progress.append((cur, total)))
    manager, scraper, _ = _manager(settings, profile, events=events)
    jobs = [make_job(str(i)) for i in range(3)]

    result = asyncio.run(manager.process_job_queue("naukri", jobs))

    assert (result.applied, result.failed, result.skipped) == (3, 0, 0)
    assert progress == [(1, 3), (2, 3), (3, 3)]
    assert scraper.applied_to == ["0", "1", "2"]


def test_screening_questions_answered_then_submitted(settings, profile):
    questions = make_questions(2)
    manager, scraper, llm = _manager(
        settings,
        profile,
        outcomes={"7": ApplyOutcome.pending(questions)},
        replies=['{"answer": "5", "confidence": 0.9}', "Bangalore"],
    )

    outcome = asyncio.run(manager.apply_to_job("naukri", make_job("7")))

    assert scraper.filled == [("q-0", "5"), ("q-1", "Bangalore")]
    assert scraper.submits == 1
    assert outcome.kind is OutcomeKind.APPLIED
    assert [q.answer for q in outcome.screening_questions] == ["5", "Bangalore"]
    assert len(llm.calls) == 2


def test_failed_submission_counts_as_failed(settings, profile):
    manager, scraper, _ = _manager(
        settings, profile, outcomes={"7": lambda: ApplyOutcome.pending(make_questions(2))}
    )
    scraper.submit_result = False

    result = asyncio.run(manager.process_job_queue("naukri", [make_job("7")]))

    assert (result.applied, result.failed, result.skipped) == (0, 1, 0)
    assert scraper.submits == 1


def test_resolver_error_skips_only_that_question(settings, profile):
    logs: list[tuple[str, str]] = []
    manager, scraper, _ = _manager(
        settings,
        profile,
        outcomes={"7": ApplyOutcome.pending(make_questions(2))},
        replies=[RuntimeError("connection refused"), "Yes"],
        events=EventSink(on_log=lambda level, msg: logs.append((level, msg))),
    )

    outcome = asyncio.run(manager.apply_to_job("naukri", make_job("7")))

    assert scraper.filled == [("q-1", "Yes")]
    assert scraper.submits == 1
    assert outcome.screening_questions[0].answer is None
    assert outcome.screening_questions[1].answer == "Yes"
    assert any(level == "error" for level, _ in logs)


def test_cap_limits_attempts(settings, profile):
    settings = settings.model_copy(update={"max_applications_per_session": 2})
    manager, scraper, _ = _manager(settings, profile)
    jobs = [make_job(str(i)) for i in range(5)]

    result = asyncio.run(manager.process_job_queue("naukri", jobs))

    assert scraper.applied_to == ["0", "1"]
    assert result.total == 2


def test_outcomes_classified_into_exactly_one_bucket(settings, profile):
    outcomes = {
        "ok": ApplyOutcome.applied(),
        "dup": ApplyOutcome.skipped_already_applied(),
        "bad": ApplyOutcome.failed("Apply button not found"),
        "boom": RuntimeError("page crashed"),
    }
    errors = []
    manager, _, _ = _manager(
        settings, profile, outcomes=outcomes,
        events=EventSink(on_error=lambda exc, job: errors.append(job.external_id)),
    )
    seen = []
    jobs = [make_job(k) for k in outcomes]

    result = asyncio.run(
        manager.process_job_queue(
            "naukri", jobs, on_progress=lambda job, i, out: seen.append((job.external_id, i))
        )
    )

    assert (result.applied, result.failed, result.skipped) == (1, 2, 1)
    assert result.total == len(jobs)
    assert seen == [("ok", 0), ("dup", 1), ("bad", 2)]
    assert errors == ["boom"]


def test_stop_takes_effect_at_job_boundary(settings, profile):
    manager, scraper, _ = _manager(settings, profile)
    states = []
    scraper.on_apply = lambda job: manager.stop() if job.external_id == "1" else None
    completed = []
    manager._events.on_session_complete = lambda a, f: completed.append((a, f))

    async def run():
        result = await manager.process_job_queue("naukri", [make_job(str(i)) for i in range(5)])
        states.append(manager.is_running)
        return result

    result = asyncio.run(run())

    # job 1 was in flight when stop() arrived, so it still finishes
    assert scraper.applied_to == ["0", "1"]
    assert result.applied == 2
    assert states == [False]
    assert completed == [(2, 0)]
    assert scraper.get_state().is_running is False


def test_stop_interrupts_inter_job_delay(settings, profile):
    settings = settings.model_copy(update={"delay_between_applications_ms": 60_000})
    manager, scraper, _ = _manager(settings, profile)
    token = CancellationToken()

    async def run():
        task = asyncio.create_task(
            manager.process_job_queue("naukri", [make_job("0"), make_job("1")], token=token)
        )
        await asyncio.sleep(0.05)
        manager.stop()
        return await asyncio.wait_for(task, timeout=2)

    result = asyncio.run(run())

    assert token.cancelled
    assert scraper.applied_to == ["0"]
    assert result.total == 1


def test_new_run_gets_fresh_token(settings, profile):
    manager, scraper, _ = _manager(settings, profile)
    scraper.on_apply = lambda job: manager.stop()

    first = asyncio.run(manager.process_job_queue("naukri", [make_job("0"), make_job("1")]))
    second = asyncio.run(manager.process_job_queue("naukri", [make_job("2"), make_job("3")]))

    assert first.total == 1
    assert second.total == 1
    assert scraper.applied_to == ["0", "2"]


def test_profile_required(settings):
    manager, scraper, _ = _manager(settings)

    with pytest.raises(ProfileNotSetError):
        asyncio.run(manager.apply_to_job("naukri", make_job()))
    with pytest.raises(ProfileNotSetError):
        asyncio.run(manager.process_job_queue("naukri", [make_job()]))
    assert scraper.applied_to == []


def test_unknown_source_rejected(settings, profile):
    manager, _, _ = _manager(settings, profile)

    with pytest.raises(UnknownSourceError):
        asyncio.run(manager.process_job_queue("indeed", [make_job()]))
    with pytest.raises(UnknownSourceError):
        manager.get_scraper("indeed")


def test_concurrent_run_for_same_source_rejected(settings, profile):
    settings = settings.model_copy(update={"delay_between_applications_ms": 50})
    manager, _, _ = _manager(settings, profile)

    async def run():
        first = asyncio.create_task(
            manager.process_job_queue("naukri", [make_job("0"), make_job("1")])
        )
        await asyncio.sleep(0)
        with pytest.raises(QueueAlreadyRunningError):
            await manager.process_job_queue("naukri", [make_job("2")])
        return await first

    result = asyncio.run(run())
    assert result.applied == 2


def test_throwing_callbacks_do_not_abort_queue(settings, profile):
    def explode(*args):
        raise ValueError("ui disconnected")

    events = EventSink(on_queue_progress=explode, on_session_complete=explode, on_log=explode)
    manager, _, _ = _manager(settings, profile, events=events)

    result = asyncio.run(
        manager.process_job_queue("naukri", [make_job("0"), make_job("1")], on_progress=explode)
    )

    assert result.applied == 2


def test_already_applied_returned_unchanged(settings, profile):
    manager, scraper, llm = _manager(
        settings, profile, outcomes={"1": ApplyOutcome.skipped_already_applied()}
    )

    outcome = asyncio.run(manager.apply_to_job("naukri", make_job("1")))

    assert outcome.kind is OutcomeKind.ALREADY_APPLIED
    assert scraper.submits == 0
    assert llm.calls == []


def test_set_profile_shared_with_scrapers(settings, profile):
    manager, scraper, _ = _manager(settings, profile)

    assert scraper.profile is profile
    assert manager.get_status()["is_running"] is False
    assert "naukri" in manager.get_status()["scraper_states"]
