"""Tests for domain models and question classification."""

from __future__ import annotations

import pytest

from applypilot.models import (
    ApplicationStatus,
    ApplyOutcome,
    OutcomeKind,
    QueueRunResult,
    QuestionProbe,
    QuestionType,
    ScreeningQuestion,
    classify_question_type,
    dedupe_listings,
    question_index,
    status_for,
)

from conftest import make_job, make_questions


@pytest.mark.parametrize(
    "raw, expected",
    [
        ({"hasSelect": True, "radioCount": 2, "checkboxCount": 3, "hasNumber": True}, QuestionType.SELECT),
        ({"radioCount": 2, "checkboxCount": 3, "hasNumber": True}, QuestionType.RADIO),
        ({"checkboxCount": 2, "hasNumber": True}, QuestionType.MULTISELECT),
        ({"checkboxCount": 1, "hasNumber": True}, QuestionType.CHECKBOX),
        ({"hasNumber": True}, QuestionType.NUMBER),
        ({}, QuestionType.TEXT),
    ],
)
def test_classification_priority(raw, expected):
    assert classify_question_type(QuestionProbe.from_dom(raw)) is expected


def test_probe_drops_blank_options():
    probe = QuestionProbe.from_dom({"text": "  Notice?  ", "radioCount": 3, "radioOptions": ["Yes", "", "No"]})
    assert probe.text == "Notice?"
    assert probe.radio_options == ("Yes", "No")


def test_question_from_probe_uses_deciding_control_options():
    probe = QuestionProbe.from_dom(
        {"text": "City", "hasSelect": True, "radioCount": 2,
         "selectOptions": ["Pune", "Delhi"], "radioOptions": ["a", "b"]}
    )
    q = ScreeningQuestion.from_probe(4, probe)
    assert q.id == "q-4"
    assert q.index == 4
    assert q.options == ("Pune", "Delhi")
    assert q.answer is None


@pytest.mark.parametrize("bad", ["4", "x-4", "q-", "q-abc", "question-1"])
def test_question_index_rejects_malformed_ids(bad):
    with pytest.raises(ValueError):
        question_index(bad)


def test_outcome_kinds_are_exclusive():
    questions = make_questions(2)
    assert ApplyOutcome.applied().kind is OutcomeKind.APPLIED
    assert ApplyOutcome.applied(questions).kind is OutcomeKind.APPLIED
    assert ApplyOutcome.skipped_already_applied().kind is OutcomeKind.ALREADY_APPLIED
    assert ApplyOutcome.failed("boom").kind is OutcomeKind.FAILED
    assert ApplyOutcome.failed("boom", questions).kind is OutcomeKind.FAILED
    pending = ApplyOutcome.pending(questions)
    assert pending.kind is OutcomeKind.QUESTIONS_PENDING
    assert pending.has_pending_questions
    assert not ApplyOutcome.failed("boom", questions).has_pending_questions


def test_pending_without_questions_is_not_pending():
    assert ApplyOutcome(success=False, screening_questions=[]).kind is OutcomeKind.FAILED


def test_status_for_outcome():
    assert status_for(ApplyOutcome.applied()) is ApplicationStatus.APPLIED
    assert status_for(ApplyOutcome.skipped_already_applied()) is ApplicationStatus.SKIPPED
    assert status_for(ApplyOutcome.failed("x")) is ApplicationStatus.FAILED


def test_queue_result_record():
    result = QueueRunResult()
    result.record(ApplyOutcome.applied())
    result.record(ApplyOutcome.skipped_already_applied())
    result.record(ApplyOutcome.failed("x"))
    result.record(ApplyOutcome.pending(make_questions(1)))
    assert (result.applied, result.skipped, result.failed) == (1, 1, 2)
    assert result.total == 4


def test_dedupe_keeps_first_seen():
    a = make_job("1", title="first")
    b = make_job("2")
    dup = make_job("1", title="second")
    other_source = make_job("1", source="indeed")
    unique = dedupe_listings([a, b, dup, other_source])
    assert unique == [a, b, other_source]
    assert a.listing_id == "naukri-1"
