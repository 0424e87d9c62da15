"""Domain models for ApplyPilot."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---- listings ----


@dataclass(frozen=True)
class NumericRange:
    min: float
    max: float
    currency: str = ""


@dataclass(frozen=True)
class JobListing:
    """Immutable representation of a scraped job listing.

    ``(source, external_id)`` identifies a listing across scrapes.
    """

    source: str
    external_id: str
    url: str
    title: str = ""
    company: str = ""
    location: str = ""
    description: str = ""
    experience_range: NumericRange | None = None
    salary_range: NumericRange | None = None
    skills: tuple[str, ...] = ()
    work_mode: str = ""
    apply_url: str = ""
    posted_date: str = ""
    scraped_at: str = field(default_factory=_utc_now)

    @property
    def listing_id(self) -> str:
        return f"{self.source}-{self.external_id}"

    @property
    def dedup_key(self) -> tuple[str, str]:
        return (self.source, self.external_id)


def dedupe_listings(listings: Iterable[JobListing]) -> list[JobListing]:
    """Drop repeated ``(source, external_id)`` pairs, keeping first-seen order."""
    seen: set[tuple[str, str]] = set()
    unique: list[JobListing] = []
    for listing in listings:
        if listing.dedup_key in seen:
            continue
        seen.add(listing.dedup_key)
        unique.append(listing)
    return unique


@dataclass(frozen=True)
class JobSearchParams:
    """Parameters for one search-results page."""

    keywords: tuple[str, ...]
    locations: tuple[str, ...] = ()
    experience_min: int | None = None
    experience_max: int | None = None
    salary_min: int | None = None
    posted_within: str = ""  # 1d, 3d, 7d, 15d, 30d
    page: int = 1


@dataclass
class JobSearchResult:
    jobs: list[JobListing]
    total_count: int
    page: int
    has_more: bool


# ---- screening questions ----


class QuestionType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    MULTISELECT = "multiselect"
    RADIO = "radio"
    CHECKBOX = "checkbox"


@dataclass(frozen=True)
class QuestionProbe:
    """Raw control inventory of one question container, as read from the DOM."""

    text: str = ""
    has_select: bool = False
    radio_count: int = 0
    checkbox_count: int = 0
    has_number: bool = False
    required: bool = False
    select_options: tuple[str, ...] = ()
    radio_options: tuple[str, ...] = ()
    checkbox_options: tuple[str, ...] = ()

    @classmethod
    def from_dom(cls, raw: dict[str, Any]) -> "QuestionProbe":
        return cls(
            text=(raw.get("text") or "").strip(),
            has_select=bool(raw.get("hasSelect")),
            radio_count=int(raw.get("radioCount") or 0),
            checkbox_count=int(raw.get("checkboxCount") or 0),
            has_number=bool(raw.get("hasNumber")),
            required=bool(raw.get("required")),
            select_options=tuple(o for o in raw.get("selectOptions") or () if o),
            radio_options=tuple(o for o in raw.get("radioOptions") or () if o),
            checkbox_options=tuple(o for o in raw.get("checkboxOptions") or () if o),
        )


# Highest priority first; the first matching rule decides the type.
QUESTION_TYPE_PRIORITY: tuple[tuple[QuestionType, Callable[[QuestionProbe], bool]], ...] = (
    (QuestionType.SELECT, lambda p: p.has_select),
    (QuestionType.RADIO, lambda p: p.radio_count > 0),
    (QuestionType.MULTISELECT, lambda p: p.checkbox_count > 1),
    (QuestionType.CHECKBOX, lambda p: p.checkbox_count == 1),
    (QuestionType.NUMBER, lambda p: p.has_number),
)


def classify_question_type(probe: QuestionProbe) -> QuestionType:
    for question_type, matches in QUESTION_TYPE_PRIORITY:
        if matches(probe):
            return question_type
    return QuestionType.TEXT


def options_for(probe: QuestionProbe, question_type: QuestionType) -> tuple[str, ...]:
    """Return the choices offered by the control that decided *question_type*."""
    if question_type is QuestionType.SELECT:
        return probe.select_options
    if question_type is QuestionType.RADIO:
        return probe.radio_options
    if question_type is QuestionType.MULTISELECT:
        return probe.checkbox_options
    return ()


@dataclass
class ScreeningQuestion:
    """One question block found on an application form.

    ``id`` is positional (``q-<index>``) and only stable within a single
    apply attempt.
    """

    id: str
    question: str
    type: QuestionType
    options: tuple[str, ...] = ()
    required: bool = False
    answer: str | None = None

    @property
    def index(self) -> int:
        return question_index(self.id)

    @classmethod
    def from_probe(cls, index: int, probe: QuestionProbe) -> "ScreeningQuestion":
        qtype = classify_question_type(probe)
        return cls(
            id=f"q-{index}",
            question=probe.text,
            type=qtype,
            options=options_for(probe, qtype),
            required=probe.required,
        )


def question_index(question_id: str) -> int:
    """Parse the container index out of a ``q-<index>`` id."""
    prefix, _, number = question_id.partition("-")
    if prefix != "q" or not number.isdigit():
        raise ValueError(f"Malformed screening question id: {question_id!r}")
    return int(number)


# ---- apply attempts ----


class OutcomeKind(str, Enum):
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    FAILED = "failed"
    QUESTIONS_PENDING = "questions_pending"


@dataclass
class ApplyOutcome:
    """Result of one apply attempt.

    Use the constructors below; each produces exactly one terminal shape.
    """

    success: bool
    already_applied: bool = False
    error: str | None = None
    screening_questions: list[ScreeningQuestion] | None = None

    @classmethod
    def applied(cls, questions: list[ScreeningQuestion] | None = None) -> "ApplyOutcome":
        return cls(success=True, screening_questions=questions)

    @classmethod
    def skipped_already_applied(cls) -> "ApplyOutcome":
        return cls(success=False, already_applied=True)

    @classmethod
    def failed(
        cls, error: str, questions: list[ScreeningQuestion] | None = None
    ) -> "ApplyOutcome":
        return cls(success=False, error=error, screening_questions=questions)

    @classmethod
    def pending(cls, questions: list[ScreeningQuestion]) -> "ApplyOutcome":
        return cls(success=False, screening_questions=list(questions))

    @property
    def kind(self) -> OutcomeKind:
        if self.success:
            return OutcomeKind.APPLIED
        if self.already_applied:
            return OutcomeKind.ALREADY_APPLIED
        if self.error is None and self.screening_questions:
            return OutcomeKind.QUESTIONS_PENDING
        return OutcomeKind.FAILED

    @property
    def has_pending_questions(self) -> bool:
        return self.kind is OutcomeKind.QUESTIONS_PENDING


# ---- session / run state ----


class ApplicationStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    APPLIED = "applied"
    FAILED = "failed"
    SKIPPED = "skipped"


def status_for(outcome: ApplyOutcome) -> ApplicationStatus:
    """Map a finished attempt onto the terminal application status."""
    if outcome.success:
        return ApplicationStatus.APPLIED
    if outcome.already_applied:
        return ApplicationStatus.SKIPPED
    return ApplicationStatus.FAILED


@dataclass
class SessionState:
    """Per-scraper counters for the lifetime of one browser session."""

    is_logged_in: bool = False
    is_running: bool = False
    current_job: JobListing | None = None
    applied_count: int = 0
    failed_count: int = 0


@dataclass
class QueueRunResult:
    """Counts for one invocation of the queue-processing loop."""

    applied: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.applied + self.failed + self.skipped

    def record(self, outcome: ApplyOutcome) -> ApplicationStatus:
        status = status_for(outcome)
        if status is ApplicationStatus.APPLIED:
            self.applied += 1
        elif status is ApplicationStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
        return status
