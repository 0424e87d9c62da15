"""Shared test fixtures and fakes."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from applypilot.models import (
    ApplyOutcome,
    JobListing,
    JobSearchParams,
    JobSearchResult,
    QuestionType,
    ScreeningQuestion,
)
from applypilot.profile import CandidateProfile, Education, Skill
from applypilot.scrapers.base import SiteScraper
from applypilot.settings import AppSettings


@pytest.fixture()
def tmp_settings_yaml(tmp_path):
    """Write a minimal settings.yaml and return its path."""
    content = """\
headless: true
keywords:
  - "python developer"
locations:
  - "bangalore"
experience_min: 3
posted_within: "7D"
delay_between_applications_ms: 0
max_applications_per_session: 5
llm_base_url: "http://localhost:1234/"
llm_model: "qwen2.5-7b-instruct"
state_dir: "{state}"
""".format(state=str(tmp_path / ".state"))
    p = tmp_path / "settings.yaml"
    p.write_text(content)
    return p


@pytest.fixture()
def settings(tmp_path) -> AppSettings:
    return AppSettings(
        headless=True,
        state_dir=str(tmp_path / ".state"),
        delay_between_applications_ms=0,
        login_poll_interval_ms=0,
        llm_model="test-model",
    )


@pytest.fixture()
def profile() -> CandidateProfile:
    return CandidateProfile(
        name="Asha Rao",
        email="asha@example.com",
        phone="+91 98765 43210",
        current_title="Backend Engineer",
        total_experience=5,
        skills=(
            Skill(name="Python", years_of_experience=5, proficiency="expert"),
            Skill(name="Django", years_of_experience=3, proficiency="advanced"),
        ),
        education=(Education(degree="B.Tech", institution="VIT", year=2019),),
        preferred_titles=("Python Developer",),
        preferred_locations=("Bangalore",),
        expected_ctc=25,
        notice_period="30_days",
    )


def make_job(external_id: str = "101", **overrides: Any) -> JobListing:
    fields = {
        "source": "naukri",
        "external_id": external_id,
        "url": f"https://www.naukri.com/job-listings-{external_id}",
        "title": f"Python Developer {external_id}",
        "company": "Acme",
        "location": "Bangalore",
        "description": "Build APIs in Django.",
    }
    fields.update(overrides)
    return JobListing(**fields)


def make_questions(count: int) -> list[ScreeningQuestion]:
    return [
        ScreeningQuestion(id=f"q-{i}", question=f"Question {i}?", type=QuestionType.TEXT)
        for i in range(count)
    ]


class FakeAdapter:
    """In-memory BrowserAdapter; page scripts are answered from ``scripts``.

    ``scripts`` maps a JS expression to either a value or a callable taking
    the evaluate argument.
    """

    def __init__(self, scripts: dict[str, Any] | None = None) -> None:
        self.scripts: dict[str, Any] = scripts or {}
        self.selectors: dict[str, Any] = {}
        self.url = "about:blank"
        self.launched = True
        self.navigations: list[str] = []
        self.clicks: list[str] = []
        self.evaluations: list[tuple[str, Any]] = []
        self.saved_states: list[str] = []
        self.navigate_error: Exception | None = None

    @property
    def is_launched(self) -> bool:
        return self.launched

    async def launch(self, **kwargs: Any) -> None:
        self.launched = True

    async def close(self) -> None:
        self.launched = False

    async def navigate(self, url: str, wait_until: str = "domcontentloaded") -> None:
        if self.navigate_error is not None:
            raise self.navigate_error
        self.navigations.append(url)
        self.url = url

    async def query(self, selector: str, *, timeout: float = 5_000) -> Any | None:
        return self.selectors.get(selector)

    async def click(self, selector: str, *, timeout: float = 5_000) -> None:
        self.clicks.append(selector)

    async def wait_for_selector(
        self, selector: str, *, state: str = "visible", timeout: float = 10_000
    ) -> Any | None:
        return self.selectors.get(selector)

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.evaluations.append((expression, arg))
        handler = self.scripts.get(expression)
        if callable(handler):
            return handler(arg)
        return handler

    async def page_url(self) -> str:
        return self.url

    async def save_storage_state(self, path: str) -> None:
        self.saved_states.append(path)

    def evaluated(self, expression: str) -> list[Any]:
        return [arg for expr, arg in self.evaluations if expr == expression]


class ScriptedScraper(SiteScraper):
    """Scraper whose apply results are scripted per external id."""

    source = "naukri"
    base_url = "https://portal.test"
    login_url = "https://portal.test/login"

    def __init__(self, settings: AppSettings, outcomes: dict[str, Any] | None = None, **kwargs: Any):
        super().__init__(settings, adapter=FakeAdapter(), **kwargs)
        self.outcomes: dict[str, Any] = outcomes or {}
        self.default_outcome = ApplyOutcome.applied()
        self.submit_result = True
        self.applied_to: list[str] = []
        self.filled: list[tuple[str, str]] = []
        self.submits = 0
        self.on_apply = None
        self._pause = AsyncMock()

    async def check_login_status(self) -> bool:
        return True

    async def search_jobs(self, params: JobSearchParams) -> JobSearchResult:
        return JobSearchResult(jobs=[], total_count=0, page=params.page, has_more=False)

    async def get_job_details(self, job_id: str) -> JobListing | None:
        return None

    async def apply_to_job(self, job: JobListing) -> ApplyOutcome:
        self.applied_to.append(job.external_id)
        if self.on_apply is not None:
            self.on_apply(job)
        outcome = self.outcomes.get(job.external_id, self.default_outcome)
        if isinstance(outcome, Exception):
            raise outcome
        if callable(outcome):
            return outcome()
        return outcome

    async def get_screening_questions(self) -> list[ScreeningQuestion]:
        return []

    async def fill_screening_answer(self, question_id: str, answer: str) -> None:
        self.filled.append((question_id, answer))

    async def submit_application(self) -> bool:
        self.submits += 1
        return self.submit_result


class FakeLLM:
    """Stands in for LLMClient; replies (or raises) from a script, in order."""

    def __init__(self, replies: list[Any] | None = None) -> None:
        self.replies = list(replies or [])
        self.calls: list[dict[str, Any]] = []

    async def chat_completion(self, messages, **options):
        self.calls.append({"messages": messages, **options})
        reply = self.replies.pop(0) if self.replies else "Yes"
        if isinstance(reply, Exception):
            raise reply
        return {"choices": [{"message": {"role": "assistant", "content": reply}}]}
