"""Naukri.com scraper: listing extraction, apply flow and screening forms."""

from __future__ import annotations

import logging
import re
import time
from typing import Any

from applypilot.models import (
    ApplyOutcome,
    JobListing,
    JobSearchParams,
    JobSearchResult,
    NumericRange,
    QuestionProbe,
    QuestionType,
    ScreeningQuestion,
    classify_question_type,
    dedupe_listings,
    question_index,
)
from applypilot.scrapers.base import SiteScraper
from applypilot.scrapers.naukri_query import (
    BASE_URL,
    build_search_url,
    has_more_results,
    job_detail_url,
)

logger = logging.getLogger(__name__)

# Placeholders for card fields the DOM did not provide.
UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_COMPANY = "Unknown Company"
UNKNOWN_LOCATION = "Unknown Location"

_LISTINGS_SELECTOR = ".srp-jobtuple-wrapper, .jobTuple"
_LISTINGS_TIMEOUT_MS = 10_000

_APPLY_BUTTON_SELECTOR = (
    ".styles_apply-button__uJI3n, #apply-button, [class*='apply-button'], "
    "button:has-text('Apply')"
)
_APPLY_BUTTON_TIMEOUT_MS = 5_000

_SUBMIT_SELECTORS = [
    "button[type='submit']",
    ".apply-submit",
    "[class*='submit']",
    "button:has-text('Submit')",
    "button:has-text('Apply')",
]

# Anything that signals a questionnaire opened after clicking Apply.
_SCREENING_MARKER_SELECTOR = (
    ".chatbot-container, [class*='screening'], [class*='question'], .apply-modal form"
)
# One element per question; positions double as question ids.
_QUESTION_CONTAINER_SELECTOR = (
    ".chatbot-question, [class*='question-container'], .form-group, .apply-modal .form-row"
)

_AFFIRMATIVE = frozenset({"yes", "y", "true", "1", "agree", "i agree"})

_EXPERIENCE_RE = re.compile(r"(\d+)\s*-\s*(\d+)")
_SALARY_RE = re.compile(r"(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)\s*Lacs?", re.IGNORECASE)

# ---- page scripts ----

_JS_LOGIN_STATE = """
    () => {
        const userMenu = document.querySelector(
            '.nI-gNb-drawer__icon, .user-img, [data-ga-track="spa-event|header|Profile"]'
        );
        const loginBtn = document.querySelector(
            '.nI-gNb-header__hamburger-icon-wrapper a[title="Login"]'
        );
        return userMenu !== null && loginBtn === null;
    }
"""

_JS_EXTRACT_CARDS = """
    () => {
        const text = (root, sel) => {
            const el = root.querySelector(sel);
            const value = el && el.textContent ? el.textContent.trim() : '';
            return value || null;
        };
        const cards = document.querySelectorAll('.srp-jobtuple-wrapper, .jobTuple, [data-job-id]');
        return Array.from(cards).map((card) => {
            try {
                const link = card.querySelector('a.title, .row1 a');
                const anyLink = card.querySelector('a');
                const hrefMatch = anyLink && anyLink.href ? anyLink.href.match(/jobid=(\\d+)/) : null;
                return {
                    jobId: card.getAttribute('data-job-id') || (hrefMatch ? hrefMatch[1] : null),
                    title: text(card, '.title, .row1 a, [class*="title"]'),
                    company: text(card, '.comp-name, .subTitle a, [class*="companyName"]'),
                    location: text(card, '.loc, .locWdth, [class*="location"]'),
                    experience: text(card, '.expwdth, [class*="experience"]'),
                    salary: text(card, '.salary, [class*="salary"]'),
                    url: link ? link.getAttribute('href') : null,
                    description: text(card, '.job-description, .row4, [class*="tags"]'),
                    posted: text(card, '.job-post-day, [class*="post-day"]'),
                };
            } catch (e) {
                return null;
            }
        });
    }
"""

_JS_TOTAL_COUNT = """
    () => {
        const countEl = document.querySelector('.styles_count-string__DlPaZ, .count');
        if (!countEl || !countEl.textContent) return 0;
        const match = countEl.textContent.replace(/,/g, '').match(/(\\d+)/);
        return match ? parseInt(match[1], 10) : 0;
    }
"""

_JS_JOB_DETAILS = """
    () => {
        const text = (sel) => {
            const el = document.querySelector(sel);
            const value = el && el.textContent ? el.textContent.trim() : '';
            return value || null;
        };
        const chips = document.querySelectorAll('.styles_chip__7YCfG, .chip');
        return {
            title: text('h1, .styles_jd-header-title__rZwM1'),
            company: text('.styles_jd-header-comp-name__MvqAI, .jd-header-comp-name'),
            location: text('.styles_jhc__loc__M6Kux, .loc'),
            description: text('.styles_JDC__dang-inner-html__h0K4t, .jd-desc'),
            experience: text('.styles_jhc__exp__k_giM, .exp'),
            salary: text('.styles_jhc__salary__jdfEC, .salary'),
            skills: Array.from(chips).map((el) => (el.textContent || '').trim()).filter(Boolean),
            url: window.location.href,
        };
    }
"""

_JS_ALREADY_APPLIED = """
    () => document.querySelector('[class*="applied"], .applied') !== null
"""

_JS_CLICK_APPLY_FALLBACK = """
    () => {
        const candidates = Array.from(document.querySelectorAll('button, a'));
        const applyBtn = candidates.find(
            (el) => (el.textContent || '').toLowerCase().includes('apply')
        );
        if (!applyBtn) return false;
        applyBtn.click();
        return true;
    }
"""

_JS_HAS_SCREENING = """
    (selector) => document.querySelectorAll(selector).length > 0
"""

# Shared by discovery and fill so both read a container the same way.
_JS_PROBE_FN = """
    const probe = (container) => {
        const labelFor = (input) => {
            const lbl = input.id ? container.querySelector(`label[for="${input.id}"]`) : null;
            return (lbl && lbl.textContent ? lbl.textContent.trim() : '') || input.value || '';
        };
        const labelEl = container.querySelector('label, .question-text, [class*="label"]');
        const select = container.querySelector('select');
        const radios = Array.from(container.querySelectorAll('input[type="radio"]'));
        const checkboxes = Array.from(container.querySelectorAll('input[type="checkbox"]'));
        return {
            text: labelEl && labelEl.textContent ? labelEl.textContent.trim() : '',
            hasSelect: select !== null,
            radioCount: radios.length,
            checkboxCount: checkboxes.length,
            hasNumber: container.querySelector('input[type="number"]') !== null,
            required: container.querySelector('[required], .required, *[class*="required"]') !== null,
            selectOptions: select
                ? Array.from(select.options).filter((o) => o.value).map((o) => (o.textContent || '').trim())
                : [],
            radioOptions: radios.map(labelFor),
            checkboxOptions: checkboxes.map(labelFor),
        };
    };
"""

_JS_PROBE_QUESTIONS = (
    "(selector) => {"
    + _JS_PROBE_FN
    + "return Array.from(document.querySelectorAll(selector)).map(probe); }"
)

_JS_PROBE_QUESTION = (
    "(args) => {"
    + _JS_PROBE_FN
    + "const container = document.querySelectorAll(args.selector)[args.idx];"
    + "return container ? probe(container) : null; }"
)

_JS_FILL_INPUT = """
    (args) => {
        const container = document.querySelectorAll(args.selector)[args.idx];
        if (!container) return false;
        const input = container.querySelector(args.inputSelector);
        if (!input) return false;
        const proto = input.tagName === 'TEXTAREA'
            ? window.HTMLTextAreaElement.prototype
            : window.HTMLInputElement.prototype;
        const setter = Object.getOwnPropertyDescriptor(proto, 'value');
        if (setter && setter.set) {
            setter.set.call(input, args.answer);
        } else {
            input.value = args.answer;
        }
        input.dispatchEvent(new Event('input', { bubbles: true }));
        input.dispatchEvent(new Event('change', { bubbles: true }));
        return true;
    }
"""

_JS_FILL_SELECT = """
    (args) => {
        const container = document.querySelectorAll(args.selector)[args.idx];
        const select = container ? container.querySelector('select') : null;
        if (!select) return false;
        const wanted = args.answer.toLowerCase();
        const match = Array.from(select.options).find(
            (opt) => opt.text.toLowerCase().includes(wanted)
        );
        if (!match) return false;
        select.value = match.value;
        select.dispatchEvent(new Event('change', { bubbles: true }));
        return true;
    }
"""

_JS_FILL_CHOICES = """
    (args) => {
        const container = document.querySelectorAll(args.selector)[args.idx];
        if (!container) return false;
        const inputs = Array.from(container.querySelectorAll(`input[type="${args.inputType}"]`));
        let clicked = false;
        for (const input of inputs) {
            const lbl = input.id ? container.querySelector(`label[for="${input.id}"]`) : null;
            const text = ((lbl && lbl.textContent) || input.value || '').toLowerCase();
            if (!text) continue;
            if (args.answers.some((ans) => text.includes(ans))) {
                if (!input.checked) input.click();
                clicked = true;
                if (args.inputType === 'radio') break;
            }
        }
        return clicked;
    }
"""

_JS_SET_CHECKBOX = """
    (args) => {
        const container = document.querySelectorAll(args.selector)[args.idx];
        const box = container ? container.querySelector('input[type="checkbox"]') : null;
        if (!box) return false;
        if (box.checked !== args.checked) box.click();
        return true;
    }
"""

_JS_APPLICATION_SUCCESS = """
    () => {
        const indicators = ['.success', '.applied', '[class*="success"]', '[class*="applied"]'];
        for (const sel of indicators) {
            if (document.querySelector(sel)) return true;
        }
        const body = (document.body.textContent || '').toLowerCase();
        return body.includes('application submitted') ||
               body.includes('successfully applied') ||
               body.includes('application successful');
    }
"""


def _parse_range(text: str | None, pattern: re.Pattern[str], currency: str = "") -> NumericRange | None:
    if not text:
        return None
    match = pattern.search(text)
    if not match:
        return None
    return NumericRange(float(match.group(1)), float(match.group(2)), currency)


def _absolute_url(href: str | None) -> str:
    href = (href or "").strip()
    if not href:
        return ""
    return href if href.startswith("http") else f"{BASE_URL}{href}"


def listing_from_card(raw: dict[str, Any], index: int) -> JobListing:
    """Build a listing from one extracted card, substituting placeholders for missing fields."""
    external_id = (raw.get("jobId") or "").strip() or f"{int(time.time() * 1000)}-{index}"
    return JobListing(
        source="naukri",
        external_id=external_id,
        url=_absolute_url(raw.get("url")),
        title=raw.get("title") or UNKNOWN_TITLE,
        company=raw.get("company") or UNKNOWN_COMPANY,
        location=raw.get("location") or UNKNOWN_LOCATION,
        description=raw.get("description") or "",
        experience_range=_parse_range(raw.get("experience"), _EXPERIENCE_RE),
        salary_range=_parse_range(raw.get("salary"), _SALARY_RE, "INR"),
        posted_date=raw.get("posted") or "",
    )


def _split_answer(answer: str) -> list[str]:
    return [part.strip().lower() for part in answer.split(",") if part.strip()]


class NaukriScraper(SiteScraper):
    """Reference scraper for https://www.naukri.com."""

    source = "naukri"
    base_url = BASE_URL
    login_url = f"{BASE_URL}/nlogin/login"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._suspended_job: JobListing | None = None

    # ---- login ----

    async def check_login_status(self) -> bool:
        self._require_browser()
        try:
            await self._adapter.navigate(self.base_url)
            await self._pause(2)
            logged_in = bool(await self._adapter.evaluate(_JS_LOGIN_STATE))
        except Exception as exc:
            self.log("error", f"Failed to check login status: {exc}")
            return False

        self._state.is_logged_in = logged_in
        self.log("info", f"Login status: {'Logged in' if logged_in else 'Not logged in'}")
        return logged_in

    # ---- discovery ----

    async def search_jobs(self, params: JobSearchParams) -> JobSearchResult:
        self._require_browser()
        empty = JobSearchResult(jobs=[], total_count=0, page=params.page, has_more=False)
        self.log(
            "info",
            f"Searching jobs: {', '.join(params.keywords)} in {', '.join(params.locations) or 'any location'}",
        )

        try:
            await self._adapter.navigate(build_search_url(params, self.base_url))
            await self._pause(2)
            marker = await self._adapter.wait_for_selector(
                _LISTINGS_SELECTOR, timeout=_LISTINGS_TIMEOUT_MS
            )
            if marker is None:
                self.log("warn", "No job listings found or page structure changed")
                return empty

            await self._scroll_to_bottom()
            raw_cards = await self._adapter.evaluate(_JS_EXTRACT_CARDS) or []
            total_count = int(await self._adapter.evaluate(_JS_TOTAL_COUNT) or 0)
        except Exception as exc:
            self.log("error", f"Search failed: {exc}")
            return empty

        listings: list[JobListing] = []
        for index, raw in enumerate(raw_cards):
            if not raw:
                logger.debug("Skipping unreadable card at position %d.", index)
                continue
            listings.append(listing_from_card(raw, index))
        jobs = dedupe_listings(listings)

        for job in jobs:
            self._events.emit("on_job_found", job)

        self.log("info", f"Found {len(jobs)} jobs (total: {total_count})")
        return JobSearchResult(
            jobs=jobs,
            total_count=total_count,
            page=params.page,
            has_more=has_more_results(len(jobs), params.page, total_count),
        )

    async def get_job_details(self, job_id: str) -> JobListing | None:
        self._require_browser()
        try:
            await self._adapter.navigate(job_detail_url(job_id, self.base_url))
            await self._pause(1.5)
            raw = await self._adapter.evaluate(_JS_JOB_DETAILS)
        except Exception as exc:
            self.log("error", f"Failed to get job details: {exc}")
            return None
        if not raw:
            return None

        return JobListing(
            source=self.source,
            external_id=job_id,
            url=raw.get("url") or job_detail_url(job_id, self.base_url),
            title=raw.get("title") or "",
            company=raw.get("company") or "",
            location=raw.get("location") or "",
            description=raw.get("description") or "",
            experience_range=_parse_range(raw.get("experience"), _EXPERIENCE_RE),
            salary_range=_parse_range(raw.get("salary"), _SALARY_RE, "INR"),
            skills=tuple(raw.get("skills") or ()),
        )

    # ---- apply flow ----

    async def apply_to_job(self, job: JobListing) -> ApplyOutcome:
        self._require_browser()
        self._state.current_job = job
        self._events.emit("on_application_start", job)

        try:
            if job.external_id not in await self._adapter.page_url():
                await self._adapter.navigate(job.url)
                await self._pause(1.5)

            if await self._adapter.evaluate(_JS_ALREADY_APPLIED):
                self.log("info", f"Already applied to: {job.title} at {job.company}")
                return ApplyOutcome.skipped_already_applied()

            if not await self._click_apply():
                return self._fail(job, "Apply button not found")
            self.log("info", f"Clicked apply for: {job.title}")
            await self._pause(2)

            if await self._adapter.evaluate(_JS_HAS_SCREENING, _SCREENING_MARKER_SELECTOR):
                questions = await self.get_screening_questions()
                if not questions:
                    return self._fail(job, "Screening questions require answers")
                self.log("info", f"Found {len(questions)} screening questions")
                self._suspended_job = job
                return ApplyOutcome.pending(questions)

            if await self._application_succeeded():
                return self._succeed(job)
            return self._fail(job, "Application submission unclear")
        except Exception as exc:
            self.log("error", f"Apply failed for {job.title}: {exc}")
            self._events.emit("on_error", exc, job)
            return self._fail(job, str(exc))
        finally:
            self._state.current_job = None

    async def _click_apply(self) -> bool:
        button = await self._adapter.wait_for_selector(
            _APPLY_BUTTON_SELECTOR, timeout=_APPLY_BUTTON_TIMEOUT_MS
        )
        if button is not None:
            try:
                await self._adapter.click(_APPLY_BUTTON_SELECTOR)
                return True
            except Exception as exc:
                logger.debug("Primary apply click failed: %s", exc)
        return bool(await self._adapter.evaluate(_JS_CLICK_APPLY_FALLBACK))

    async def _application_succeeded(self) -> bool:
        return bool(await self._adapter.evaluate(_JS_APPLICATION_SUCCESS))

    def _succeed(self, job: JobListing | None) -> ApplyOutcome:
        self._state.applied_count += 1
        if job is not None:
            self._events.emit("on_application_complete", job, True)
            self.log("info", f"Successfully applied to: {job.title} at {job.company}")
        return ApplyOutcome.applied()

    def _fail(self, job: JobListing | None, error: str) -> ApplyOutcome:
        self._state.failed_count += 1
        if job is not None:
            self._events.emit("on_application_complete", job, False)
        return ApplyOutcome.failed(error)

    # ---- screening questions ----

    async def get_screening_questions(self) -> list[ScreeningQuestion]:
        """Read every question container on the open form, in DOM order.

        Containers without question text are skipped but still consume
        their position, so ``q-<index>`` always points at the DOM index.
        """
        self._require_browser()
        try:
            probes = await self._adapter.evaluate(
                _JS_PROBE_QUESTIONS, _QUESTION_CONTAINER_SELECTOR
            ) or []
        except Exception as exc:
            self.log("error", f"Could not read screening questions: {exc}")
            return []

        questions: list[ScreeningQuestion] = []
        for index, raw in enumerate(probes):
            probe = QuestionProbe.from_dom(raw or {})
            if not probe.text:
                continue
            questions.append(ScreeningQuestion.from_probe(index, probe))
        return questions

    async def fill_screening_answer(self, question_id: str, answer: str) -> None:
        """Type or pick *answer* in the container at the question's position.

        The container is re-located by index; if the form re-rendered since
        discovery the index may point elsewhere. Nothing is raised when the
        container or a matching control is missing.
        """
        self._require_browser()
        if not answer.strip():
            self.log("warn", f"Empty answer for {question_id}; leaving it untouched")
            return
        try:
            idx = question_index(question_id)
            raw = await self._adapter.evaluate(
                _JS_PROBE_QUESTION, {"selector": _QUESTION_CONTAINER_SELECTOR, "idx": idx}
            )
            if not raw:
                self.log("warn", f"Question container {question_id} not found")
                return
            qtype = classify_question_type(QuestionProbe.from_dom(raw))
            filled = await self._inject_answer(idx, qtype, answer)
        except Exception as exc:
            self.log("warn", f"Could not fill {question_id}: {exc}")
            return

        if not filled:
            self.log("warn", f"No control in {question_id} accepted answer {answer!r}")
        await self._pause(0.5)

    async def _inject_answer(self, idx: int, qtype: QuestionType, answer: str) -> bool:
        base = {"selector": _QUESTION_CONTAINER_SELECTOR, "idx": idx}
        if qtype is QuestionType.SELECT:
            return bool(await self._adapter.evaluate(_JS_FILL_SELECT, {**base, "answer": answer}))
        if qtype is QuestionType.RADIO:
            return bool(await self._adapter.evaluate(
                _JS_FILL_CHOICES,
                {**base, "inputType": "radio", "answers": [answer.strip().lower()]},
            ))
        if qtype is QuestionType.MULTISELECT:
            return bool(await self._adapter.evaluate(
                _JS_FILL_CHOICES,
                {**base, "inputType": "checkbox", "answers": _split_answer(answer)},
            ))
        if qtype is QuestionType.CHECKBOX:
            checked = answer.strip().lower() in _AFFIRMATIVE
            return bool(await self._adapter.evaluate(_JS_SET_CHECKBOX, {**base, "checked": checked}))
        if qtype is QuestionType.NUMBER:
            input_selector = "input[type='number']"
        else:
            input_selector = "input[type='text'], textarea, input:not([type])"
        return bool(await self._adapter.evaluate(
            _JS_FILL_INPUT, {**base, "inputSelector": input_selector, "answer": answer}
        ))

    async def submit_application(self) -> bool:
        self._require_browser()
        job, self._suspended_job = self._suspended_job, None
        try:
            for selector in _SUBMIT_SELECTORS:
                if await self._safe_click(selector):
                    self.log("info", "Clicked submit button")
                    await self._pause(2)
                    if await self._application_succeeded():
                        self._succeed(job)
                        return True
                    self._fail(job, "Application submission unclear")
                    return False
            self.log("warn", "No submit button found")
        except Exception as exc:
            self.log("error", f"Submit failed: {exc}")
        self._fail(job, "Submit failed")
        return False
