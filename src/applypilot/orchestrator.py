"""Scraper manager that sequences apply attempts across a job queue."""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional

from applypilot.cancellation import CancellationToken
from applypilot.events import EventSink
from applypilot.exceptions import (
    ProfileNotSetError,
    QueueAlreadyRunningError,
    UnknownSourceError,
)
from applypilot.llm.client import LLMClient
from applypilot.models import (
    ApplyOutcome,
    JobListing,
    JobSearchParams,
    JobSearchResult,
    QueueRunResult,
    SessionState,
)
from applypilot.profile import CandidateProfile
from applypilot.scrapers.base import SiteScraper
from applypilot.scrapers.naukri import NaukriScraper
from applypilot.screening.resolver import ScreeningAnswerResolver
from applypilot.settings import AppSettings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[JobListing, int, ApplyOutcome], object]


def default_scrapers(settings: AppSettings, events: EventSink) -> dict[str, SiteScraper]:
    """Every job source ApplyPilot ships a scraper for."""
    naukri = NaukriScraper(settings, events)
    return {naukri.source: naukri}


class ScraperManager:
    """Owns the registered scrapers and the active candidate profile.

    Create one per application context; the LLM client and event sink are
    injected here and shared with every scraper.
    """

    def __init__(
        self,
        settings: AppSettings,
        llm: LLMClient,
        events: EventSink | None = None,
        scrapers: Mapping[str, SiteScraper] | None = None,
    ) -> None:
        self._settings = settings
        self._llm = llm
        self._events = events or EventSink()
        self._scrapers: dict[str, SiteScraper] = dict(
            scrapers if scrapers is not None else default_scrapers(settings, self._events)
        )
        self._profile: CandidateProfile | None = None
        self._resolver: ScreeningAnswerResolver | None = None
        self._runs: dict[str, CancellationToken] = {}

    # ---- profile / registry ----

    def set_profile(self, profile: CandidateProfile) -> None:
        """Share *profile* with the resolver and every scraper."""
        self._profile = profile
        self._resolver = ScreeningAnswerResolver(self._llm, profile)
        for scraper in self._scrapers.values():
            scraper.set_profile(profile)

    @property
    def profile(self) -> CandidateProfile | None:
        return self._profile

    @property
    def sources(self) -> list[str]:
        return list(self._scrapers)

    @property
    def is_running(self) -> bool:
        return bool(self._runs)

    def get_scraper(self, source: str) -> SiteScraper:
        try:
            return self._scrapers[source]
        except KeyError:
            raise UnknownSourceError(f"Unknown source: {source}") from None

    def get_status(self) -> dict[str, object]:
        states: dict[str, SessionState] = {
            source: scraper.get_state() for source, scraper in self._scrapers.items()
        }
        return {"is_running": self.is_running, "scraper_states": states}

    # ---- pass-throughs ----

    async def initialize(self, source: str) -> None:
        await self.get_scraper(source).initialize()

    async def close(self, source: str | None = None) -> None:
        if source is not None:
            await self.get_scraper(source).close()
            return
        for scraper in self._scrapers.values():
            await scraper.close()

    async def check_login(self, source: str) -> bool:
        return await self.get_scraper(source).check_login_status()

    async def initiate_login(self, source: str) -> None:
        await self.get_scraper(source).open_login_page()

    async def wait_for_login(self, source: str, timeout_ms: int | None = None) -> bool:
        if timeout_ms is None:
            timeout_ms = self._settings.login_timeout_ms
        return await self.get_scraper(source).wait_for_manual_login(timeout_ms)

    async def search_jobs(self, source: str, params: JobSearchParams) -> JobSearchResult:
        return await self.get_scraper(source).search_jobs(params)

    # ---- single job ----

    async def apply_to_job(self, source: str, job: JobListing) -> ApplyOutcome:
        """Apply to *job*, answering any screening questions before submitting."""
        if self._profile is None or self._resolver is None:
            raise ProfileNotSetError("Profile not set. Call set_profile() first.")
        scraper = self.get_scraper(source)

        result = await scraper.apply_to_job(job)
        if not result.has_pending_questions:
            return result

        questions = result.screening_questions or []
        self._events.log("info", f"Answering {len(questions)} screening questions...")

        for question in questions:
            try:
                resolved = await self._resolver.answer_question(question, job)
            except Exception as exc:
                logger.warning("Could not answer %s (%r): %s", question.id, question.question, exc)
                self._events.log("error", f"Failed to answer question: {exc}")
                continue

            self._events.log("info", f"Q: {question.question}")
            self._events.log("info", f"A: {resolved.answer}")
            await scraper.fill_screening_answer(question.id, resolved.answer)
            question.answer = resolved.answer
            self._events.emit("on_screening_question", question, resolved.answer)

        if await scraper.submit_application():
            return ApplyOutcome.applied(questions)
        return ApplyOutcome.failed("Application submission failed", questions)

    # ---- queue ----

    async def process_job_queue(
        self,
        source: str,
        jobs: list[JobListing],
        on_progress: Optional[ProgressCallback] = None,
        token: CancellationToken | None = None,
    ) -> QueueRunResult:
        """Apply to *jobs* in order, pacing attempts and honouring stop requests.

        At most ``max_applications_per_session`` jobs are attempted. A stop
        request takes effect between jobs; the attempt in flight finishes.
        """
        if self._profile is None:
            raise ProfileNotSetError("Profile not set. Call set_profile() first.")
        scraper = self.get_scraper(source)
        if source in self._runs:
            raise QueueAlreadyRunningError(f"A queue run for {source} is already in progress.")

        token = token or CancellationToken()
        self._runs[source] = token
        scraper.set_running(True)

        result = QueueRunResult()
        bound = min(len(jobs), self._settings.max_applications_per_session)
        delay_s = self._settings.delay_between_applications_ms / 1000
        logger.info("Processing %d of %d queued job(s) on %s.", bound, len(jobs), source)

        try:
            for index, job in enumerate(jobs[:bound]):
                if token.cancelled:
                    logger.info("Stop requested — leaving queue after %d job(s).", index)
                    break
                self._events.emit("on_queue_progress", index + 1, bound)

                try:
                    outcome = await self.apply_to_job(source, job)
                except Exception as exc:
                    logger.exception("Unexpected error applying to %s.", job.listing_id)
                    result.failed += 1
                    self._events.emit("on_error", exc, job)
                else:
                    result.record(outcome)
                    if on_progress is not None:
                        try:
                            on_progress(job, index, outcome)
                        except Exception:
                            logger.exception("Progress callback raised — ignoring.")

                if index < bound - 1 and not token.cancelled:
                    await token.sleep(delay_s)
        finally:
            self._runs.pop(source, None)
            scraper.set_running(False)
            self._events.emit("on_session_complete", result.applied, result.failed)

        logger.info(
            "Queue finished: %d applied, %d failed, %d skipped.",
            result.applied,
            result.failed,
            result.skipped,
        )
        return result

    def stop(self) -> None:
        """Ask every active queue run to stop at the next job boundary."""
        for token in self._runs.values():
            token.cancel()
        self._events.log("info", "Stopping job queue...")
