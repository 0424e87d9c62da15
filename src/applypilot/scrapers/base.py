"""Abstract contract every job-source scraper implements."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path

from applypilot.browser.base import BrowserAdapter
from applypilot.browser.playwright_adapter import PlaywrightAdapter
from applypilot.events import EventSink
from applypilot.exceptions import BrowserNotInitializedError, NavigationError
from applypilot.models import (
    ApplyOutcome,
    JobListing,
    JobSearchParams,
    JobSearchResult,
    ScreeningQuestion,
    SessionState,
)
from applypilot.profile import CandidateProfile
from applypilot.settings import AppSettings

logger = logging.getLogger(__name__)

_LOG_METHODS = {"info": logger.info, "warn": logger.warning, "error": logger.error}


class SiteScraper(ABC):
    """One job portal driven through one browser session.

    Public methods called from the queue loop report DOM failures through
    their return value; only the explicit setup calls raise.
    """

    source: str
    base_url: str
    login_url: str

    def __init__(
        self,
        settings: AppSettings,
        events: EventSink | None = None,
        adapter: BrowserAdapter | None = None,
    ) -> None:
        self._settings = settings
        self._events = events or EventSink()
        self._adapter: BrowserAdapter = adapter or PlaywrightAdapter()
        self._profile: CandidateProfile | None = None
        self._state = SessionState()

    # ---- profile / state ----

    def set_profile(self, profile: CandidateProfile) -> None:
        self._profile = profile

    @property
    def profile(self) -> CandidateProfile | None:
        return self._profile

    def get_state(self) -> SessionState:
        """Return a snapshot of the session counters."""
        return dataclasses.replace(self._state)

    def set_running(self, running: bool) -> None:
        self._state.is_running = running

    def log(self, level: str, message: str) -> None:
        text = f"[{self.source}] {message}"
        _LOG_METHODS.get(level, logger.info)("%s", text)
        self._events.log(level, text)

    # ---- lifecycle ----

    def session_file(self) -> Path:
        """Storage-state JSON that keeps this source logged in across runs."""
        return Path(self._settings.state_dir) / f"session_{self.source}.json"

    async def initialize(self) -> None:
        """Launch the browser, restore the saved session and open the portal."""
        self.log("info", "Initializing browser...")
        await self._adapter.launch(
            headless=self._settings.headless,
            slow_mo=self._settings.slow_mo,
            storage_state_path=str(self.session_file()),
            default_timeout_ms=self._settings.navigation_timeout_ms,
        )
        try:
            await self._adapter.navigate(self.base_url)
        except Exception as exc:
            raise NavigationError(f"Could not open {self.base_url}: {exc}") from exc
        self.log("info", "Browser initialized")

    async def close(self) -> None:
        if not self._adapter.is_launched:
            return
        self.log("info", "Closing browser...")
        await self.save_session()
        await self._adapter.close()
        self._state.is_running = False
        self.log("info", "Browser closed")

    async def save_session(self) -> None:
        try:
            await self._adapter.save_storage_state(str(self.session_file()))
        except Exception as exc:
            self.log("warn", f"Could not save session: {exc}")

    # ---- login ----

    async def open_login_page(self) -> None:
        """Show the login form; a human completes it in the visible browser."""
        self._require_browser()
        self.log("info", "Opening login page...")
        await self._adapter.navigate(self.login_url, wait_until="networkidle")
        self.log("info", "Login page opened. Please log in manually.")

    async def wait_for_manual_login(self, timeout_ms: int = 300_000) -> bool:
        """Poll :meth:`check_login_status` until logged in or *timeout_ms* elapses.

        There is no internal cancellation; wrap the call in
        ``asyncio.wait_for`` to give up earlier.
        """
        self._require_browser()
        self.log("info", f"Waiting for manual login (timeout: {timeout_ms / 1000:.0f}s)...")
        interval = self._settings.login_poll_interval_ms / 1000
        deadline = time.monotonic() + timeout_ms / 1000
        while time.monotonic() < deadline:
            if await self.check_login_status():
                self.log("info", "Login successful!")
                await self.save_session()
                return True
            await asyncio.sleep(interval)

        self.log("warn", "Login timeout reached")
        return False

    # ---- source-specific operations ----

    @abstractmethod
    async def check_login_status(self) -> bool:
        ...

    @abstractmethod
    async def search_jobs(self, params: JobSearchParams) -> JobSearchResult:
        ...

    @abstractmethod
    async def get_job_details(self, job_id: str) -> JobListing | None:
        ...

    @abstractmethod
    async def apply_to_job(self, job: JobListing) -> ApplyOutcome:
        ...

    @abstractmethod
    async def get_screening_questions(self) -> list[ScreeningQuestion]:
        ...

    @abstractmethod
    async def fill_screening_answer(self, question_id: str, answer: str) -> None:
        ...

    @abstractmethod
    async def submit_application(self) -> bool:
        ...

    # ---- helpers ----

    def _require_browser(self) -> None:
        if not self._adapter.is_launched:
            raise BrowserNotInitializedError(
                f"{self.source} browser not initialized — call initialize() first."
            )

    async def _pause(self, seconds: float) -> None:
        """Let the portal settle after an interaction."""
        await asyncio.sleep(seconds)

    async def _safe_click(self, selector: str, timeout: float = 2_000) -> bool:
        """Click the first element matching *selector*; ``False`` if none or not clickable."""
        try:
            element = await self._adapter.query(selector, timeout=timeout)
            if element is None:
                return False
            await element.click()
            return True
        except Exception as exc:
            logger.debug("Click on %s failed: %s", selector, exc)
            return False

    async def _scroll_to_bottom(self) -> None:
        await self._adapter.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
        await self._pause(0.5)
