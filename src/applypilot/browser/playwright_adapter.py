"""Playwright-backed implementation of BrowserAdapter."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from applypilot.browser.stealth import apply_stealth
from applypilot.exceptions import BrowserLaunchError, BrowserNotInitializedError

logger = logging.getLogger(__name__)

_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


def _is_closed_target(exc: Exception) -> bool:
    return "Target" in str(exc) and "closed" in str(exc)


class PlaywrightAdapter:
    """Async browser driver built on Playwright Chromium."""

    def __init__(self) -> None:
        self._pw: Any = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._default_timeout_ms = 30_000

    @property
    def is_launched(self) -> bool:
        return self._page is not None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise BrowserNotInitializedError("Browser not initialized — call launch() first.")
        return self._page

    # --- lifecycle ---

    async def launch(
        self,
        headless: bool = False,
        slow_mo: int = 100,
        storage_state_path: str | None = None,
        default_timeout_ms: int = 30_000,
    ) -> None:
        try:
            self._pw = await async_playwright().start()
            self._browser = await self._pw.chromium.launch(
                headless=headless,
                slow_mo=slow_mo,
                args=["--disable-blink-features=AutomationControlled"],
            )
            ctx_kwargs: dict[str, Any] = {
                "viewport": {"width": 1280, "height": 800},
                "user_agent": _USER_AGENT,
            }
            if storage_state_path and Path(storage_state_path).exists():
                ctx_kwargs["storage_state"] = storage_state_path
                logger.info("Restoring browser session from %s.", storage_state_path)

            self._context = await self._browser.new_context(**ctx_kwargs)
            await apply_stealth(self._context)
            self._default_timeout_ms = default_timeout_ms
            self._page = await self._context.new_page()
            self._page.set_default_timeout(default_timeout_ms)
            logger.info("Browser launched (headless=%s).", headless)
        except Exception as exc:
            try:
                await self.close()
            except Exception as cleanup_exc:
                logger.debug("Cleanup after failed launch raised: %s", cleanup_exc)
            raise BrowserLaunchError(f"Failed to start Playwright Chromium: {exc}") from exc

    async def close(self) -> None:
        if self._context:
            await self._context.close()
        if self._browser:
            await self._browser.close()
        if self._pw:
            await self._pw.stop()
        self._page = None
        self._context = None
        self._browser = None
        self._pw = None
        logger.info("Browser closed.")

    async def ensure_valid_page(self) -> None:
        """Point ``_page`` at a live page after the portal closed the current one."""
        if self._context is None:
            return
        if self._page and not self._page.is_closed():
            return
        pages = self._context.pages
        if pages:
            self._page = pages[0]
            logger.debug("Recovered page — switched to first open page.")
        else:
            self._page = await self._context.new_page()
            logger.debug("All pages were closed — opened a new page.")
        self._page.set_default_timeout(self._default_timeout_ms)

    # --- navigation ---

    async def navigate(self, url: str, wait_until: str = "domcontentloaded") -> None:
        try:
            await self.page.goto(url, wait_until=wait_until)
        except Exception as exc:
            if not _is_closed_target(exc):
                raise
            await self.ensure_valid_page()
            await self.page.goto(url, wait_until=wait_until)

    async def page_url(self) -> str:
        return self.page.url

    # --- querying ---

    async def query(self, selector: str, *, timeout: float = 5_000) -> Any | None:
        try:
            return await self.page.wait_for_selector(selector, timeout=timeout)
        except Exception as exc:
            if _is_closed_target(exc):
                await self.ensure_valid_page()
            return None

    async def wait_for_selector(
        self, selector: str, *, state: str = "visible", timeout: float = 10_000
    ) -> Any | None:
        try:
            return await self.page.wait_for_selector(selector, state=state, timeout=timeout)
        except Exception:
            return None

    # --- interaction ---

    async def click(self, selector: str, *, timeout: float = 5_000) -> None:
        await self.page.click(selector, timeout=timeout)

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        try:
            if arg is not None:
                return await self.page.evaluate(expression, arg)
            return await self.page.evaluate(expression)
        except Exception as exc:
            if not _is_closed_target(exc):
                raise
            await self.ensure_valid_page()
            if arg is not None:
                return await self.page.evaluate(expression, arg)
            return await self.page.evaluate(expression)

    # --- state ---

    async def save_storage_state(self, path: str) -> None:
        if self._context is None:
            return
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        await self._context.storage_state(path=path)
        logger.debug("Storage state saved to %s.", path)
