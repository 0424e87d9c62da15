"""Protocol definition for browser adapters."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class BrowserAdapter(Protocol):
    """Thin abstraction over a browser automation library.

    Every method is async so scrapers can ``await`` each interaction.
    A scraper owns exactly one adapter and nothing else touches its page.
    """

    @property
    def is_launched(self) -> bool:
        """``True`` once :meth:`launch` succeeded and until :meth:`close`."""
        ...

    async def launch(
        self,
        headless: bool = False,
        slow_mo: int = 100,
        storage_state_path: str | None = None,
        default_timeout_ms: int = 30_000,
    ) -> None:
        """Start the browser process and open a page."""
        ...

    async def close(self) -> None:
        """Shut down the browser and free resources."""
        ...

    async def navigate(self, url: str, wait_until: str = "domcontentloaded") -> None:
        """Navigate to *url* and wait for the specified load event."""
        ...

    async def query(self, selector: str, *, timeout: float = 5_000) -> Any | None:
        """Return the first element matching *selector*, or ``None``."""
        ...

    async def click(self, selector: str, *, timeout: float = 5_000) -> None:
        """Click the element matching *selector*."""
        ...

    async def wait_for_selector(
        self, selector: str, *, state: str = "visible", timeout: float = 10_000
    ) -> Any | None:
        """Wait until *selector* reaches *state*; ``None`` on timeout."""
        ...

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        """Run a JS function expression (optionally with *arg*) and return the result."""
        ...

    async def page_url(self) -> str:
        """Return the current page URL."""
        ...

    async def save_storage_state(self, path: str) -> None:
        """Persist cookies / localStorage to *path* (JSON)."""
        ...
