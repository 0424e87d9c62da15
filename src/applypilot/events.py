"""Optional callbacks fired by the scrapers and the queue loop."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from applypilot.models import JobListing, ScreeningQuestion

logger = logging.getLogger(__name__)

LogCallback = Callable[[str, str], Any]


@dataclass
class EventSink:
    """Caller-owned set of fire-and-forget hooks.

    Every hook is optional. Hooks are always invoked through :meth:`emit`,
    so an exception raised inside one is logged and never reaches the
    code that fired it.
    """

    on_log: Optional[LogCallback] = None
    on_job_found: Optional[Callable[["JobListing"], Any]] = None
    on_application_start: Optional[Callable[["JobListing"], Any]] = None
    on_application_complete: Optional[Callable[["JobListing", bool], Any]] = None
    on_screening_question: Optional[Callable[["ScreeningQuestion", str], Any]] = None
    on_error: Optional[Callable[[BaseException, Optional["JobListing"]], Any]] = None
    on_queue_progress: Optional[Callable[[int, int], Any]] = None
    on_session_complete: Optional[Callable[[int, int], Any]] = None

    def emit(self, hook: str, *args: Any) -> None:
        callback = getattr(self, hook)
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Event callback %s raised — ignoring.", hook)

    def log(self, level: str, message: str) -> None:
        self.emit("on_log", level, message)
