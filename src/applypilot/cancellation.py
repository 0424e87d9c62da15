"""Per-run cooperative stop signal."""

from __future__ import annotations

import asyncio


class CancellationToken:
    """Stop request for a single queue run.

    The queue loop polls :attr:`cancelled` between jobs; nothing is
    interrupted mid-apply.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Wait up to *seconds*; return ``True`` if cancelled meanwhile."""
        if seconds <= 0:
            return self.cancelled
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True
