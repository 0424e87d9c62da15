"""Init script that masks common automation fingerprints."""

from __future__ import annotations

from typing import Any

STEALTH_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', { get: () => undefined });

    window.chrome = window.chrome || { runtime: {} };

    Object.defineProperty(navigator, 'languages', {
        get: () => ['en-IN', 'en-US', 'en'],
    });

    Object.defineProperty(navigator, 'plugins', {
        get: () => [1, 2, 3],
    });
"""


async def apply_stealth(context: Any) -> None:
    """Register :data:`STEALTH_SCRIPT` on every page the *context* opens."""
    await context.add_init_script(STEALTH_SCRIPT)
