"""Pydantic-based settings loaded from YAML with env-var overrides."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

POSTED_WITHIN_CHOICES: frozenset[str] = frozenset({"1d", "3d", "7d", "15d", "30d"})


class AppSettings(BaseSettings):
    """Application configuration with YAML + env var support.

    Env vars are prefixed with ``APPLYPILOT_``.
    Example: ``APPLYPILOT_LLM_MODEL=qwen2.5-7b-instruct``
    """

    model_config = {"env_prefix": "APPLYPILOT_"}

    # --- browser ---
    headless: bool = False
    slow_mo: int = 100  # ms between Playwright actions
    navigation_timeout_ms: int = 30_000
    state_dir: str = ".state"

    # --- automation ---
    default_source: str = "naukri"
    delay_between_applications_ms: int = Field(5_000, ge=0)
    max_applications_per_session: int = Field(50, ge=1)
    login_timeout_ms: int = Field(300_000, ge=0)
    login_poll_interval_ms: int = Field(3_000, ge=0)

    # --- llm ---
    llm_base_url: str = "http://127.0.0.1:1234"
    llm_model: str = ""
    llm_temperature: float = Field(0.7, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(1024, ge=1)
    llm_timeout_s: float = 60.0

    # --- search ---
    keywords: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    experience_min: int | None = None
    posted_within: str = ""
    search_pages: int = Field(1, ge=1)

    # --- paths ---
    profile_file: str = "profile.yaml"

    @field_validator("posted_within")
    @classmethod
    def _check_posted_within(cls, v: str) -> str:
        v = v.strip().lower()
        if v and v not in POSTED_WITHIN_CHOICES:
            raise ValueError(
                f"posted_within must be one of {sorted(POSTED_WITHIN_CHOICES)}, got {v!r}"
            )
        return v

    @field_validator("llm_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def history_db_path(self) -> Path:
        return Path(self.state_dir) / "history.db"

    # ---- factory ----

    @classmethod
    def from_yaml(cls, path: str | Path | None = None) -> "AppSettings":
        """Load settings from a YAML file, then overlay env vars.

        Env vars (``APPLYPILOT_*``) take priority over YAML values.
        """
        import os

        if path is None:
            path = _PROJECT_ROOT / "settings.yaml"
        path = Path(path)
        raw: dict[str, Any] = {}
        if path.exists():
            with open(path) as fh:
                raw = yaml.safe_load(fh) or {}

        prefix = "APPLYPILOT_"
        for key in list(raw.keys()):
            env_key = f"{prefix}{key.upper()}"
            if env_key in os.environ:
                del raw[key]

        return cls(**raw)
