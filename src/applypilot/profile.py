"""Candidate profile model and its YAML loader."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from applypilot.exceptions import ConfigurationError


class Proficiency(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class NoticePeriod(str, Enum):
    IMMEDIATE = "immediate"
    DAYS_15 = "15_days"
    DAYS_30 = "30_days"
    DAYS_60 = "60_days"
    DAYS_90 = "90_days"
    MORE_THAN_90_DAYS = "more_than_90_days"

    @property
    def label(self) -> str:
        return _NOTICE_LABELS[self]


_NOTICE_LABELS: dict[NoticePeriod, str] = {
    NoticePeriod.IMMEDIATE: "Immediate",
    NoticePeriod.DAYS_15: "15 Days",
    NoticePeriod.DAYS_30: "30 Days (1 Month)",
    NoticePeriod.DAYS_60: "60 Days (2 Months)",
    NoticePeriod.DAYS_90: "90 Days (3 Months)",
    NoticePeriod.MORE_THAN_90_DAYS: "More than 90 Days",
}


class WorkMode(str, Enum):
    REMOTE = "remote"
    HYBRID = "hybrid"
    ONSITE = "onsite"
    ANY = "any"


class Skill(BaseModel):
    model_config = {"frozen": True}

    name: str
    years_of_experience: float = 0
    proficiency: Proficiency = Proficiency.INTERMEDIATE


class Education(BaseModel):
    model_config = {"frozen": True}

    degree: str
    institution: str
    year: int
    percentage: float | None = None


class CandidateProfile(BaseModel):
    """Everything the screening resolver may draw on when answering a form.

    Instances are frozen; build a new profile and hand it to
    ``ScraperManager.set_profile()`` to change anything.
    """

    model_config = {"frozen": True}

    name: str
    email: str
    phone: str = ""
    resume_path: str | None = None

    current_title: str = ""
    current_company: str | None = None
    total_experience: float = 0  # years

    skills: tuple[Skill, ...] = ()
    education: tuple[Education, ...] = ()

    preferred_titles: tuple[str, ...] = ()
    preferred_locations: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()

    current_ctc: float | None = None  # LPA
    expected_ctc: float | None = None  # LPA
    notice_period: NoticePeriod = NoticePeriod.DAYS_30

    immediate_joiner: bool = False
    willing_to_relocate: bool = False
    preferred_work_mode: WorkMode = Field(default=WorkMode.ANY)


def load_profile(path: str | Path) -> CandidateProfile:
    """Read a candidate profile from *path* (YAML)."""
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Profile file not found: {path}")
    with open(path) as fh:
        data = yaml.safe_load(fh) or {}
    try:
        return CandidateProfile(**data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid profile in {path}: {exc}") from exc
