"""Pure-function URL builder for Naukri job search."""

from __future__ import annotations

import re
from urllib.parse import urlencode

from applypilot.models import JobSearchParams

BASE_URL = "https://www.naukri.com"
RESULTS_PER_PAGE = 20

_JOB_AGE_DAYS: dict[str, str] = {
    "1d": "1",
    "3d": "3",
    "7d": "7",
    "15d": "15",
    "30d": "30",
}

_WHITESPACE = re.compile(r"\s+")


def _slug(parts: tuple[str, ...]) -> str:
    """``("Python Developer", "Django")`` -> ``"python-developer-django"``."""
    joined = "-".join(p.strip() for p in parts if p.strip())
    return _WHITESPACE.sub("-", joined.lower())


def build_search_url(params: JobSearchParams, base_url: str = BASE_URL) -> str:
    """Convert *params* into a Naukri search-results URL."""
    keywords = _slug(params.keywords)
    locations = _slug(params.locations)

    if locations:
        url = f"{base_url}/{keywords}-jobs-in-{locations}"
    else:
        url = f"{base_url}/{keywords}-jobs"

    query: dict[str, str] = {}
    if params.experience_min is not None:
        query["experience"] = str(params.experience_min)
    if params.salary_min:
        query["salary"] = str(params.salary_min)
    if params.posted_within:
        query["jobAge"] = _JOB_AGE_DAYS.get(params.posted_within, "30")
    if params.page > 1:
        query["page"] = str(params.page)

    if query:
        url += f"?{urlencode(query)}"
    return url


def job_detail_url(job_id: str, base_url: str = BASE_URL) -> str:
    return f"{base_url}/job-listings-{job_id}?src=jobsearchDesk"


def has_more_results(found: int, page: int, total_count: int) -> bool:
    return found > 0 and page * RESULTS_PER_PAGE < total_count
