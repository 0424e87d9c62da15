"""Entry point: ``python -m applypilot``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from applypilot.events import EventSink
from applypilot.exceptions import ApplyPilotError
from applypilot.llm.client import LLMClient
from applypilot.models import ApplicationStatus, JobListing, JobSearchParams, dedupe_listings
from applypilot.orchestrator import ScraperManager
from applypilot.profile import CandidateProfile, load_profile
from applypilot.reporting.console import (
    print_banner,
    print_listings,
    print_progress,
    print_run_report,
)
from applypilot.reporting.tracker import ApplicationTracker
from applypilot.settings import AppSettings

logger = logging.getLogger("applypilot")


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="applypilot", description=__doc__)
    parser.add_argument("--settings", help="Path to settings.yaml")
    parser.add_argument("--profile", help="Path to the candidate profile YAML")
    parser.add_argument("--source", help="Job source to use (default from settings)")
    parser.add_argument(
        "--dry-search",
        action="store_true",
        help="Search and list matching jobs without applying",
    )
    return parser.parse_args(argv)


def search_params_for(
    settings: AppSettings, profile: CandidateProfile, page: int
) -> JobSearchParams:
    """Settings win; the profile's preferences fill whatever settings leave empty."""
    keywords = settings.keywords or list(profile.preferred_titles) or list(profile.keywords)
    locations = settings.locations or list(profile.preferred_locations)
    return JobSearchParams(
        keywords=tuple(keywords),
        locations=tuple(locations),
        experience_min=settings.experience_min,
        posted_within=settings.posted_within,
        page=page,
    )


async def _collect_jobs(
    manager: ScraperManager, source: str, settings: AppSettings, profile: CandidateProfile
) -> list[JobListing]:
    found: list[JobListing] = []
    for page in range(1, settings.search_pages + 1):
        params = search_params_for(settings, profile, page)
        if not params.keywords:
            raise ApplyPilotError("No search keywords in settings or profile.")
        result = await manager.search_jobs(source, params)
        found.extend(result.jobs)
        if not result.has_more:
            break
    return dedupe_listings(found)


def tracking_events(tracker: ApplicationTracker) -> EventSink:
    """Event hooks that keep the history database in step with the queue."""

    def on_error(exc: BaseException, job: JobListing | None) -> None:
        if job is not None:
            tracker.set_status(job, ApplicationStatus.FAILED, str(exc))

    return EventSink(
        on_application_start=lambda job: tracker.set_status(job, ApplicationStatus.PROCESSING),
        on_error=on_error,
        on_queue_progress=lambda current, total: logger.info("Job %d/%d", current, total),
        on_session_complete=lambda applied, failed: logger.info(
            "Session complete: %d applied, %d failed.", applied, failed
        ),
    )


def _install_stop_handler(manager: ScraperManager) -> None:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, manager.stop)
    except (NotImplementedError, RuntimeError):
        logger.debug("Signal handlers unsupported here; Ctrl+C will abort instead of stopping.")


async def _async_main(args: argparse.Namespace) -> int:
    settings = AppSettings.from_yaml(args.settings)
    profile = load_profile(args.profile or settings.profile_file)
    source = args.source or settings.default_source
    tracker = ApplicationTracker(settings.history_db_path)

    events = tracking_events(tracker)
    llm = LLMClient.from_settings(settings)
    manager = ScraperManager(settings, llm, events)
    manager.set_profile(profile)
    manager.get_scraper(source)  # unknown --source fails before the browser starts

    print_banner()
    if not await llm.test_connection():
        logger.warning("Screening questions will fail until the LLM server is reachable.")

    await manager.initialize(source)
    try:
        if not await manager.check_login(source):
            await manager.initiate_login(source)
            if not await manager.wait_for_login(source):
                logger.error("Not logged in to %s — giving up.", source)
                return 1

        jobs = [j for j in await _collect_jobs(manager, source, settings, profile)
                if not tracker.already_applied(j)]
        print_listings(jobs)
        if args.dry_search or not jobs:
            return 0

        for job in jobs:
            tracker.set_status(job, ApplicationStatus.QUEUED)

        def on_progress(job, index, outcome):
            tracker.record_outcome(job, outcome)
            print_progress(job, index, outcome)

        _install_stop_handler(manager)
        run_id = tracker.start_run(source)
        result = await manager.process_job_queue(source, jobs, on_progress=on_progress)
        tracker.end_run(run_id, result)
        print_run_report(source, result, stopped=result.total < min(
            len(jobs), settings.max_applications_per_session
        ))
        return 0
    finally:
        await manager.close(source)
        tracker.close()


def main(argv: list[str] | None = None) -> None:
    _configure_logging()
    args = _parse_args(argv)
    try:
        sys.exit(asyncio.run(_async_main(args)))
    except ApplyPilotError as exc:
        logging.error("%s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logging.info("Interrupted by user.")
        sys.exit(130)


if __name__ == "__main__":
    main()
