"""SQLite-backed application history kept by the CLI."""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

from applypilot.models import (
    ApplicationStatus,
    ApplyOutcome,
    JobListing,
    QueueRunResult,
    status_for,
)

logger = logging.getLogger(__name__)

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS listings (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    source          TEXT NOT NULL,
    external_id     TEXT NOT NULL,
    url             TEXT NOT NULL,
    title           TEXT DEFAULT '',
    company         TEXT DEFAULT '',
    location        TEXT DEFAULT '',
    description     TEXT DEFAULT '',
    scraped_at      TEXT NOT NULL,
    UNIQUE(source, external_id)
);

CREATE TABLE IF NOT EXISTS applications (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    listing_id      INTEGER NOT NULL UNIQUE REFERENCES listings(id),
    status          TEXT NOT NULL,
    attempts        INTEGER DEFAULT 0,
    error           TEXT DEFAULT '',
    answers         TEXT DEFAULT '',
    applied_at      TEXT,
    updated_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS runs (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    source          TEXT NOT NULL,
    started_at      TEXT NOT NULL,
    ended_at        TEXT,
    applied         INTEGER DEFAULT 0,
    failed          INTEGER DEFAULT 0,
    skipped         INTEGER DEFAULT 0
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ApplicationTracker:
    """Persistent listing / application history stored in SQLite."""

    def __init__(self, db_path: str | Path) -> None:
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        logger.info("Tracker database ready at %s.", db_path)

    # ---- listings ----

    def upsert_listing(self, job: JobListing) -> int:
        """Insert a listing or return the existing row's ID."""
        cur = self._conn.execute(
            "SELECT id FROM listings WHERE source=? AND external_id=?",
            (job.source, job.external_id),
        )
        row = cur.fetchone()
        if row:
            return row["id"]
        cur = self._conn.execute(
            "INSERT INTO listings (source, external_id, url, title, company, location, "
            "description, scraped_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                job.source,
                job.external_id,
                job.url,
                job.title,
                job.company,
                job.location,
                job.description,
                job.scraped_at,
            ),
        )
        self._conn.commit()
        return cur.lastrowid  # type: ignore[return-value]

    # ---- application status ----

    def set_status(
        self,
        job: JobListing,
        status: ApplicationStatus,
        error: str = "",
        answers: str = "",
    ) -> None:
        listing_id = self.upsert_listing(job)
        now = _now()
        applied_at = now if status is ApplicationStatus.APPLIED else None
        bump = 1 if status is ApplicationStatus.PROCESSING else 0
        self._conn.execute(
            "INSERT INTO applications (listing_id, status, attempts, error, answers, "
            "applied_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(listing_id) DO UPDATE SET status=excluded.status, "
            "attempts=attempts + ?, error=excluded.error, "
            "answers=CASE WHEN excluded.answers != '' THEN excluded.answers ELSE answers END, "
            "applied_at=COALESCE(excluded.applied_at, applied_at), "
            "updated_at=excluded.updated_at",
            (listing_id, status.value, bump, error, answers, applied_at, now, bump),
        )
        self._conn.commit()

    def record_outcome(self, job: JobListing, outcome: ApplyOutcome) -> ApplicationStatus:
        """Store the terminal status of one attempt plus its screening Q/A audit."""
        status = status_for(outcome)
        answers = ""
        if outcome.screening_questions:
            answers = json.dumps(
                [
                    {**asdict(q), "type": q.type.value, "options": list(q.options)}
                    for q in outcome.screening_questions
                ]
            )
        self.set_status(job, status, outcome.error or "", answers)
        return status

    def get_status(self, job: JobListing) -> ApplicationStatus | None:
        cur = self._conn.execute(
            "SELECT a.status FROM applications a JOIN listings l ON l.id = a.listing_id "
            "WHERE l.source=? AND l.external_id=?",
            (job.source, job.external_id),
        )
        row = cur.fetchone()
        return ApplicationStatus(row["status"]) if row else None

    def already_applied(self, job: JobListing) -> bool:
        """``True`` if we applied, or the portal reported an earlier application."""
        return self.get_status(job) in (ApplicationStatus.APPLIED, ApplicationStatus.SKIPPED)

    # ---- runs ----

    def start_run(self, source: str) -> int:
        cur = self._conn.execute(
            "INSERT INTO runs (source, started_at) VALUES (?, ?)", (source, _now())
        )
        self._conn.commit()
        return cur.lastrowid  # type: ignore[return-value]

    def end_run(self, run_id: int, result: QueueRunResult) -> None:
        self._conn.execute(
            "UPDATE runs SET ended_at=?, applied=?, failed=?, skipped=? WHERE id=?",
            (_now(), result.applied, result.failed, result.skipped, run_id),
        )
        self._conn.commit()

    # ---- queries ----

    def count_listings(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM listings").fetchone()[0]

    def get_run(self, run_id: int) -> dict | None:
        row = self._conn.execute("SELECT * FROM runs WHERE id=?", (run_id,)).fetchone()
        return dict(row) if row else None

    def export_json(self) -> str:
        """Export listings with their application state as JSON."""
        cur = self._conn.execute(
            "SELECT l.source, l.external_id, l.title, l.company, l.url, "
            "a.status, a.attempts, a.error, a.applied_at, a.updated_at "
            "FROM applications a JOIN listings l ON l.id = a.listing_id "
            "ORDER BY a.updated_at DESC"
        )
        return json.dumps([dict(r) for r in cur.fetchall()], indent=2)

    def close(self) -> None:
        self._conn.close()
