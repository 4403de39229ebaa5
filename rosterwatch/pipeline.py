"""
Observation pipeline for Roster Watch.

One call to run_observation() fetches both reports, diffs the roster against
the previous observation, reconciles releases, appends to the change log and
commits state, in that order. Committing state last means a run that dies
before the commit is recomputed in full by the next run.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from rosterwatch.changelog import (
    BASELINE,
    BOOKED,
    CHANGE_HEADER,
    CHANGED,
    INITIAL_HEADER,
    RELEASED,
    UPDATE_HEADER,
    UPDATED,
    build_entry,
    format_booked,
    format_changed,
    format_released,
    format_updated,
)
from rosterwatch.config import Config, ExtractionConfig
from rosterwatch.diff import SnapshotDiff, cap_diff, diff_bookings, diff_fields, take_snapshot
from rosterwatch.log import get_logger
from rosterwatch.matching import build_matcher
from rosterwatch.model import (
    BookingRecord,
    FieldChange,
    ParseError,
    ResolvedRelease,
)
from rosterwatch.parser import ExtractionReport, extract_bookings
from rosterwatch.reconcile import ReconcileResult, reconcile
from rosterwatch.release_parser import extract_release_details
from rosterwatch.store import FileStateStore, StateStore
from rosterwatch.web import fetch_release_text, fetch_roster

logger = get_logger(__name__)

RosterFetcher = Callable[[Config], Tuple[bytes, str]]
ReleaseFetcher = Callable[[Config], str]


class ObservationResult:
    """Outcome of one observation run."""

    def __init__(self, timestamp: str, is_first_run: bool, has_changed: bool):
        self.timestamp = timestamp
        self.is_first_run = is_first_run
        self.has_changed = has_changed
        self.added_records: List[BookingRecord] = []
        self.removed_records: List[BookingRecord] = []
        self.updated_releases: List[ResolvedRelease] = []
        self.changed_records: List[FieldChange] = []
        self.added_count = 0
        self.removed_count = 0
        self.pending_count = 0
        self.expired_count = 0
        self.baseline_count = 0
        self.release_details_count = 0
        self.extraction: Optional[Dict[str, Any]] = None
        self.logged = False

    @property
    def message(self) -> str:
        if self.is_first_run:
            return "Initial roster captured successfully!"
        if self.has_changed:
            message = (f"Changes detected! {self.added_count} new bookings, "
                       f"{self.removed_count} releases.")
            if self.updated_releases:
                message += f" Also updated {len(self.updated_releases)} release details."
            return message
        if self.updated_releases:
            return f"Updated release details for {len(self.updated_releases)} inmates."
        return "No changes detected."

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to a JSON-ready dictionary."""
        return {
            "timestamp": self.timestamp,
            "isFirstRun": self.is_first_run,
            "hasChanged": self.has_changed,
            "addedRecords": self.added_records,
            "removedRecords": self.removed_records,
            "updatedReleases": self.updated_releases,
            "changedRecords": self.changed_records,
            "addedCount": self.added_count,
            "removedCount": self.removed_count,
            "pendingCount": self.pending_count,
            "expiredCount": self.expired_count,
            "baselineCount": self.baseline_count,
            "releaseDetailsCount": self.release_details_count,
            "extraction": self.extraction,
            "logged": self.logged,
            "message": self.message,
        }


def check_extraction(report: ExtractionReport, text: str, cfg: ExtractionConfig) -> None:
    """
    Judge the extraction diagnostics of the current roster.

    Degraded fields are always logged; in strict mode they fail the run.

    Args:
        report: Diagnostics of the current roster
        text: Roster text
        cfg: Extraction configuration
    """
    problems = []
    if text.strip() and report.records == 0:
        problems.append("no booking records found in a non-empty roster")

    worst = report.worst_field()
    if worst is not None and report.failure_rate(worst) > cfg.max_failure_rate:
        problems.append(f"field '{worst}' missing in {report.failure_rate(worst):.0%} of records")

    for problem in problems:
        logger.warning(f"Extraction degraded: {problem}")

    if problems and cfg.strict:
        raise ParseError("Could not parse roster: " + "; ".join(problems))


def build_run_entry(
    result: ObservationResult,
    diff: SnapshotDiff,
    reconciled: ReconcileResult,
    limit: int,
) -> Optional[str]:
    """
    Build the change log entry for a run.

    Args:
        result: Observation result (counts and flags already set)
        diff: Uncapped snapshot diff
        reconciled: Reconcile result
        limit: Maximum lines listed per category

    Returns:
        Entry text, or None when there is nothing to record
    """
    updated_section = (UPDATED, len(reconciled.updated), [format_updated(r) for r in reconciled.updated[:limit]])

    if result.is_first_run:
        sections = [(BASELINE, result.baseline_count, [])]
        if reconciled.updated:
            sections.append(updated_section)
        return build_entry(result.timestamp, INITIAL_HEADER, sections)

    if result.has_changed:
        sections = [
            (BOOKED, diff.added_count, [format_booked(r) for r in diff.added[:limit]]),
            (RELEASED, diff.removed_count,
             [format_released(record, detail) for record, detail in reconciled.released[:limit]]),
        ]
        if result.changed_records:
            sections.append((CHANGED, len(result.changed_records),
                             [format_changed(c) for c in result.changed_records[:limit]]))
        if reconciled.updated:
            sections.append(updated_section)
        if diff.is_empty and len(sections) == 2:
            # Text changed but no booking came or went
            return None
        return build_entry(result.timestamp, CHANGE_HEADER, sections)

    if reconciled.updated:
        return build_entry(result.timestamp, UPDATE_HEADER, [updated_section])

    return None


def run_observation(
    cfg: Optional[Config] = None,
    store: Optional[StateStore] = None,
    roster_fetcher: Optional[RosterFetcher] = None,
    release_fetcher: Optional[ReleaseFetcher] = None,
    now: Optional[datetime] = None,
) -> ObservationResult:
    """
    Run one observation of the roster.

    Args:
        cfg: Application configuration
        store: State store (files under cfg.storage.state_dir by default)
        roster_fetcher: Returns (raw bytes, text) of the roster
        release_fetcher: Returns the release report text, "" when unavailable
        now: Time of the run

    Returns:
        Observation result
    """
    cfg = cfg or Config()
    store = store or FileStateStore(cfg.storage.state_dir, cfg.storage.lock_timeout)
    roster_fetcher = roster_fetcher or fetch_roster
    release_fetcher = release_fetcher or fetch_release_text
    now = now or datetime.now(timezone.utc)
    limit = cfg.diff.display_limit
    court_types = cfg.extraction.court_types

    with store.lock():
        pdf_bytes, text = roster_fetcher(cfg)
        if cfg.storage.keep_debug_copies:
            store.save_debug_copies(pdf_bytes, text)

        details = extract_release_details(release_fetcher(cfg))

        state = store.load()
        snapshot = take_snapshot(text, now)
        is_first_run = not state["last_fingerprint"]
        has_changed = not is_first_run and snapshot["fingerprint"] != state["last_fingerprint"]

        result = ObservationResult(snapshot["captured_at"], is_first_run, has_changed)
        result.release_details_count = len(details)

        diff = SnapshotDiff([], [], 0, 0)
        if is_first_run or has_changed:
            report = ExtractionReport()
            current = extract_bookings(text, court_types, report)
            result.extraction = report.as_dict()
            check_extraction(report, text, cfg.extraction)

            if is_first_run:
                result.baseline_count = len(current)
                logger.info(f"First run, captured baseline of {len(current)} bookings")
            else:
                previous = extract_bookings(state["last_raw_text"], court_types)
                diff = diff_bookings(current, previous)
                if cfg.diff.track_changes:
                    result.changed_records = diff_fields(current, previous)
                logger.info(f"Roster changed: {diff.added_count} added, {diff.removed_count} removed")
        else:
            logger.info("Roster unchanged since last run")

        reconciled = reconcile(
            diff.removed,
            state["pending_releases"],
            details,
            build_matcher(cfg.reconcile),
            now,
            cfg.reconcile.max_pending_age_days,
            cfg.reconcile.stale_policy,
        )

        capped = cap_diff(diff, limit)
        result.added_records = capped.added
        result.removed_records = capped.removed
        result.added_count = diff.added_count
        result.removed_count = diff.removed_count
        result.updated_releases = reconciled.updated
        result.pending_count = len(reconciled.pending)
        result.expired_count = len(reconciled.expired)

        entry = build_run_entry(result, diff, reconciled, limit)
        if entry:
            store.append_log(entry)
            result.logged = True

        store.save({
            "last_fingerprint": snapshot["fingerprint"],
            "last_raw_text": snapshot["raw_text"],
            "pending_releases": reconciled.pending,
        })

    logger.info(result.message)
    return result
