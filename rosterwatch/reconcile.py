"""
Pending release reconciliation for Roster Watch.

A booking that drops off the roster is a release, but the release report
that carries its exact time, type and bail is published on its own schedule.
Releases without details wait in a pending queue and are re-checked on every
run until their details appear:

    removed (no detail) -> pending -> resolved
"""

from datetime import datetime, timedelta, timezone
from typing import List, Mapping, Optional, Sequence, Tuple

from rosterwatch.log import get_logger
from rosterwatch.matching import ExactMatcher, NameMatcher
from rosterwatch.model import BookingRecord, PendingRelease, ReleaseDetail, ResolvedRelease

logger = get_logger(__name__)

STALE_POLICIES = ("flag", "drop")


class ReconcileResult:
    """Outcome of one reconciliation pass."""

    def __init__(self):
        # Bookings released this run, with details when already published
        self.released: List[Tuple[BookingRecord, Optional[ReleaseDetail]]] = []
        # Pending entries from earlier runs that found their details
        self.updated: List[ResolvedRelease] = []
        # Queue to persist, insertion order preserved
        self.pending: List[PendingRelease] = []
        # Entries dropped by the staleness policy
        self.expired: List[PendingRelease] = []

    @property
    def newly_pending(self) -> int:
        return sum(1 for _, detail in self.released if detail is None)


def parse_detected_at(value: str) -> Optional[datetime]:
    """
    Parse a pending entry's detection timestamp.

    Args:
        value: ISO 8601 timestamp, "Z" suffix allowed

    Returns:
        Aware datetime, or None if unreadable
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_stale(entry: PendingRelease, now: datetime, max_age_days: Optional[int]) -> bool:
    """
    Check whether a pending entry has waited longer than allowed.

    Args:
        entry: Pending release
        now: Current time
        max_age_days: Maximum age, None for no limit

    Returns:
        True if the entry is older than max_age_days
    """
    if max_age_days is None:
        return False
    detected = parse_detected_at(entry.get("detected_at", ""))
    if detected is None:
        logger.warning(f"Pending release for {entry.get('name')} has unreadable detected_at")
        return False
    return now - detected > timedelta(days=max_age_days)


def reconcile(
    removed: Sequence[BookingRecord],
    pending: Sequence[PendingRelease],
    details: Mapping[str, ReleaseDetail],
    matcher: Optional[NameMatcher] = None,
    now: Optional[datetime] = None,
    max_age_days: Optional[int] = None,
    stale_policy: str = "flag",
) -> ReconcileResult:
    """
    Match releases against the release report and update the pending queue.

    Existing pending entries are re-checked before this run's removals are
    queued, so an entry is resolved at most once and never in the run that
    detected it.

    Args:
        removed: Bookings that left the roster this run
        pending: Pending queue from earlier runs
        details: Release details keyed by cleaned name
        matcher: Name matcher (exact by default)
        now: Current time
        max_age_days: Staleness limit for pending entries
        stale_policy: "flag" to keep stale entries marked, "drop" to expire them

    Returns:
        Reconcile result
    """
    if stale_policy not in STALE_POLICIES:
        raise ValueError(f"Unknown stale policy: {stale_policy}")

    matcher = matcher or ExactMatcher()
    now = now or datetime.now(timezone.utc)
    result = ReconcileResult()

    for entry in pending:
        key = matcher.match(entry["name"], details)
        if key is not None:
            result.updated.append({
                "name": entry["name"],
                "booking_data": entry["booking_data"],
                "details": details[key],
            })
            continue

        if is_stale(entry, now, max_age_days):
            if stale_policy == "drop":
                logger.info(f"Dropping stale pending release for {entry['name']}")
                result.expired.append(entry)
                continue
            if not entry.get("stale"):
                logger.info(f"Flagging stale pending release for {entry['name']}")
                entry = {**entry, "stale": True}

        result.pending.append(entry)

    for record in removed:
        key = matcher.match(record["name"], details)
        if key is not None:
            result.released.append((record, details[key]))
            continue

        result.released.append((record, None))
        result.pending.append({
            "name": record["name"],
            "booking_data": record,
            "detected_at": now.isoformat(),
        })

    logger.info(
        f"Reconciled {len(removed)} releases: {len(result.updated)} updated, "
        f"{result.newly_pending} newly pending, {len(result.pending)} pending, "
        f"{len(result.expired)} expired"
    )
    return result
