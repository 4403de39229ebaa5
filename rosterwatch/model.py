"""
Data models for Roster Watch.
"""

from typing import List, Optional, TypedDict

UNKNOWN = "Unknown"
NOT_RELEASED = "Not Released"


class BookingRecord(TypedDict):
    """
    Represents one inmate's booking as seen in a single roster snapshot.
    """

    id: str  # Source-assigned booking number, unique within a snapshot
    name: str  # Whitespace-collapsed name, e.g. "DOE, JANE A"
    book_date: str  # "M/D/YY HH:MM:SS" or UNKNOWN
    release_date: str  # "M/D/YY HH:MM:SS", NOT_RELEASED or UNKNOWN
    charges: List[str]  # Unique offense descriptions, first-seen order


class ReleaseDetail(TypedDict):
    """
    Represents a line of the release statistics report.
    """

    release_datetime: str  # "MM/DD/YY HH:MM:SS"
    release_type: str  # Release type code, e.g. "RBB"
    time_served: str  # e.g. "2d4h15m"
    bail: str  # e.g. "$1,500.00"


class PendingRelease(TypedDict, total=False):
    """
    A release whose details had not been published when it was detected.
    """

    name: str
    booking_data: BookingRecord
    detected_at: str  # ISO 8601, UTC
    stale: bool  # Set once the entry outlives the configured age


class ResolvedRelease(TypedDict):
    """
    A booking matched to its release details.
    """

    name: str
    booking_data: BookingRecord
    details: ReleaseDetail


class FieldChange(TypedDict):
    """
    A field-level difference on a booking present in both snapshots.
    """

    id: str
    name: str
    field: str
    before: str
    after: str


class Snapshot(TypedDict):
    """
    One observation of the roster text.
    """

    raw_text: str
    fingerprint: str
    captured_at: str


class ObservationState(TypedDict):
    """
    Everything the state store keeps between runs, apart from the change log.
    """

    last_fingerprint: str
    last_raw_text: str
    pending_releases: List[PendingRelease]


class RosterWatchError(Exception):
    """Base class for all rosterwatch exceptions."""

    pass


class FetchError(RosterWatchError):
    """Exception raised when a source document could not be retrieved."""

    pass


class ParseError(RosterWatchError):
    """Exception raised when a source document could not be parsed."""

    pass


class PersistenceError(RosterWatchError):
    """Exception raised when state or the change log could not be written."""

    pass


class ConfigError(RosterWatchError):
    """Exception raised for configuration errors."""

    pass


class LockError(RosterWatchError):
    """Exception raised when another run holds the state lock."""

    pass


def empty_state() -> ObservationState:
    """Return a state with no previous observation."""
    return {"last_fingerprint": "", "last_raw_text": "", "pending_releases": []}


def charge_text(record: Optional[BookingRecord]) -> str:
    """
    Render a record's charges for a log line.

    Args:
        record: Booking record (may be None)

    Returns:
        Comma-separated charges, or "None listed"
    """
    charges = (record or {}).get("charges") or []
    return ", ".join(charges) if charges else "None listed"
