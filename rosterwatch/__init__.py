"""
Roster Watch - Jail Roster Change Tracking.

Tracks bookings and releases between observations of a county jail's
in-custody roster report, and reconciles releases with the release
statistics report.
"""

__version__ = "0.1.0"

from rosterwatch.model import (
    BookingRecord,
    ReleaseDetail,
    PendingRelease,
    RosterWatchError,
    ConfigError,
    FetchError,
    ParseError,
    PersistenceError,
    LockError,
)
from rosterwatch.config import Config, load_config
from rosterwatch.parser import extract_bookings, clean_name, ExtractionReport
from rosterwatch.release_parser import extract_release_details
from rosterwatch.diff import diff_bookings, fingerprint
from rosterwatch.reconcile import reconcile
from rosterwatch.store import StateStore, FileStateStore, MemoryStateStore
from rosterwatch.pipeline import run_observation, ObservationResult

__all__ = [
    "BookingRecord",
    "ReleaseDetail",
    "PendingRelease",
    "RosterWatchError",
    "ConfigError",
    "FetchError",
    "ParseError",
    "PersistenceError",
    "LockError",
    "Config",
    "load_config",
    "extract_bookings",
    "clean_name",
    "ExtractionReport",
    "extract_release_details",
    "diff_bookings",
    "fingerprint",
    "reconcile",
    "StateStore",
    "FileStateStore",
    "MemoryStateStore",
    "run_observation",
    "ObservationResult",
]
