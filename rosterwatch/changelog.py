"""
Change log for Roster Watch.

The change log is an append-only text file. Each run that detects anything
appends one entry:

    ================================================================================
    Change detected at: 2026-01-18T21:05:00+00:00
    ================================================================================
    BOOKED (1):
      + ROE, JOHN | Booked: 1/18/26 13:05:00 | Charges: Assault 4th Degree
    RELEASED (1):
      - LEE, SAM | Released | Charges: Theft 3rd Degree

Readers re-parse the whole file every time, so the layout is the contract.
"""

import os
import re
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from rosterwatch.log import get_logger
from rosterwatch.model import (
    BookingRecord,
    FieldChange,
    PersistenceError,
    ReleaseDetail,
    ResolvedRelease,
    charge_text,
)
from rosterwatch.release_parser import bail_amount

logger = get_logger(__name__)

SEPARATOR = "=" * 80

CHANGE_HEADER = "Change detected at"
INITIAL_HEADER = "Initial capture at"
UPDATE_HEADER = "Release details update at"
HEADERS = (CHANGE_HEADER, INITIAL_HEADER, UPDATE_HEADER)

BOOKED = "BOOKED"
RELEASED = "RELEASED"
UPDATED = "UPDATED RELEASE INFORMATION"
CHANGED = "CHANGED"
BASELINE = "BASELINE"

MARKERS = {BOOKED: "+", RELEASED: "-", UPDATED: "✓", CHANGED: "~"}

HEADER_REGEX = re.compile(r"^(?P<kind>" + "|".join(re.escape(h) for h in HEADERS) + r"): (?P<timestamp>.+)$")
SECTION_REGEX = re.compile(r"^(?P<title>[A-Z][A-Z ]+) \((?P<count>\d+)\):$")
BOOKED_DATE_REGEX = re.compile(r"Booked: (?P<date>\d{1,2}/\d{1,2}/\d{2,4})")
CHARGES_REGEX = re.compile(r"\| Charges: (?P<charges>.+)$")
RELEASE_TYPE_REGEX = re.compile(r"\((?P<type>R[A-Z]{2,3})\)")


def format_booked(record: BookingRecord) -> str:
    """
    Format a new booking for the log.

    Args:
        record: Booking record

    Returns:
        Log line text
    """
    return f"{record['name']} | Booked: {record['book_date']} | Charges: {charge_text(record)}"


def format_release_detail(detail: ReleaseDetail) -> str:
    """Format the release-report part of a release line."""
    bail_text = f" | Bail Posted: {detail['bail']}" if bail_amount(detail) > 0 else ""
    return (
        f"Released: {detail['release_datetime']} | Time served: {detail['time_served']}"
        f"{bail_text} ({detail['release_type']})"
    )


def format_released(record: BookingRecord, detail: Optional[ReleaseDetail] = None) -> str:
    """
    Format a release for the log.

    Args:
        record: Booking record that left the roster
        detail: Release detail, if already published

    Returns:
        Log line text
    """
    if detail is None:
        return f"{record['name']} | Released | Charges: {charge_text(record)}"
    return f"{record['name']} | {format_release_detail(detail)} | Charges: {charge_text(record)}"


def format_updated(resolved: ResolvedRelease) -> str:
    """
    Format a pending release that found its details.

    Args:
        resolved: Resolved release

    Returns:
        Log line text
    """
    return (
        f"{resolved['name']} | {format_release_detail(resolved['details'])} "
        f"| Charges: {charge_text(resolved['booking_data'])}"
    )


def format_changed(change: FieldChange) -> str:
    """Format a field change for the log."""
    return f"{change['name']} | {change['field']}: {change['before']} -> {change['after']}"


def build_entry(
    timestamp: str,
    header: str = CHANGE_HEADER,
    sections: Sequence[Tuple[str, int, Sequence[str]]] = (),
) -> str:
    """
    Build a change log entry.

    Args:
        timestamp: Run timestamp
        header: One of HEADERS
        sections: (title, true count, lines) per category; lines may be capped

    Returns:
        Entry text, starting and ending with a newline
    """
    if header not in HEADERS:
        raise ValueError(f"Unknown log header: {header}")

    parts = ["", SEPARATOR, f"{header}: {timestamp}", SEPARATOR]
    for title, count, lines in sections:
        parts.append(f"{title} ({count}):")
        marker = MARKERS.get(title)
        for line in lines:
            parts.append(f"  {marker} {line}")
    return "\n".join(parts) + "\n"


def append_entry(path: str, entry: str) -> None:
    """
    Append an entry to the change log.

    Args:
        path: Change log path
        entry: Entry text
    """
    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(entry)
    except OSError as e:
        logger.error(f"Error appending to change log {path}: {e}")
        raise PersistenceError(f"Error appending to change log {path}: {e}") from e


def merge_log(path: str, text: str) -> None:
    """
    Append an externally kept log fragment to the change log.

    This is a maintenance operation for restoring entries written elsewhere.

    Args:
        path: Change log path
        text: Log text to append
    """
    if not text or not text.strip():
        raise ValueError("Nothing to merge")
    append_entry(path, "\n" + text.rstrip("\n") + "\n")
    logger.info(f"Merged {len(text)} characters into {path}")


class LogEntry:
    """One parsed change log entry."""

    def __init__(self, kind: str, timestamp: str):
        self.kind = kind
        self.timestamp = timestamp
        self.counts: Dict[str, int] = {}
        self.lines: Dict[str, List[str]] = {}

    def section(self, title: str) -> List[str]:
        return self.lines.get(title, [])

    @property
    def has_changes(self) -> bool:
        return any(self.counts.get(title) for title in (BOOKED, RELEASED, UPDATED, CHANGED))

    def to_dict(self) -> Dict[str, object]:
        return {
            "kind": self.kind,
            "timestamp": self.timestamp,
            "counts": dict(self.counts),
            "added": self.section(BOOKED),
            "removed": self.section(RELEASED),
            "updated": self.section(UPDATED),
            "changed": self.section(CHANGED),
        }


def parse_log(text: str) -> List[LogEntry]:
    """
    Parse the whole change log.

    Text outside a recognised entry is ignored.

    Args:
        text: Change log text

    Returns:
        Entries in file order
    """
    entries: List[LogEntry] = []
    current: Optional[LogEntry] = None
    title: Optional[str] = None

    for raw in (text or "").split("\n"):
        line = raw.strip()
        if not line or line == SEPARATOR:
            continue

        header = HEADER_REGEX.match(line)
        if header:
            current = LogEntry(header.group("kind"), header.group("timestamp").strip())
            entries.append(current)
            title = None
            continue

        if current is None:
            continue

        section = SECTION_REGEX.match(line)
        if section:
            title = section.group("title")
            current.counts[title] = int(section.group("count"))
            current.lines.setdefault(title, [])
            continue

        marker = MARKERS.get(title) if title else None
        if marker and line.startswith(marker):
            current.lines[title].append(line[len(marker):].strip())

    return entries


def _parse_short_date(value: str) -> Optional[datetime]:
    for fmt in ("%m/%d/%y", "%m/%d/%Y"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def _line_charges(line: str) -> List[str]:
    match = CHARGES_REGEX.search(line)
    if not match or match.group("charges").strip() == "None listed":
        return []
    return [c.strip() for c in match.group("charges").split(",") if c.strip()]


def summarize_log(entries: Sequence[LogEntry], top: int = 10) -> Dict[str, object]:
    """
    Summarize parsed change log entries for reporting.

    Args:
        entries: Parsed entries
        top: Number of most common charges to report

    Returns:
        Dictionary with totals, common charges, bookings by weekday and release types
    """
    total_bookings = 0
    total_releases = 0
    total_updates = 0
    charges: Counter = Counter()
    release_types: Counter = Counter()
    by_day = {day: 0 for day in ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")}

    for entry in entries:
        total_bookings += entry.counts.get(BOOKED, 0)
        total_releases += entry.counts.get(RELEASED, 0)
        total_updates += entry.counts.get(UPDATED, 0)

        for line in entry.section(BOOKED):
            charges.update(_line_charges(line))
            date_match = BOOKED_DATE_REGEX.search(line)
            booked = _parse_short_date(date_match.group("date")) if date_match else None
            if booked is not None:
                by_day[booked.strftime("%a")] += 1

        for line in entry.section(RELEASED) + entry.section(UPDATED):
            # Releases logged without details show up again once updated
            type_match = RELEASE_TYPE_REGEX.search(line)
            if type_match:
                release_types[type_match.group("type")] += 1

    return {
        "entries": len(entries),
        "entries_with_changes": sum(1 for e in entries if e.has_changes),
        "total_bookings": total_bookings,
        "total_releases": total_releases,
        "total_updates": total_updates,
        "common_charges": [{"charge": c, "count": n} for c, n in charges.most_common(top)],
        "bookings_by_day": by_day,
        "release_types": dict(release_types),
    }
