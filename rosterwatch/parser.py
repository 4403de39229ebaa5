"""
Parser module for Roster Watch.

Turns the text of the in-custody roster into booking records. The report is
laid out as one block per booking, each starting with ``Booking #:``, followed
by labelled name and date lines and a charge table whose header reads
``Statute Offense Court Offense Class``. Text extraction mangles spacing and
line wrapping, so every field is matched loosely and degrades to a sentinel
rather than failing the record.
"""

import re
from typing import Dict, Iterable, List, Optional

from rosterwatch.log import get_logger
from rosterwatch.model import NOT_RELEASED, UNKNOWN, BookingRecord

logger = get_logger(__name__)

DEFAULT_COURT_TYPES = ("SUPR", "DIST", "MUNI", "DOC")

# Regex patterns
BLOCK_SPLIT_REGEX = re.compile(r"(?=Booking #:)")
BOOKING_ID_REGEX = re.compile(r"Booking #:[^\S\n]*(?P<id>\S+)")
NAME_REGEX = re.compile(r"Name:\s*(?P<name>[A-Z][A-Z\s,.'\"-]+?)(?=\s*Name Number:|$)", re.IGNORECASE)
# First line after the "Name:" line, used when the name wrapped after the comma
NAME_CONTINUATION_REGEX = re.compile(r"Name:\s*[^\n]+\n\s*(?P<rest>[A-Z][A-Z '\-]*)", re.IGNORECASE)
BOOK_DATE_REGEX = re.compile(r"Book Date:\s*(?P<time>\d{1,2}:\d{2}:\d{2})\s+(?P<date>\d{1,2}/\d{1,2}/\d{2,4})")
REL_DATE_LABEL = "Rel Date:"
REL_DATE_REGEX = re.compile(
    r"Rel Date:\s*(?:(?P<none>No Rel Date)|(?P<time>\d{1,2}:\d{2}:\d{2})\s+(?P<date>\d{1,2}/\d{1,2}/\d{2,4}))"
)
# Statute codes run straight into the offense text, e.g. "9A.36.041Assault 4th Degree"
STATUTE_PREFIX_REGEX = re.compile(r"^[\d.()A-Z]+(?=[A-Z][a-z])")
# Trailing periods, possibly separated by spaces, e.g. "A. ."
TRAILING_PERIODS_REGEX = re.compile(r"(?:\s*\.)+$")

# Lines inside a charge table that are page furniture, not charges
CHARGE_SECTION_NOISE = (
    "Name Number:",
    "Book Date:",
    "Rel Date:",
    "Page ",
    "rpjlciol",
    "Current Inmate",
    "StatuteOffense",
)

FIELDS = ("name", "book_date", "release_date", "charges")


class ExtractionReport:
    """
    Per-field extraction diagnostics for one roster.

    Counts how often each field fell back to its sentinel, so format drift
    in the upstream report shows up as a rising failure rate instead of
    silently degraded records.
    """

    def __init__(self):
        self.records = 0
        self.discarded_blocks = 0
        self.skipped_charge_lines = 0
        self.misses: Dict[str, int] = {field: 0 for field in FIELDS}

    def record_miss(self, field: str) -> None:
        self.misses[field] += 1

    def failure_rate(self, field: str) -> float:
        if not self.records:
            return 0.0
        return self.misses[field] / self.records

    def worst_field(self) -> Optional[str]:
        """Return the field with the highest failure rate, if any field missed."""
        if not any(self.misses.values()):
            return None
        return max(FIELDS, key=self.failure_rate)

    def as_dict(self) -> Dict[str, object]:
        return {
            "records": self.records,
            "discarded_blocks": self.discarded_blocks,
            "skipped_charge_lines": self.skipped_charge_lines,
            "misses": dict(self.misses),
            "failure_rates": {field: round(self.failure_rate(field), 4) for field in FIELDS},
        }


def clean_name(name: str) -> str:
    """
    Normalize a person name for display and matching.

    Trims, collapses internal whitespace and strips trailing periods, so
    cleaning a cleaned name changes nothing.

    Args:
        name: Raw name text

    Returns:
        Cleaned name
    """
    cleaned = re.sub(r"\s+", " ", name or "").strip()
    return TRAILING_PERIODS_REGEX.sub("", cleaned)


def format_stamp(time: str, date: str) -> str:
    """
    Render a time/date token pair as "date time".

    Args:
        time: Time token, e.g. "13:05:00"
        date: Date token, e.g. "1/18/26"

    Returns:
        Combined timestamp string
    """
    return f"{date} {time}"


def split_blocks(text: str) -> List[str]:
    """
    Split roster text into per-booking blocks.

    Args:
        text: Roster text

    Returns:
        Blocks that contain a booking marker
    """
    return [block for block in BLOCK_SPLIT_REGEX.split(text or "") if "Booking #:" in block]


def extract_name(block: str) -> Optional[str]:
    """
    Extract the inmate name from a booking block.

    Args:
        block: Booking block text

    Returns:
        Cleaned name, or None if no name was found
    """
    match = NAME_REGEX.search(block)
    if not match:
        return None

    name = re.sub(r"\s+", " ", match.group("name")).strip()
    if name.endswith(","):
        # The name wrapped onto the next line; this is a heuristic
        continuation = NAME_CONTINUATION_REGEX.search(block)
        if continuation:
            name = f"{name} {continuation.group('rest').strip()}"
        else:
            name = name.rstrip(",")

    name = clean_name(name)
    return name or None


def extract_book_date(block: str) -> Optional[str]:
    """
    Extract the book-in timestamp from a booking block.

    Args:
        block: Booking block text

    Returns:
        Timestamp string, or None if not found
    """
    match = BOOK_DATE_REGEX.search(block)
    if not match:
        return None
    return format_stamp(match.group("time"), match.group("date"))


def extract_release_date(block: str) -> str:
    """
    Extract the release timestamp from a booking block.

    Args:
        block: Booking block text

    Returns:
        Timestamp string, NOT_RELEASED when the roster says so or omits the
        label, UNKNOWN when the label is present but unreadable
    """
    match = REL_DATE_REGEX.search(block)
    if match:
        if match.group("none"):
            return NOT_RELEASED
        return format_stamp(match.group("time"), match.group("date"))
    if REL_DATE_LABEL in block:
        return UNKNOWN
    return NOT_RELEASED


def is_charge_header(line: str) -> bool:
    """
    Check if a line is the charge table header.

    Args:
        line: Stripped line

    Returns:
        True if the line starts a charge section
    """
    return "StatuteOffense" in line or ("Statute" in line and "Offense" in line)


def extract_charges(
    block: str,
    court_types: Iterable[str] = DEFAULT_COURT_TYPES,
    report: Optional[ExtractionReport] = None,
) -> List[str]:
    """
    Extract offense descriptions from a booking block's charge table.

    Lines that do not carry a court type token are skipped, so a garbled
    charge costs that charge only.

    Args:
        block: Booking block text
        court_types: Tokens that mark the court column
        report: Optional diagnostics collector

    Returns:
        Unique offense descriptions in first-seen order
    """
    court_types = tuple(court_types)
    court_regex = re.compile("(?:" + "|".join(re.escape(c) for c in court_types) + ").*$")

    charges: List[str] = []
    in_charges = False

    for line in block.split("\n"):
        t = line.strip()

        if is_charge_header(t):
            in_charges = True
            continue

        if not in_charges or not t:
            continue

        if any(noise in t for noise in CHARGE_SECTION_NOISE):
            continue

        if not any(court in t for court in court_types):
            if report is not None:
                report.skipped_charge_lines += 1
            logger.debug(f"Skipping non-charge line: {t}")
            continue

        cleaned = STATUTE_PREFIX_REGEX.sub("", t, count=1)
        cleaned = court_regex.sub("", cleaned, count=1).strip()

        if len(cleaned) > 2 and cleaned not in charges:
            charges.append(cleaned)

    return charges


def parse_block(
    block: str,
    court_types: Iterable[str] = DEFAULT_COURT_TYPES,
    report: Optional[ExtractionReport] = None,
) -> Optional[BookingRecord]:
    """
    Parse a single booking block.

    Args:
        block: Booking block text
        court_types: Tokens that mark the court column
        report: Optional diagnostics collector

    Returns:
        Booking record, or None if the block has no booking number
    """
    id_match = BOOKING_ID_REGEX.search(block)
    if not id_match:
        if report is not None:
            report.discarded_blocks += 1
        return None

    name = extract_name(block)
    book_date = extract_book_date(block)
    release_date = extract_release_date(block)
    charges = extract_charges(block, court_types, report)

    if report is not None:
        report.records += 1
        if name is None:
            report.record_miss("name")
        if book_date is None:
            report.record_miss("book_date")
        if release_date == UNKNOWN:
            report.record_miss("release_date")
        if not charges:
            report.record_miss("charges")

    return {
        "id": id_match.group("id"),
        "name": name or UNKNOWN,
        "book_date": book_date or UNKNOWN,
        "release_date": release_date,
        "charges": charges,
    }


def extract_bookings(
    text: str,
    court_types: Iterable[str] = DEFAULT_COURT_TYPES,
    report: Optional[ExtractionReport] = None,
) -> Dict[str, BookingRecord]:
    """
    Extract booking records from roster text.

    Never raises on malformed input; unreadable fields take sentinel values.

    Args:
        text: Roster text
        court_types: Tokens that mark the court column
        report: Optional diagnostics collector

    Returns:
        Mapping of booking number to record, in roster order
    """
    bookings: Dict[str, BookingRecord] = {}
    court_types = tuple(court_types)

    for block in split_blocks(text):
        record = parse_block(block, court_types, report)
        if record is None:
            continue
        if record["id"] in bookings:
            logger.debug(f"Duplicate booking number {record['id']}, keeping the later block")
        bookings[record["id"]] = record

    logger.debug(f"Extracted {len(bookings)} bookings")
    return bookings
