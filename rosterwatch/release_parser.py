"""
Release statistics parser for Roster Watch.

The 48-hour release report lists one release per line:

    01/18/26 14:22:10 DOE, JANE A. RBB 0d 3h 12m $1,500.00

i.e. date, time, name, release type, time served and bail. Names ending in
an initial or suffix carry a trailing period that the roster does not.
"""

import re
from typing import Dict

from rosterwatch.log import get_logger
from rosterwatch.model import ReleaseDetail
from rosterwatch.parser import clean_name

logger = get_logger(__name__)

RELEASE_LINE_REGEX = re.compile(
    r"(?P<date>\d{2}/\d{2}/\d{2})\s+"
    r"(?P<time>\d{2}:\d{2}:\d{2})\s+"
    r"(?P<name>[A-Z][A-Z\s,.'\"-]+?)\s+\.?\s*"
    r"(?P<type>R[A-Z]{2,3})\s+"
    r"(?P<served>\d+\s*d\s*\d+\s*h\s*\d+\s*m)\s+"
    r"\$?(?P<bail>[\d,]+\.\d{2})"
)


def parse_release_line(line: str):
    """
    Parse one line of the release report.

    Args:
        line: Report line

    Returns:
        Tuple of (cleaned name, release detail), or None if the line is not a release
    """
    match = RELEASE_LINE_REGEX.search(line)
    if not match:
        return None

    name = clean_name(match.group("name"))
    detail: ReleaseDetail = {
        "release_datetime": f"{match.group('date')} {match.group('time')}",
        "release_type": match.group("type"),
        "time_served": re.sub(r"\s+", "", match.group("served")),
        "bail": f"${match.group('bail')}",
    }
    return name, detail


def extract_release_details(text: str) -> Dict[str, ReleaseDetail]:
    """
    Extract release details from the release report text.

    Args:
        text: Release report text

    Returns:
        Mapping of cleaned name to release detail; later lines win
    """
    details: Dict[str, ReleaseDetail] = {}

    for line in (text or "").split("\n"):
        parsed = parse_release_line(line)
        if parsed is None:
            continue
        name, detail = parsed
        details[name] = detail

    logger.debug(f"Extracted {len(details)} release details")
    return details


def bail_amount(detail: ReleaseDetail) -> float:
    """
    Get the numeric bail amount of a release.

    Args:
        detail: Release detail

    Returns:
        Bail in dollars, 0.0 if unreadable
    """
    try:
        return float(re.sub(r"[$,]", "", detail.get("bail", "")))
    except ValueError:
        return 0.0
