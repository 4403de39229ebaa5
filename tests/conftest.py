"""
Pytest configuration and fixtures.
"""

import shutil
import tempfile
from datetime import datetime, timezone
from typing import Callable, List, Optional

import pytest

from rosterwatch.config import Config
from rosterwatch.model import BookingRecord
from rosterwatch.store import MemoryStateStore

ROSTER_TEXT = """Current Inmate Roster
Page 1 of 1
Booking #: 26-00101
Name: DOE, JANE A Name Number: 445566
Book Date: 13:05:00 1/18/26
Rel Date: No Rel Date
StatuteOffenseCourtOffenseClass
9A.36.041Assault 4th DegreeDISTGM
46.20.342Driving While License SuspendedDISTM
9A.36.041Assault 4th DegreeDISTGM
Booking #: 26-00102
Name: LEE, SAM Name Number: 778899
Book Date: 08:30:00 1/17/26
Rel Date: No Rel Date
StatuteOffenseCourtOffenseClass
9A.56.050Theft 3rd DegreeMUNIGM
Booking #: 26-00103
Name: ROE, Name Number: 112233
JOHN Q
Book Date: 22:10:00 1/18/26
Rel Date: 09:00:00 1/19/26
StatuteOffenseCourtOffenseClass
69.50.4013Possession of Controlled SubstanceSUPRF
"""

RELEASE_TEXT = """Release Statistics - Last 48 Hours
Date Time Name Type Served Bail
01/18/26 14:22:10 LEE, SAM . RBB 1d 5h 52m $1,500.00
01/18/26 16:00:00 ALLEN, HAROLD F. III . RPR 0d 2h 10m $0.00
01/19/26 09:00:00 ROE, JOHN Q. RBB 0d 10h 50m $250.00
Page 1 of 1
"""


def roster_block(booking_id: str, name: str, book_date: str = "13:05:00 1/18/26",
                 charges: Optional[List[str]] = None) -> str:
    """Build one roster block in the report's layout."""
    lines = [
        f"Booking #: {booking_id}",
        f"Name: {name} Name Number: 100{booking_id[-3:]}",
        f"Book Date: {book_date}",
        "Rel Date: No Rel Date",
        "StatuteOffenseCourtOffenseClass",
    ]
    for charge in charges if charges is not None else ["Theft 3rd Degree"]:
        lines.append(f"9A.56.050{charge}DISTGM")
    return "\n".join(lines) + "\n"


def build_roster(*blocks: str) -> str:
    """Join roster blocks under a report banner."""
    return "Current Inmate Roster\n" + "".join(blocks)


def booking(booking_id: str, name: str, charges: Optional[List[str]] = None) -> BookingRecord:
    """Build a booking record."""
    return {
        "id": booking_id,
        "name": name,
        "book_date": "1/18/26 13:05:00",
        "release_date": "Not Released",
        "charges": charges or [],
    }


@pytest.fixture
def sample_config() -> Config:
    """Return a sample configuration."""
    return Config()


@pytest.fixture
def roster_text() -> str:
    """Return sample roster text."""
    return ROSTER_TEXT


@pytest.fixture
def release_text() -> str:
    """Return sample release report text."""
    return RELEASE_TEXT


@pytest.fixture
def make_block() -> Callable[..., str]:
    """Return the roster block builder."""
    return roster_block


@pytest.fixture
def make_roster() -> Callable[..., str]:
    """Return the roster builder."""
    return build_roster


@pytest.fixture
def make_booking() -> Callable[..., BookingRecord]:
    """Return the booking record builder."""
    return booking


@pytest.fixture
def memory_store() -> MemoryStateStore:
    """Return an empty in-memory state store."""
    return MemoryStateStore()


@pytest.fixture
def fixed_now() -> datetime:
    """Return a fixed run time."""
    return datetime(2026, 1, 20, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    tmp_dir = tempfile.mkdtemp()
    yield tmp_dir
    shutil.rmtree(tmp_dir, ignore_errors=True)
