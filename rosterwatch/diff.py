"""
Snapshot diffing for Roster Watch.
"""

import hashlib
from datetime import datetime
from typing import List, Mapping

from rosterwatch.model import BookingRecord, FieldChange, Snapshot

DISPLAY_LIMIT = 30

COMPARED_FIELDS = ("name", "book_date", "release_date")


class SnapshotDiff:
    """Bookings that appeared or disappeared between two snapshots."""

    def __init__(self, added: List[BookingRecord], removed: List[BookingRecord],
                 added_count: int, removed_count: int):
        self.added = added
        self.removed = removed
        self.added_count = added_count
        self.removed_count = removed_count

    @property
    def is_empty(self) -> bool:
        return not self.added_count and not self.removed_count

    def __repr__(self) -> str:
        return f"SnapshotDiff(added={self.added_count}, removed={self.removed_count})"


def fingerprint(text: str) -> str:
    """
    Compute the content fingerprint of roster text.

    Args:
        text: Roster text

    Returns:
        Hex MD5 digest
    """
    return hashlib.md5((text or "").encode("utf-8")).hexdigest()


def take_snapshot(text: str, captured_at: datetime) -> Snapshot:
    """
    Record one observation of the roster text.

    Args:
        text: Roster text
        captured_at: Time of the observation

    Returns:
        Snapshot with the text's fingerprint
    """
    return {"raw_text": text, "fingerprint": fingerprint(text), "captured_at": captured_at.isoformat()}


def diff_bookings(
    current: Mapping[str, BookingRecord],
    previous: Mapping[str, BookingRecord],
) -> SnapshotDiff:
    """
    Compare two extracted snapshots by booking number.

    Only presence matters: a booking in both snapshots is never reported,
    whatever its fields say.

    Args:
        current: Bookings in the new snapshot
        previous: Bookings in the previous snapshot

    Returns:
        Uncapped snapshot diff
    """
    added = [record for booking_id, record in current.items() if booking_id not in previous]
    removed = [record for booking_id, record in previous.items() if booking_id not in current]
    return SnapshotDiff(added, removed, len(added), len(removed))


def cap_diff(diff: SnapshotDiff, limit: int = DISPLAY_LIMIT) -> SnapshotDiff:
    """
    Truncate a diff's record lists for display, keeping the true counts.

    Args:
        diff: Snapshot diff
        limit: Maximum records per list

    Returns:
        New capped diff
    """
    return SnapshotDiff(diff.added[:limit], diff.removed[:limit], diff.added_count, diff.removed_count)


def diff_fields(
    current: Mapping[str, BookingRecord],
    previous: Mapping[str, BookingRecord],
) -> List[FieldChange]:
    """
    Report field changes on bookings present in both snapshots.

    Charges are compared as sets.

    Args:
        current: Bookings in the new snapshot
        previous: Bookings in the previous snapshot

    Returns:
        One entry per changed field
    """
    changes: List[FieldChange] = []

    for booking_id, after in current.items():
        before = previous.get(booking_id)
        if before is None:
            continue

        for field in COMPARED_FIELDS:
            if before[field] != after[field]:
                changes.append({
                    "id": booking_id,
                    "name": after["name"],
                    "field": field,
                    "before": before[field],
                    "after": after[field],
                })

        if set(before["charges"]) != set(after["charges"]):
            changes.append({
                "id": booking_id,
                "name": after["name"],
                "field": "charges",
                "before": ", ".join(before["charges"]),
                "after": ", ".join(after["charges"]),
            })

    return changes
