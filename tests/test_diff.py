"""
Tests for snapshot diffing.
"""

from datetime import datetime, timezone

from rosterwatch.diff import cap_diff, diff_bookings, diff_fields, fingerprint, take_snapshot


def test_fingerprint():
    """Test fingerprints are stable MD5 digests."""
    assert fingerprint("") == "d41d8cd98f00b204e9800998ecf8427e"
    assert fingerprint("roster") == fingerprint("roster")
    assert fingerprint("roster") != fingerprint("roster ")
    assert len(fingerprint("roster")) == 32


def test_take_snapshot():
    """Test a snapshot carries the text, its fingerprint and the capture time."""
    captured_at = datetime(2026, 1, 20, 12, 0, tzinfo=timezone.utc)

    snapshot = take_snapshot("Booking #: 1\n", captured_at)

    assert snapshot == {
        "raw_text": "Booking #: 1\n",
        "fingerprint": fingerprint("Booking #: 1\n"),
        "captured_at": "2026-01-20T12:00:00+00:00",
    }


def test_diff_bookings(make_booking):
    """Test added and removed bookings are found by id."""
    previous = {
        "1": make_booking("1", "A, A"),
        "2": make_booking("2", "B, B"),
    }
    current = {
        "2": make_booking("2", "B, B"),
        "3": make_booking("3", "C, C"),
    }

    diff = diff_bookings(current, previous)

    assert [r["id"] for r in diff.added] == ["3"]
    assert [r["id"] for r in diff.removed] == ["1"]
    assert diff.added_count == 1
    assert diff.removed_count == 1
    assert not diff.is_empty


def test_diff_bookings_ignores_field_changes(make_booking):
    """Test that a booking present in both snapshots is never reported."""
    previous = {"1": make_booking("1", "A, A", ["Theft 3rd Degree"])}
    current = {"1": make_booking("1", "A, ALICE", ["Assault 4th Degree"])}

    diff = diff_bookings(current, previous)
    assert diff.is_empty
    assert diff.added == []
    assert diff.removed == []


def test_diff_bookings_first_snapshot(make_booking):
    """Test diffing against an empty snapshot."""
    current = {"1": make_booking("1", "A, A")}

    diff = diff_bookings(current, {})
    assert diff.added_count == 1
    assert diff.removed_count == 0


def test_cap_diff_keeps_true_counts(make_booking):
    """Test display capping truncates lists but not counts."""
    current = {str(i): make_booking(str(i), f"N, {i}") for i in range(45)}

    capped = cap_diff(diff_bookings(current, {}), 30)

    assert len(capped.added) == 30
    assert capped.added_count == 45
    assert capped.removed_count == 0


def test_diff_fields(make_booking):
    """Test field-level changes on persisting bookings."""
    previous = {
        "1": make_booking("1", "A, A", ["Theft 3rd Degree", "Assault 4th Degree"]),
        "2": make_booking("2", "B, B"),
    }
    current = {
        "1": make_booking("1", "A, A", ["Assault 4th Degree", "Theft 3rd Degree"]),
        "2": dict(make_booking("2", "B, B"), release_date="1/19/26 09:00:00"),
        "3": make_booking("3", "C, C"),
    }

    changes = diff_fields(current, previous)

    assert changes == [{
        "id": "2",
        "name": "B, B",
        "field": "release_date",
        "before": "Not Released",
        "after": "1/19/26 09:00:00",
    }]


def test_diff_fields_charges(make_booking):
    """Test charge set changes are reported as joined text."""
    previous = {"1": make_booking("1", "A, A", ["Theft 3rd Degree"])}
    current = {"1": make_booking("1", "A, A", ["Theft 3rd Degree", "Assault 4th Degree"])}

    changes = diff_fields(current, previous)

    assert len(changes) == 1
    assert changes[0]["field"] == "charges"
    assert changes[0]["before"] == "Theft 3rd Degree"
    assert changes[0]["after"] == "Theft 3rd Degree, Assault 4th Degree"
