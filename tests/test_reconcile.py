"""
Tests for pending release reconciliation.
"""

from datetime import datetime, timezone

import pytest

from rosterwatch.matching import NormalizedMatcher
from rosterwatch.parser import extract_bookings
from rosterwatch.reconcile import is_stale, parse_detected_at, reconcile
from rosterwatch.release_parser import extract_release_details

DETAIL = {
    "release_datetime": "01/18/26 14:22:10",
    "release_type": "RBB",
    "time_served": "1d5h52m",
    "bail": "$1,500.00",
}


def pending_entry(record, detected_at="2026-01-19T12:00:00+00:00"):
    return {"name": record["name"], "booking_data": record, "detected_at": detected_at}


def test_removal_with_details(make_booking, fixed_now):
    """Test a release whose details are already published."""
    lee = make_booking("2", "LEE, SAM")

    result = reconcile([lee], [], {"LEE, SAM": DETAIL}, now=fixed_now)

    assert result.released == [(lee, DETAIL)]
    assert result.pending == []
    assert result.updated == []
    assert result.newly_pending == 0


def test_removal_without_details_goes_pending(make_booking, fixed_now):
    """Test a release without details joins the pending queue."""
    doe = make_booking("1", "DOE, JANE A")

    result = reconcile([doe], [], {}, now=fixed_now)

    assert result.released == [(doe, None)]
    assert result.pending == [{
        "name": "DOE, JANE A",
        "booking_data": doe,
        "detected_at": "2026-01-20T12:00:00+00:00",
    }]
    assert result.newly_pending == 1


def test_pending_resolves_later(make_booking, fixed_now):
    """Test a pending entry resolves once its details appear."""
    doe = make_booking("1", "DOE, JANE A")
    entry = pending_entry(doe)
    detail = dict(DETAIL, release_type="RPR")

    result = reconcile([], [entry], {"DOE, JANE A": detail}, now=fixed_now)

    assert result.updated == [{"name": "DOE, JANE A", "booking_data": doe, "details": detail}]
    assert result.pending == []
    assert result.released == []


def test_pending_unresolved_stays_in_order(make_booking, fixed_now):
    """Test unresolved entries keep their order ahead of new ones."""
    first = pending_entry(make_booking("1", "A, A"))
    second = pending_entry(make_booking("2", "B, B"))
    new = make_booking("3", "C, C")

    result = reconcile([new], [first, second], {}, now=fixed_now)

    assert [e["name"] for e in result.pending] == ["A, A", "B, B", "C, C"]
    assert result.updated == []


def test_new_removal_never_updated_in_same_run(make_booking, fixed_now):
    """Test a release detected this run is not also reported as updated."""
    lee = make_booking("2", "LEE, SAM")

    result = reconcile([lee], [], {"LEE, SAM": DETAIL}, now=fixed_now)

    assert result.updated == []
    assert len(result.released) == 1


def test_reconcile_with_normalized_matcher(make_booking, fixed_now):
    """Test a custom matcher bridges formatting differences."""
    entry = pending_entry(make_booking("3", "ALLEN, HAROLD F III"))

    result = reconcile([], [entry], {"ALLEN, HAROLD F. III": DETAIL}, matcher=NormalizedMatcher(), now=fixed_now)

    assert len(result.updated) == 1
    assert result.updated[0]["details"] == DETAIL


def test_stale_entry_flagged(make_booking, fixed_now):
    """Test the flag policy keeps stale entries and marks them."""
    entry = pending_entry(make_booking("1", "A, A"), detected_at="2026-01-01T00:00:00+00:00")

    result = reconcile([], [entry], {}, now=fixed_now, max_age_days=7, stale_policy="flag")

    assert len(result.pending) == 1
    assert result.pending[0]["stale"] is True
    assert result.expired == []
    assert "stale" not in entry


def test_stale_entry_dropped(make_booking, fixed_now):
    """Test the drop policy expires stale entries."""
    old = pending_entry(make_booking("1", "A, A"), detected_at="2026-01-01T00:00:00+00:00")
    fresh = pending_entry(make_booking("2", "B, B"))

    result = reconcile([], [old, fresh], {}, now=fixed_now, max_age_days=7, stale_policy="drop")

    assert result.expired == [old]
    assert result.pending == [fresh]


def test_stale_entry_can_still_resolve(make_booking, fixed_now):
    """Test a stale entry resolves if its details appear."""
    entry = pending_entry(make_booking("1", "A, A"), detected_at="2026-01-01T00:00:00+00:00")

    result = reconcile([], [entry], {"A, A": DETAIL}, now=fixed_now, max_age_days=7, stale_policy="drop")

    assert len(result.updated) == 1
    assert result.expired == []


def test_unknown_stale_policy(fixed_now):
    """Test an unknown stale policy is rejected."""
    with pytest.raises(ValueError):
        reconcile([], [], {}, now=fixed_now, stale_policy="archive")


def test_parse_detected_at():
    """Test parsing detection timestamps."""
    assert parse_detected_at("2026-01-19T12:00:00Z") == datetime(2026, 1, 19, 12, tzinfo=timezone.utc)
    assert parse_detected_at("2026-01-19T12:00:00") == datetime(2026, 1, 19, 12, tzinfo=timezone.utc)
    assert parse_detected_at("yesterday") is None
    assert parse_detected_at("") is None


def test_is_stale(make_booking, fixed_now):
    """Test staleness checks."""
    entry = pending_entry(make_booking("1", "A, A"), detected_at="2026-01-10T12:00:00+00:00")

    assert not is_stale(entry, fixed_now, None)
    assert is_stale(entry, fixed_now, 7)
    assert not is_stale(entry, fixed_now, 10)
    assert not is_stale({"name": "B, B", "detected_at": "garbage"}, fixed_now, 1)


def test_same_name_in_both_reports_matches(fixed_now):
    """Test a name with repeated trailing periods matches across both reports."""
    roster = (
        "Booking #: 26-00500\n"
        "Name: DOE, JANE A.. Name Number: 9\n"
        "Book Date: 10:00:00 1/1/26\n"
        "Rel Date: No Rel Date\n"
    )
    releases = "01/02/26 11:00:00 DOE, JANE A.. RBB 1d 1h 0m $0.00\n"

    record = extract_bookings(roster)["26-00500"]
    details = extract_release_details(releases)

    assert record["name"] == "DOE, JANE A"
    assert list(details) == ["DOE, JANE A"]

    result = reconcile([record], [], details, now=fixed_now)

    assert result.released == [(record, details["DOE, JANE A"])]
    assert result.pending == []
