"""
Basic usage example for Roster Watch.
"""

import os

from rosterwatch import Config, ExtractionReport, FileStateStore, extract_bookings, run_observation
from rosterwatch.pdfio import read_source_text
from rosterwatch.writers import write_csv, write_json


def extract_saved_roster(path: str) -> None:
    """
    Extract bookings from a roster saved earlier.
    """
    os.makedirs("./out", exist_ok=True)

    print(f"Processing {path}...")
    report = ExtractionReport()
    bookings = list(extract_bookings(read_source_text(path), report=report).values())
    print(f"Extracted {len(bookings)} bookings")

    write_json(bookings, "./out/bookings.json", pretty=True)
    print("Wrote JSON to ./out/bookings.json")

    write_csv(bookings, "./out/bookings.csv")
    print("Wrote CSV to ./out/bookings.csv")

    for i, record in enumerate(bookings):
        print(f"\nBooking {i+1}:")
        print(f"  Booking #: {record['id']}")
        print(f"  Name: {record['name']}")
        print(f"  Book Date: {record['book_date']}")
        print(f"  Release Date: {record['release_date']}")
        print(f"  Charges ({len(record['charges'])}):")
        for j, charge in enumerate(record['charges']):
            print(f"    {j+1}. {charge}")

    worst = report.worst_field()
    if worst:
        print(f"\nMost often missing field: {worst} ({report.failure_rate(worst):.0%})")


def observe_live_roster() -> None:
    """
    Observe the live roster once, keeping state in ./data.
    """
    cfg = Config()
    cfg.reconcile.strategy = "normalized"

    result = run_observation(cfg, FileStateStore(cfg.storage.state_dir))
    print(result.message)

    for record in result.added_records:
        print(f"  + {record['name']} ({record['id']})")
    for record in result.removed_records:
        print(f"  - {record['name']} ({record['id']})")
    if result.pending_count:
        print(f"{result.pending_count} releases still waiting for details")


def main():
    """
    Basic usage example.
    """
    # Replace with your saved roster path
    roster_path = "./reports/incustdy.pdf"

    try:
        extract_saved_roster(roster_path)
    except FileNotFoundError:
        print(f"Error: File not found: {roster_path}")
        print("Please place a saved roster in the ./reports directory")

    try:
        observe_live_roster()
    except Exception as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    main()
