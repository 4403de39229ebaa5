"""
Output writers for Roster Watch.
"""

import csv
import json
import os
from typing import Any, List

from rosterwatch.log import get_logger
from rosterwatch.model import BookingRecord, PersistenceError

logger = get_logger(__name__)

CSV_FIELDS = ["id", "name", "book_date", "release_date", "charge"]


def write_json(data: Any, path: str, pretty: bool = True) -> None:
    """
    Write data to a JSON file.

    Args:
        data: JSON-serializable data
        path: Output file path
        pretty: Whether to pretty-print the JSON
    """
    logger.info(f"Writing JSON to {path}")

    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            if pretty:
                json.dump(data, f, indent=2, ensure_ascii=False)
            else:
                json.dump(data, f, ensure_ascii=False)
    except (OSError, TypeError) as e:
        logger.error(f"Error writing JSON to {path}: {e}")
        raise PersistenceError(f"Error writing JSON to {path}: {e}") from e


def write_csv(records: List[BookingRecord], path: str) -> None:
    """
    Write booking records to a CSV file, one row per charge.

    Bookings without charges still get one row with an empty charge.

    Args:
        records: Booking records
        path: Output file path
    """
    logger.info(f"Writing CSV to {path}")

    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
            writer.writeheader()

            row_count = 0
            for record in records:
                for charge in record.get("charges") or [""]:
                    writer.writerow({
                        "id": record.get("id", ""),
                        "name": record.get("name", ""),
                        "book_date": record.get("book_date", ""),
                        "release_date": record.get("release_date", ""),
                        "charge": charge,
                    })
                    row_count += 1

        logger.info(f"Wrote {row_count} rows to {path}")
    except OSError as e:
        logger.error(f"Error writing CSV to {path}: {e}")
        raise PersistenceError(f"Error writing CSV to {path}: {e}") from e
