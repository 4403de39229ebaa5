"""
Command-line interface for Roster Watch.
"""

import argparse
import json
import logging
import sys

from rosterwatch.changelog import merge_log, parse_log, summarize_log
from rosterwatch.config import Config, load_config
from rosterwatch.log import configure_logging
from rosterwatch.model import (
    ConfigError,
    FetchError,
    LockError,
    ParseError,
    PersistenceError,
)
from rosterwatch.parser import ExtractionReport, extract_bookings
from rosterwatch.pdfio import read_source_text
from rosterwatch.pipeline import run_observation
from rosterwatch.release_parser import extract_release_details
from rosterwatch.store import FileStateStore
from rosterwatch.writers import write_csv, write_json

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_FETCH = 2
EXIT_PARSE = 3
EXIT_PERSIST = 4
EXIT_LOCK = 5


def open_store(config: Config) -> FileStateStore:
    return FileStateStore(config.storage.state_dir, config.storage.lock_timeout)


def print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def process_command(args: argparse.Namespace) -> int:
    """
    Process command-line arguments.

    Args:
        args: Command-line arguments

    Returns:
        Exit code
    """
    config = load_config(args.config)
    if args.state_dir:
        config.storage.state_dir = args.state_dir
    configure_logging(config, args.log_level)

    if args.command == "run":
        result = run_observation(config, open_store(config))
        if args.json:
            print_json(result.to_dict())
        else:
            print(result.message)
        return EXIT_OK

    elif args.command == "extract":
        report = ExtractionReport()
        bookings = list(extract_bookings(read_source_text(args.file), config.extraction.court_types, report).values())
        if args.json:
            write_json(bookings, args.json)
        if args.csv:
            write_csv(bookings, args.csv)
        if not args.json and not args.csv:
            print_json(bookings)
        if args.diagnostics:
            print_json(report.as_dict())
        return EXIT_OK

    elif args.command == "releases":
        print_json(extract_release_details(read_source_text(args.file)))
        return EXIT_OK

    elif args.command == "pending":
        pending = open_store(config).load()["pending_releases"]
        print_json({"count": len(pending), "pendingReleases": pending})
        return EXIT_OK

    elif args.command == "stats":
        print_json(summarize_log(parse_log(open_store(config).read_log())))
        return EXIT_OK

    elif args.command == "history":
        entries = parse_log(open_store(config).read_log())
        entries.reverse()
        print_json([entry.to_dict() for entry in entries[:args.limit]])
        return EXIT_OK

    elif args.command == "merge":
        with open(args.file, "r", encoding="utf-8") as f:
            text = f.read()
        store = open_store(config)
        with store.lock():
            merge_log(store.log_path, text)
        return EXIT_OK

    elif args.command == "reset":
        store = open_store(config)
        with store.lock():
            deleted = store.reset()
        print(f"Deleted: {', '.join(deleted) if deleted else 'nothing'}")
        return EXIT_OK

    logger.error(f"Unknown command: {args.command}")
    return EXIT_ERROR


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(description="Roster Watch")
    parser.add_argument("--config", default=None, help="Path to configuration file")
    parser.add_argument("--state-dir", default=None, help="Override the state directory")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], help="Logging level")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    run_parser = subparsers.add_parser("run", help="Observe the roster once")
    run_parser.add_argument("--json", action="store_true", help="Output the result as JSON")

    extract_parser = subparsers.add_parser("extract", help="Extract bookings from a saved roster")
    extract_parser.add_argument("file", help="Roster PDF or extracted text")
    extract_parser.add_argument("--json", help="JSON output file")
    extract_parser.add_argument("--csv", help="CSV output file")
    extract_parser.add_argument("--diagnostics", action="store_true", help="Print per-field extraction diagnostics")

    releases_parser = subparsers.add_parser("releases", help="Extract release details from a saved release report")
    releases_parser.add_argument("file", help="Release report PDF or extracted text")

    subparsers.add_parser("pending", help="Show pending releases")
    subparsers.add_parser("stats", help="Summarize the change log")

    history_parser = subparsers.add_parser("history", help="Show recent change log entries")
    history_parser.add_argument("--limit", type=int, default=20, help="Number of entries")

    merge_parser = subparsers.add_parser("merge", help="Append an old change log fragment")
    merge_parser.add_argument("file", help="File with change log text")

    subparsers.add_parser("reset", help="Forget the previous roster")

    return parser


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        Exit code
    """
    args = build_parser().parse_args(argv)

    try:
        return process_command(args)
    except FetchError as e:
        logger.error(f"Could not retrieve source: {e}")
        return EXIT_FETCH
    except ParseError as e:
        logger.error(f"Could not parse source: {e}")
        return EXIT_PARSE
    except PersistenceError as e:
        logger.error(f"Could not persist state: {e}")
        return EXIT_PERSIST
    except LockError as e:
        logger.error(f"Another run is in progress: {e}")
        return EXIT_LOCK
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_ERROR
    except Exception as e:
        logger.exception(f"Error: {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
