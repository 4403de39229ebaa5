"""
State storage for Roster Watch.

A run needs the previous roster's fingerprint and text, the pending release
queue and the change log. Stores hide where those live so the pipeline can
run against files in production and against memory in tests.
"""

import abc
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

from filelock import FileLock, Timeout

from rosterwatch.changelog import append_entry
from rosterwatch.log import get_logger
from rosterwatch.model import LockError, ObservationState, PersistenceError, empty_state

logger = get_logger(__name__)

HASH_FILE = "prev_hash.txt"
ROSTER_FILE = "prev_roster.txt"
PENDING_FILE = "pending_releases.json"
LOG_FILE = "change_log.txt"
LOCK_FILE = ".rosterwatch.lock"
DEBUG_PDF_FILE = "current.pdf"
DEBUG_TEXT_FILE = "current_text.txt"


class StateStore(abc.ABC):
    """Persistent state shared between runs."""

    @abc.abstractmethod
    def load(self) -> ObservationState:
        """Load state; an empty fingerprint means no previous observation."""

    @abc.abstractmethod
    def save(self, state: ObservationState) -> None:
        """Commit state for the next run."""

    @abc.abstractmethod
    def lock(self):
        """Context manager held for the duration of a run."""

    @abc.abstractmethod
    def append_log(self, entry: str) -> None:
        """Append an entry to the change log."""

    @abc.abstractmethod
    def read_log(self) -> str:
        """Return the whole change log."""

    @abc.abstractmethod
    def reset(self) -> List[str]:
        """Forget the previous observation, keeping the queue and the log."""

    def save_debug_copies(self, pdf_bytes: bytes, text: str) -> None:
        """Keep the raw roster for debugging; stores may ignore this."""


def write_atomic(path: str, data: str) -> None:
    """
    Replace a file's contents in one step.

    Args:
        path: Destination path
        data: Text to write
    """
    directory = os.path.dirname(os.path.abspath(path))
    with tempfile.NamedTemporaryFile("w", delete=False, dir=directory, encoding="utf-8") as handle:
        handle.write(data)
        temp_name = handle.name
    os.replace(temp_name, path)


class FileStateStore(StateStore):
    """
    State kept as plain files in a directory.

    Layout:
        prev_hash.txt           fingerprint of the last roster
        prev_roster.txt         text of the last roster
        pending_releases.json   pending release queue
        change_log.txt          append-only change log
    """

    def __init__(self, state_dir: str, lock_timeout: float = 30.0):
        self.state_dir = state_dir
        self.lock_timeout = lock_timeout
        self.hash_path = os.path.join(state_dir, HASH_FILE)
        self.roster_path = os.path.join(state_dir, ROSTER_FILE)
        self.pending_path = os.path.join(state_dir, PENDING_FILE)
        self.log_path = os.path.join(state_dir, LOG_FILE)
        self.lock_path = os.path.join(state_dir, LOCK_FILE)

    def _ensure_dir(self) -> None:
        try:
            os.makedirs(self.state_dir, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create state directory {self.state_dir}: {e}") from e

    def _load_pending(self) -> list:
        if not os.path.exists(self.pending_path):
            return []
        try:
            with open(self.pending_path, "r", encoding="utf-8") as f:
                pending = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Pending release file {self.pending_path} is corrupt, starting empty: {e}")
            return []
        if not isinstance(pending, list):
            logger.warning(f"Pending release file {self.pending_path} is not a list, starting empty")
            return []
        return pending

    def load(self) -> ObservationState:
        state = empty_state()
        try:
            state["pending_releases"] = self._load_pending()
            if os.path.exists(self.hash_path) and os.path.exists(self.roster_path):
                with open(self.hash_path, "r", encoding="utf-8") as f:
                    state["last_fingerprint"] = f.read().strip()
                with open(self.roster_path, "r", encoding="utf-8") as f:
                    state["last_raw_text"] = f.read()
        except OSError as e:
            logger.error(f"Error reading state from {self.state_dir}: {e}")
            raise PersistenceError(f"Error reading state from {self.state_dir}: {e}") from e
        return state

    def save(self, state: ObservationState) -> None:
        self._ensure_dir()
        try:
            # Fingerprint goes last: a partial save is detected as a change next run
            write_atomic(self.pending_path, json.dumps(state["pending_releases"], indent=2, ensure_ascii=False))
            write_atomic(self.roster_path, state["last_raw_text"])
            write_atomic(self.hash_path, state["last_fingerprint"])
        except OSError as e:
            logger.error(f"Error writing state to {self.state_dir}: {e}")
            raise PersistenceError(f"Error writing state to {self.state_dir}: {e}") from e
        logger.debug(f"Committed state to {self.state_dir}")

    @contextmanager
    def lock(self) -> Iterator[None]:
        self._ensure_dir()
        file_lock = FileLock(self.lock_path, timeout=self.lock_timeout)
        try:
            file_lock.acquire()
        except Timeout as e:
            raise LockError(f"Another run holds {self.lock_path}") from e
        try:
            yield
        finally:
            file_lock.release()

    def append_log(self, entry: str) -> None:
        append_entry(self.log_path, entry)

    def read_log(self) -> str:
        if not os.path.exists(self.log_path):
            return ""
        try:
            with open(self.log_path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise PersistenceError(f"Error reading change log {self.log_path}: {e}") from e

    def reset(self) -> List[str]:
        deleted = []
        for path in (self.hash_path, self.roster_path):
            if os.path.exists(path):
                try:
                    os.unlink(path)
                except OSError as e:
                    raise PersistenceError(f"Error deleting {path}: {e}") from e
                deleted.append(os.path.basename(path))
        logger.info(f"Reset state in {self.state_dir}: deleted {deleted}")
        return deleted

    def save_debug_copies(self, pdf_bytes: bytes, text: str) -> None:
        self._ensure_dir()
        try:
            with open(os.path.join(self.state_dir, DEBUG_PDF_FILE), "wb") as f:
                f.write(pdf_bytes)
            write_atomic(os.path.join(self.state_dir, DEBUG_TEXT_FILE), text)
        except OSError as e:
            # Debug copies are not state; a failure here does not fail the run
            logger.warning(f"Could not save debug copies: {e}")


class MemoryStateStore(StateStore):
    """State kept in memory, for tests and embedding."""

    def __init__(self, state: Optional[ObservationState] = None, log: str = "", lock_timeout: float = 0.0):
        self.state = state or empty_state()
        self.log = log
        self.lock_timeout = lock_timeout
        self.saves = 0
        self._lock = threading.Lock()

    def load(self) -> ObservationState:
        return json.loads(json.dumps(self.state))

    def save(self, state: ObservationState) -> None:
        self.state = json.loads(json.dumps(state))
        self.saves += 1

    @contextmanager
    def lock(self) -> Iterator[None]:
        if self.lock_timeout > 0:
            acquired = self._lock.acquire(timeout=self.lock_timeout)
        else:
            acquired = self._lock.acquire(blocking=False)
        if not acquired:
            raise LockError("Another run holds the in-memory state lock")
        try:
            yield
        finally:
            self._lock.release()

    def append_log(self, entry: str) -> None:
        self.log += entry

    def read_log(self) -> str:
        return self.log

    def reset(self) -> List[str]:
        deleted = []
        if self.state["last_fingerprint"]:
            deleted = [HASH_FILE, ROSTER_FILE]
        self.state["last_fingerprint"] = ""
        self.state["last_raw_text"] = ""
        return deleted
