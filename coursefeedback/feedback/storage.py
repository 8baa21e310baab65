"""
Feedback storage - Backend contract and the local key-value store.

Every backend provides the same two operations:
- submit(): persist a validated submission and return the full record
- fetch_latest(): most recent records first, up to a limit

The local store keeps all records in a single named slot of a JSON file
(most recent first), much like browser local storage. The whole record set
is rewritten on every submit.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol

from coursefeedback.config import FEEDBACK_FILE, FEEDBACK_SLOT, DEFAULT_LATEST_LIMIT
from coursefeedback.feedback.errors import PersistenceError
from coursefeedback.feedback.models import Feedback, build_feedback
from coursefeedback.feedback.validation import FeedbackSubmission


logger = logging.getLogger(__name__)


class FeedbackBackend(Protocol):
    """Capability shared by all feedback backends."""

    name: str

    def submit(self, submission: FeedbackSubmission) -> Feedback:
        """Store a validated submission. Raises PersistenceError on failure."""
        ...

    def fetch_latest(self, limit: int = DEFAULT_LATEST_LIMIT) -> list[Feedback]:
        """Return up to `limit` records, newest first. Raises PersistenceError on failure."""
        ...

    def close(self) -> None:
        ...


def check_limit(limit: int) -> int:
    """Reject limits that cannot produce a result."""
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValueError(f"limit must be an integer, got {limit!r}")
    if limit < 0:
        raise ValueError(f"limit must be zero or greater, got {limit}")
    return limit


class LocalFeedbackStore:
    """
    File-backed key-value storage for feedback.

    The file holds a JSON object; the slot named by `slot` holds the array
    of records, newest first. Writes go to a temporary file that replaces
    the original, so a failed write leaves the previous content in place.

    Submits within this process are serialized by a lock. Separate processes
    writing the same file are last-writer-wins.
    """

    name = "local"

    def __init__(self, feedback_file: Path = FEEDBACK_FILE, slot: str = FEEDBACK_SLOT):
        self.feedback_file = Path(feedback_file)
        self.slot = slot
        self._lock = threading.Lock()

    def _read_slots(self) -> dict:
        """Read the whole key-value file."""
        if not self.feedback_file.exists():
            return {}
        try:
            with open(self.feedback_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read {self.feedback_file}: {e}", "read") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"{self.feedback_file} does not hold a key-value object", "read")
        return data

    def _load(self) -> list[Feedback]:
        """Load all records from the slot."""
        raw = self._read_slots().get(self.slot) or []
        if not isinstance(raw, list):
            raise PersistenceError(f"Slot '{self.slot}' does not hold an array", "read")
        try:
            return [Feedback.from_dict(item) for item in raw]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Slot '{self.slot}' holds a malformed record: {e}", "read") from e

    def _save(self, entries: list[Feedback]):
        """Rewrite the slot with the given records in one atomic replace."""
        slots = self._read_slots()
        slots[self.slot] = [e.to_dict() for e in entries]

        tmp_path = None
        try:
            self.feedback_file.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.feedback_file.parent,
                prefix=f".{self.feedback_file.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = f.name
                json.dump(slots, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.feedback_file)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError(f"Cannot write {self.feedback_file}: {e}", "write") from e

    def submit(self, submission: FeedbackSubmission) -> Feedback:
        """Prepend a new record to the slot."""
        with self._lock:
            entries = self._load()
            entry = build_feedback(submission)
            entries.insert(0, entry)
            self._save(entries)

        logger.info(f"Stored feedback {entry.id} for course '{entry.course}' ({len(entries)} total)")
        return entry

    def fetch_latest(self, limit: int = DEFAULT_LATEST_LIMIT) -> list[Feedback]:
        """Get most recent entries. Ties keep slot order (latest inserted first)."""
        check_limit(limit)
        entries = self._load()
        items = sorted(entries, key=lambda e: e.submitted_at, reverse=True)[:limit]
        logger.debug(f"Fetched {len(items)} of {len(entries)} feedback records from {self.feedback_file}")
        return items

    def count(self) -> int:
        """Get total number of stored records."""
        return len(self._load())

    def close(self):
        """Nothing to release; each call opens the file itself."""

    def __repr__(self) -> str:
        return f"LocalFeedbackStore(file={str(self.feedback_file)!r}, slot={self.slot!r})"
