"""
Feedback service - the API the presentation layer calls.

Validates input, then hands it to whichever backend was chosen at startup.
Backend calls run in a worker thread so awaiting them never blocks the
event loop. Nothing is retried: the first failure is raised to the caller.

Usage:
    python -m coursefeedback.feedback.service --recent 5
    python -m coursefeedback.feedback.service --seed --backend table
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from coursefeedback.config import (
    DEFAULT_LATEST_LIMIT,
    DUCKDB_PATH,
    FEEDBACK_BACKEND,
    FEEDBACK_BACKENDS,
    FEEDBACK_FILE,
)
from coursefeedback.feedback.errors import PersistenceError, ValidationError
from coursefeedback.feedback.models import Feedback, SAMPLE_FEEDBACK
from coursefeedback.feedback.storage import FeedbackBackend, LocalFeedbackStore
from coursefeedback.feedback.validation import FeedbackSubmission, validate_submission


logger = logging.getLogger(__name__)

# Serializes the empty-check and insert of ensure_seeded within this process
_seed_lock = threading.Lock()


@dataclass
class SubmitResult:
    """Outcome of a successful submit."""
    success: bool
    id: str
    record: Feedback

    def to_dict(self) -> dict:
        return {"success": self.success, "id": self.id, "record": self.record.to_dict()}


@dataclass
class LatestResult:
    """Outcome of a successful fetch-latest."""
    success: bool
    items: list[Feedback] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"success": self.success, "items": [item.to_dict() for item in self.items]}


def create_backend(kind: str = FEEDBACK_BACKEND) -> FeedbackBackend:
    """Build the configured backend. Called once at process start."""
    kind = kind.lower()

    if kind == "local":
        return LocalFeedbackStore(FEEDBACK_FILE)

    if kind == "table":
        from coursefeedback.feedback.table import TableFeedbackStore
        return TableFeedbackStore(DUCKDB_PATH)

    if kind == "remote":
        from coursefeedback.feedback.remote import RemoteFeedbackTable
        return RemoteFeedbackTable()

    raise ValueError(f"Unknown feedback backend: {kind}. Valid: {', '.join(FEEDBACK_BACKENDS)}")


def ensure_seeded(backend: FeedbackBackend) -> bool:
    """
    Insert the sample record if and only if the store is empty.

    Appends through submit(), so existing records are never overwritten.

    Returns:
        True if the sample was inserted, False if the store already had data
    """
    with _seed_lock:
        if backend.fetch_latest(1):
            logger.debug(f"Store {backend!r} already has feedback; not seeding")
            return False

        record = backend.submit(FeedbackSubmission(**SAMPLE_FEEDBACK))
    logger.info(f"Seeded empty store {backend!r} with sample feedback {record.id}")
    return True


class FeedbackService:
    """
    Submit and list course feedback.

    Owns its backend for the life of the process; close() releases it.
    """

    def __init__(self, backend: Optional[FeedbackBackend] = None):
        self.backend = backend if backend is not None else create_backend()

    async def submit_feedback(self, data: Union[dict, FeedbackSubmission]) -> SubmitResult:
        """
        Validate and store one feedback submission.

        Raises:
            ValidationError: input broke one or more field rules (nothing stored)
            PersistenceError: the backend failed (nothing stored)
        """
        submission = validate_submission(data)
        record = await asyncio.to_thread(self.backend.submit, submission)
        return SubmitResult(success=True, id=record.id, record=record)

    async def get_latest_feedback(self, limit: int = DEFAULT_LATEST_LIMIT) -> LatestResult:
        """
        Get up to `limit` most recent submissions, newest first.

        Raises:
            ValidationError: limit is not a non-negative integer
            PersistenceError: the backend failed
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise ValidationError({"limit": "Limit must be a whole number, zero or greater"})

        items = await asyncio.to_thread(self.backend.fetch_latest, limit)
        return LatestResult(success=True, items=items)

    async def seed_sample_data(self) -> None:
        """Seed an empty store. Failures are logged, never raised."""
        try:
            await asyncio.to_thread(ensure_seeded, self.backend)
        except PersistenceError as e:
            logger.warning(f"Could not seed sample feedback: {e}")
        except Exception:
            logger.exception("Unexpected error while seeding sample feedback")

    async def health_check(self) -> dict[str, Any]:
        """Check the backend can be read."""
        try:
            await asyncio.to_thread(self.backend.fetch_latest, 1)
            return {"status": "healthy", "backend": self.backend.name}
        except PersistenceError as e:
            return {"status": "error", "backend": self.backend.name, "error": str(e)}

    def close(self):
        self.backend.close()


# CLI for viewing and seeding feedback
if __name__ == "__main__":
    import argparse

    from coursefeedback.config import LOG_LEVEL

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    parser = argparse.ArgumentParser(description="Course Feedback Manager")
    parser.add_argument("--backend", type=str, default=FEEDBACK_BACKEND,
                        choices=FEEDBACK_BACKENDS, help="Storage backend")
    parser.add_argument("--recent", type=int, default=0, help="Show N recent entries")
    parser.add_argument("--seed", action="store_true", help="Seed sample data into an empty store")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    service = FeedbackService(create_backend(args.backend))

    try:
        if args.seed:
            seeded = ensure_seeded(service.backend)
            print("Sample feedback added." if seeded else "Store already has feedback; nothing to do.")

        elif args.recent:
            result = asyncio.run(service.get_latest_feedback(args.recent))
            print(f"Showing {len(result.items)} {'entry' if len(result.items) == 1 else 'entries'}")
            for e in result.items:
                print(f"\n[{e.submitted_at}] {e.name} - {e.course} ({e.rating}/5)")
                if e.email:
                    print(f"  Email: {e.email}")
                print(f"  {e.comments[:100]}{'...' if len(e.comments) > 100 else ''}")

        else:
            parser.print_help()
    except PersistenceError as e:
        print(f"Error: {e}")
        raise SystemExit(1)
    finally:
        service.close()
