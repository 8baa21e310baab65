"""
Relational table backend for feedback, stored in DuckDB.

submit() is a single INSERT ... RETURNING; fetch_latest() is a single
ordered SELECT with the limit applied by the database.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

import duckdb

from coursefeedback.config import DEFAULT_LATEST_LIMIT
from coursefeedback.data.database import FeedbackDatabase, create_feedback_table
from coursefeedback.feedback.errors import PersistenceError
from coursefeedback.feedback.models import Feedback, build_feedback
from coursefeedback.feedback.storage import check_limit
from coursefeedback.feedback.validation import FeedbackSubmission


logger = logging.getLogger(__name__)

COLUMNS = "id, name, email, course, rating, comments, submitted_at"


def _to_db_timestamp(value: str) -> datetime:
    """ISO string to the naive UTC datetime stored in the TIMESTAMP column."""
    return datetime.fromisoformat(value).astimezone(timezone.utc).replace(tzinfo=None)


class TableFeedbackStore:
    """
    Feedback stored as rows of a `feedback` table.

    Rows sharing a submitted_at come back in reverse insertion order.
    """

    name = "table"

    def __init__(
        self,
        db_path: Optional[Union[Path, str]] = None,
        table_name: str = "feedback",
        db: Optional[FeedbackDatabase] = None,
    ):
        self.db = db or FeedbackDatabase(db_path)
        self.table_name = table_name
        try:
            create_feedback_table(self.db, table_name)
        except duckdb.Error as e:
            raise PersistenceError(f"Cannot prepare table '{table_name}': {e}", "setup") from e

    def submit(self, submission: FeedbackSubmission) -> Feedback:
        """Insert one row and return it as stored."""
        entry = build_feedback(submission)
        try:
            result = self.db.execute(
                f"INSERT INTO {self.table_name} ({COLUMNS}) "
                f"VALUES (?, ?, ?, ?, ?, ?, ?) RETURNING {COLUMNS}",
                (
                    entry.id,
                    entry.name,
                    entry.email,
                    entry.course,
                    entry.rating,
                    entry.comments,
                    _to_db_timestamp(entry.submitted_at),
                ),
            )
        except duckdb.Error as e:
            raise PersistenceError(str(e), "submit") from e

        if result.row_count != 1:
            raise PersistenceError(f"Insert returned {result.row_count} rows", "submit")

        stored = Feedback.from_dict(result.to_dicts()[0])
        logger.info(f"Inserted feedback {stored.id} for course '{stored.course}' into {self.table_name}")
        return stored

    def fetch_latest(self, limit: int = DEFAULT_LATEST_LIMIT) -> list[Feedback]:
        """Get most recent rows, newest first."""
        check_limit(limit)
        try:
            result = self.db.execute_safe(
                f"SELECT {COLUMNS} FROM {self.table_name} "
                f"ORDER BY submitted_at DESC, seq DESC LIMIT ?",
                (limit,),
            )
        except duckdb.Error as e:
            raise PersistenceError(str(e), "fetch_latest") from e

        items = [Feedback.from_dict(row) for row in result.to_dicts()]
        logger.debug(f"Fetched {len(items)} feedback rows from {self.table_name}")
        return items

    def count(self) -> int:
        """Get total number of stored rows."""
        try:
            return self.db.get_row_count(self.table_name)
        except duckdb.Error as e:
            raise PersistenceError(str(e), "count") from e

    def close(self):
        self.db.close()

    def __repr__(self) -> str:
        return f"TableFeedbackStore(db={str(self.db.db_path)!r}, table={self.table_name!r})"
