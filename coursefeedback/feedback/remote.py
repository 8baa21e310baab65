"""
Hosted table backend for feedback.

Talks to a PostgREST-style REST endpoint (e.g. Supabase) exposing a
`feedback` table whose `id` and `submitted_at` columns are generated by
the server:

    POST {base}/rest/v1/feedback               insert, returns the new row
    GET  {base}/rest/v1/feedback?order=...     newest rows, limit applied server-side

Every transport, HTTP or payload problem is raised as PersistenceError.
"""

import logging
from typing import Optional

import requests

from coursefeedback.config import (
    DEFAULT_LATEST_LIMIT,
    REMOTE_TABLE_API_KEY,
    REMOTE_TABLE_NAME,
    REMOTE_TABLE_TIMEOUT,
    REMOTE_TABLE_URL,
)
from coursefeedback.feedback.errors import PersistenceError
from coursefeedback.feedback.models import Feedback
from coursefeedback.feedback.storage import check_limit
from coursefeedback.feedback.validation import FeedbackSubmission


logger = logging.getLogger(__name__)


class RemoteFeedbackTable:
    """Client for a hosted `feedback` table."""

    name = "remote"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        table_name: str = REMOTE_TABLE_NAME,
        timeout: Optional[float] = REMOTE_TABLE_TIMEOUT,
    ):
        """
        Initialize the table client.

        Args:
            base_url: Project URL, e.g. https://xyz.supabase.co
            api_key: Key sent as `apikey` and bearer token
            table_name: Table to read and write
            timeout: Request timeout in seconds (None waits indefinitely)
        """
        self.base_url = (base_url or REMOTE_TABLE_URL).rstrip("/")
        if not self.base_url:
            raise ValueError("A base URL is required for the remote feedback table")

        self.table_name = table_name
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": "CourseFeedback/1.0",
        })

        key = api_key if api_key is not None else REMOTE_TABLE_API_KEY
        if key:
            self.session.headers.update({
                "apikey": key,
                "Authorization": f"Bearer {key}",
            })

    def _table_url(self) -> str:
        """Build table URL."""
        return f"{self.base_url}/rest/v1/{self.table_name}"

    def _rows(self, response: requests.Response, operation: str) -> list[dict]:
        """Decode a JSON array of rows."""
        try:
            payload = response.json()
        except ValueError as e:
            raise PersistenceError(f"Response is not JSON: {e}", operation) from e
        if not isinstance(payload, list):
            raise PersistenceError("Expected a list of rows in response", operation)
        return payload

    def _parse(self, rows: list[dict], operation: str) -> list[Feedback]:
        try:
            return [Feedback.from_dict(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Malformed row in response: {e}", operation) from e

    def submit(self, submission: FeedbackSubmission) -> Feedback:
        """Insert one row and return the row generated by the server."""
        body = submission.model_dump(exclude_none=True)

        try:
            response = self.session.post(
                self._table_url(),
                json=body,
                headers={"Prefer": "return=representation"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise PersistenceError(str(e), "submit") from e

        rows = self._rows(response, "submit")
        if len(rows) != 1:
            raise PersistenceError(f"Insert returned {len(rows)} rows", "submit")

        stored = self._parse(rows, "submit")[0]
        logger.info(f"Inserted feedback {stored.id} for course '{stored.course}' into remote table")
        return stored

    def fetch_latest(self, limit: int = DEFAULT_LATEST_LIMIT) -> list[Feedback]:
        """Get most recent rows, ordered and limited by the server."""
        check_limit(limit)

        try:
            response = self.session.get(
                self._table_url(),
                params={
                    "select": "*",
                    "order": "submitted_at.desc",
                    "limit": limit,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise PersistenceError(str(e), "fetch_latest") from e

        rows = self._rows(response, "fetch_latest")
        if len(rows) > limit:
            raise PersistenceError(f"Server returned {len(rows)} rows for limit {limit}", "fetch_latest")

        items = self._parse(rows, "fetch_latest")
        logger.debug(f"Fetched {len(items)} feedback rows from {self._table_url()}")
        return items

    def close(self):
        self.session.close()

    def __repr__(self) -> str:
        return f"RemoteFeedbackTable(url={self._table_url()!r})"
