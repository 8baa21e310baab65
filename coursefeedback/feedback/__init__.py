"""
Feedback - submission, validation and storage of course feedback.

Backends (chosen at startup, all with submit() and fetch_latest()):
- local: JSON key-value file with one named slot
- table: DuckDB `feedback` table
- remote: hosted `feedback` table over a PostgREST-style REST API
"""

from coursefeedback.feedback.errors import FeedbackError, ValidationError, PersistenceError
from coursefeedback.feedback.models import Feedback
from coursefeedback.feedback.validation import FeedbackSubmission, validate_submission
from coursefeedback.feedback.storage import FeedbackBackend, LocalFeedbackStore
from coursefeedback.feedback.service import (
    FeedbackService,
    SubmitResult,
    LatestResult,
    create_backend,
    ensure_seeded,
)

__all__ = [
    "Feedback",
    "FeedbackSubmission",
    "validate_submission",
    "FeedbackError",
    "ValidationError",
    "PersistenceError",
    "FeedbackBackend",
    "LocalFeedbackStore",
    "FeedbackService",
    "SubmitResult",
    "LatestResult",
    "create_backend",
    "ensure_seeded",
]
