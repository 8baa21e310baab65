"""
Feedback record model.

A Feedback record is created once by a backend's submit() and never
changed afterwards. `submitted_at` is a UTC ISO-8601 string with
microsecond precision, so string order matches time order.
"""

import uuid
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True)
class Feedback:
    """A single persisted course feedback submission."""
    id: str
    name: str
    course: str
    rating: int
    comments: str
    submitted_at: str
    email: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        # Absent email is omitted rather than stored as null
        if data["email"] is None:
            del data["email"]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Feedback":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            email=data.get("email") or None,
            course=data["course"],
            rating=int(data["rating"]),
            comments=data["comments"],
            submitted_at=format_timestamp(data["submitted_at"]),
        )


def utc_now() -> str:
    """Current time as a UTC ISO-8601 timestamp."""
    return format_timestamp(datetime.now(timezone.utc))


def format_timestamp(value) -> str:
    """Normalize a datetime or ISO string to UTC ISO-8601 with microseconds."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif not isinstance(value, datetime):
        raise TypeError(f"Unsupported timestamp {value!r}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def new_feedback_id() -> str:
    """Generate a unique record ID."""
    return str(uuid.uuid4())


def build_feedback(submission) -> Feedback:
    """Create a full record from a validated submission with fresh id and timestamp."""
    return Feedback(
        id=new_feedback_id(),
        name=submission.name,
        email=submission.email,
        course=submission.course,
        rating=submission.rating,
        comments=submission.comments,
        submitted_at=utc_now(),
    )


# Placeholder record inserted into an empty store
SAMPLE_FEEDBACK = {
    "name": "Alex Johnson",
    "email": "alex.j@example.com",
    "course": "Introduction to Web Development",
    "rating": 5,
    "comments": (
        "Excellent course! The instructor explained complex concepts in a very clear "
        "and engaging way. Highly recommend to anyone starting their web dev journey."
    ),
}
